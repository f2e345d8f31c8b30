"""評価サービス設定の読み込み

config.yaml をベースに、フラグ環境 (dev/staging/prod) ごとの
config.<environment>.yaml を重ねて EvaluatorConfig を構築する。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .config import EvaluatorConfig
from .exceptions import ConfigError, ConfigErrorCodes
from .merger import deep_merge
from .models import Environment

BASE_CONFIG_NAME = "config.yaml"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            code=ConfigErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(
            code=ConfigErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            code=ConfigErrorCodes.PARSE_YAML,
            message=f"Config root must be a mapping: {path}",
        )
    return data


def _validate(data: dict[str, Any], source: Path) -> EvaluatorConfig:
    try:
        return EvaluatorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            code=ConfigErrorCodes.VALIDATION,
            message=f"Config validation failed ({source}): {e}",
            cause=e,
        ) from e


def load(base_path: Path, env_path: Path | None = None) -> EvaluatorConfig:
    """設定ファイルを読み込んで EvaluatorConfig を返す。

    env_path が存在する場合はベース設定にディープマージする。
    """
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = deep_merge(data, _read_yaml(env_path))
    return _validate(data, base_path)


def environment_config_path(config_dir: Path, environment: Environment | str) -> Path:
    """フラグ環境に対応する上書き設定ファイルのパスを返す。

    Raises:
        ConfigError: VALIDATION_ERROR 未知の環境名の場合
    """
    try:
        env = Environment(environment)
    except ValueError as e:
        raise ConfigError(
            code=ConfigErrorCodes.VALIDATION,
            message=f"Unknown flag environment: {environment!r}",
            cause=e,
        ) from e
    return config_dir / f"config.{env}.yaml"


def load_for_environment(config_dir: Path, environment: Environment | str) -> EvaluatorConfig:
    """config_dir から環境別の評価サービス設定を読み込む。

    config_dir/config.yaml は必須、config_dir/config.<environment>.yaml は任意。
    """
    return load(
        config_dir / BASE_CONFIG_NAME,
        environment_config_path(config_dir, environment),
    )
