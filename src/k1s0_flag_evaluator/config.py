"""設定型定義（pydantic BaseModel）"""

from __future__ import annotations

from typing import Literal
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from .http_store import FlagStoreConfig


class AppSection(BaseModel):
    """アプリケーション基本設定。"""

    name: str
    version: str = "0.1.0"
    environment: str = "development"


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class FlagStoreSection(BaseModel):
    """フラグストア接続設定。"""

    base_url: str
    api_key: str = ""
    timeout_seconds: float = Field(default=5.0, gt=0)

    @field_validator("base_url")
    @classmethod
    def _check_base_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"flag_store.base_url must be an http(s) URL: {value!r}")
        return value.rstrip("/")

    def to_store_config(self) -> FlagStoreConfig:
        return FlagStoreConfig(
            base_url=self.base_url,
            api_key=self.api_key,
            timeout_seconds=self.timeout_seconds,
        )


class EvaluationSection(BaseModel):
    """評価設定。"""

    record_evaluated_at: bool = True


class EvaluatorConfig(BaseModel):
    """フラグ評価サービス設定全体。"""

    app: AppSection
    log: LogSection = Field(default_factory=LogSection)
    flag_store: FlagStoreSection | None = None
    evaluation: EvaluationSection = Field(default_factory=EvaluationSection)
