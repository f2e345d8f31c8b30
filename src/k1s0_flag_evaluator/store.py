"""FlagStore 抽象基底クラスとインメモリ実装"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from datetime import datetime

from .exceptions import FeatureFlagError, FeatureFlagErrorCodes
from .models import Environment, FeatureFlag


def flag_not_found(key: str, environment: Environment | str) -> FeatureFlagError:
    return FeatureFlagError(
        FeatureFlagErrorCodes.FLAG_NOT_FOUND,
        f"Flag '{key}' not found in '{environment}' environment",
    )


class FlagStore(ABC):
    """フラグ定義ストア抽象基底クラス。"""

    @abstractmethod
    async def find_flag(self, key: str, environment: Environment) -> FeatureFlag:
        """(key, environment) のフラグを取得する。

        Raises:
            FeatureFlagError: FLAG_NOT_FOUND フラグが存在しない場合
        """
        ...

    @abstractmethod
    async def touch_evaluated_at(self, flag_id: str, timestamp: datetime) -> None:
        """フラグの最終評価日時を記録する。"""
        ...


class InMemoryFlagStore(FlagStore):
    """テスト用インメモリフラグストア。"""

    def __init__(self) -> None:
        self._flags: dict[tuple[str, Environment], FeatureFlag] = {}

    def set_flag(self, flag: FeatureFlag) -> None:
        """フラグを設定する。同じ (key, environment) は上書き。"""
        self._flags[(flag.key, flag.environment)] = flag

    async def find_flag(self, key: str, environment: Environment) -> FeatureFlag:
        flag = self._flags.get((key, environment))
        if flag is None:
            raise flag_not_found(key, environment)
        return flag

    async def touch_evaluated_at(self, flag_id: str, timestamp: datetime) -> None:
        # 評価中の定義を書き換えないよう、更新済みのコピーで置き換える
        for store_key, flag in self._flags.items():
            if flag.id == flag_id:
                self._flags[store_key] = dataclasses.replace(flag, last_evaluated_at=timestamp)
                return
