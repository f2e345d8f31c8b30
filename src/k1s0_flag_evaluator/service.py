"""EvaluationService: フラグ取得・評価・最終評価日時の記録"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import ValidationError

from .config import EvaluatorConfig
from .evaluator import evaluate_flag
from .exceptions import ConfigError, ConfigErrorCodes, FeatureFlagError, FeatureFlagErrorCodes
from .http_store import HttpFlagStore
from .metrics import (
    flag_evaluated_at_errors_total,
    flag_evaluation_duration_seconds,
    flag_evaluations_total,
)
from .models import Environment, EvaluationContext, EvaluationResult
from .schemas import EvaluateRequest
from .store import FlagStore

logger = structlog.stdlib.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EvaluationService:
    """フラグストアと評価器をつなぐサービス。

    評価のたびにストアから最新のフラグ定義を読み込む（キャッシュしない）。
    最終評価日時の書き込みはバックグラウンドタスクで行い、
    失敗しても評価結果には影響しない。
    """

    def __init__(
        self,
        store: FlagStore,
        *,
        record_evaluations: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._record_evaluations = record_evaluations
        self._clock = clock
        self._pending: set[asyncio.Task[None]] = set()

    async def evaluate(
        self,
        flag_key: str,
        environment: Environment,
        context: EvaluationContext | Mapping[str, Any],
    ) -> EvaluationResult:
        """フラグを取得して評価する。

        Raises:
            FeatureFlagError: FLAG_NOT_FOUND フラグが存在しない場合
        """
        if not isinstance(context, EvaluationContext):
            context = EvaluationContext.from_dict(context)

        flag = await self._store.find_flag(flag_key, environment)

        started = time.perf_counter()
        evaluation = evaluate_flag(flag, context)
        elapsed = time.perf_counter() - started

        attributes = {
            "flag_key": flag.key,
            "environment": str(flag.environment),
            "result": evaluation.result,
        }
        flag_evaluations_total.add(1, attributes)
        flag_evaluation_duration_seconds.record(elapsed, attributes)
        logger.debug(
            "flag evaluated",
            flag_key=flag.key,
            environment=str(flag.environment),
            result=evaluation.result,
            matched_rule=evaluation.explanation.matched_rule,
        )

        if self._record_evaluations:
            self._schedule_touch(flag.id)
        return evaluation

    async def handle(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """評価リクエスト辞書を検証・評価してレスポンス辞書を返す。

        Raises:
            FeatureFlagError: INVALID_REQUEST リクエスト形式が不正な場合、
                FLAG_NOT_FOUND フラグが存在しない場合
        """
        try:
            request = EvaluateRequest.model_validate(payload)
        except ValidationError as e:
            raise FeatureFlagError(
                code=FeatureFlagErrorCodes.INVALID_REQUEST,
                message=f"Invalid evaluate request: {e}",
                cause=e,
            ) from e
        evaluation = await self.evaluate(
            request.flag_key,
            request.environment,
            EvaluationContext.from_dict(request.context),
        )
        return evaluation.to_dict()

    async def drain(self) -> None:
        """未完了の最終評価日時書き込みをすべて待つ。"""
        if self._pending:
            await asyncio.gather(*self._pending)

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    def _schedule_touch(self, flag_id: str) -> None:
        task = asyncio.create_task(self._touch(flag_id, self._clock()))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _touch(self, flag_id: str, timestamp: datetime) -> None:
        try:
            await self._store.touch_evaluated_at(flag_id, timestamp)
        except Exception as e:
            flag_evaluated_at_errors_total.add(1)
            logger.warning(
                "Failed to record last evaluated timestamp",
                flag_id=flag_id,
                error=str(e),
            )


def build_service(config: EvaluatorConfig, store: FlagStore | None = None) -> EvaluationService:
    """設定から EvaluationService を構築する。

    store 未指定時は flag_store セクションから HttpFlagStore を生成する。
    """
    if store is None:
        if config.flag_store is None:
            raise ConfigError(
                code=ConfigErrorCodes.VALIDATION,
                message="flag_store section is required when no store is given",
            )
        store = HttpFlagStore(config.flag_store.to_store_config())
    return EvaluationService(
        store,
        record_evaluations=config.evaluation.record_evaluated_at,
    )
