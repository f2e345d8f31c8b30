"""フラグストア HTTP クライアント実装"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import httpx

from .exceptions import FeatureFlagError, FeatureFlagErrorCodes
from .models import Environment, FeatureFlag
from .store import FlagStore, flag_not_found


@dataclass
class FlagStoreConfig:
    """フラグストアクライアント設定。"""

    base_url: str
    api_key: str = ""
    timeout_seconds: float = 5.0


class HttpFlagStore(FlagStore):
    """httpx を使ったフラグ管理サーバーのクライアント。"""

    def __init__(self, config: FlagStoreConfig) -> None:
        self._config = config
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if config.api_key:
            headers["X-API-Key"] = config.api_key
        self._headers = headers

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.base_url,
            headers=self._headers,
            timeout=self._config.timeout_seconds,
        )

    def _handle_error(self, resp: httpx.Response, context: str) -> None:
        if resp.status_code >= 400:
            raise FeatureFlagError(
                code=FeatureFlagErrorCodes.STORE_ERROR,
                message=f"{context}: HTTP {resp.status_code}: {resp.text}",
            )

    async def find_flag(self, key: str, environment: Environment) -> FeatureFlag:
        try:
            async with self._make_client() as client:
                resp = await client.get(
                    f"/api/v1/flags/{key}",
                    params={"environment": str(environment)},
                )
            if resp.status_code == 404:
                raise flag_not_found(key, environment)
            self._handle_error(resp, f"find_flag({key}, {environment})")
            data: dict[str, Any] = resp.json()
            return FeatureFlag.from_dict(data)
        except FeatureFlagError:
            raise
        except Exception as e:
            raise FeatureFlagError(
                code=FeatureFlagErrorCodes.STORE_ERROR,
                message=f"Failed to find flag: {e}",
                cause=e,
            ) from e

    async def touch_evaluated_at(self, flag_id: str, timestamp: datetime) -> None:
        try:
            async with self._make_client() as client:
                resp = await client.put(
                    f"/api/v1/flags/{flag_id}/last-evaluated-at",
                    json={"lastEvaluatedAt": timestamp.isoformat()},
                )
            self._handle_error(resp, f"touch_evaluated_at({flag_id})")
        except FeatureFlagError:
            raise
        except Exception as e:
            raise FeatureFlagError(
                code=FeatureFlagErrorCodes.STORE_ERROR,
                message=f"Failed to update last evaluated timestamp: {e}",
                cause=e,
            ) from e
