"""評価リクエストのスキーマ（pydantic BaseModel）"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .models import Environment


class EvaluateRequest(BaseModel):
    """評価リクエスト。{flagKey, environment, context} を受け付ける。"""

    model_config = ConfigDict(populate_by_name=True)

    flag_key: str = Field(alias="flagKey", min_length=1)
    environment: Environment
    context: dict[str, Any] = Field(default_factory=dict)
