"""一貫性ハッシュによるパーセンテージロールアウト"""

from __future__ import annotations

import hashlib
from typing import Any

from .models import RolloutConfig


def get_rollout_bucket(user_id: str, seed: str) -> int:
    """ユーザーとシードから [1, 100] の決定的なバケットを返す。

    md5("<user_id>:<seed>") の先頭 8 桁 (32 bit) を符号なし整数として解釈する。
    """
    raw = f"{user_id}:{seed}".encode("utf-8")
    digest = hashlib.md5(raw, usedforsecurity=False).hexdigest()
    return int(digest[:8], 16) % 100 + 1


def _has_user_id(user_id: Any) -> bool:
    """userId が評価に使える値か判定する。

    欠損・null・空文字・0・false はいずれも userId なしとみなす。
    """
    if isinstance(user_id, list):
        return True
    return bool(user_id)


def _format_user_id(user_id: Any) -> str:
    if isinstance(user_id, bool):
        return "true" if user_id else "false"
    return str(user_id)


def _format_percentage(percentage: int | float) -> str:
    if isinstance(percentage, float) and percentage.is_integer():
        return str(int(percentage))
    return str(percentage)


def is_in_rollout(
    rollout: RolloutConfig,
    user_id: Any,
    seed: str,
    details: list[str],
) -> bool:
    """ユーザーがロールアウト対象に含まれるか判定する。

    Args:
        rollout: ロールアウト設定
        user_id: コンテキストの userId (欠損なら MISSING)
        seed: バケット計算に使うシード
        details: トレース行の追記先

    Returns:
        対象に含まれる場合 True。userId がない場合や設定不正の場合は False。
    """
    if not _has_user_id(user_id):
        details.append("  ⚠ No userId provided, rollout cannot be evaluated")
        return False

    percentage = rollout.percentage
    if isinstance(percentage, bool) or not isinstance(percentage, (int, float)):
        details.append(
            f"  ⚠ Invalid rollout percentage {percentage!r}, rollout cannot be evaluated"
        )
        return False

    if percentage == 0:
        details.append("  Rollout at 0%, no users included")
        return False
    if percentage == 100:
        details.append("  Rollout at 100%, all users included")
        return True

    uid = _format_user_id(user_id)
    bucket = get_rollout_bucket(uid, seed)
    details.append(
        f"  Rollout check: user {uid} → {bucket}% "
        f"(threshold: {_format_percentage(percentage)}%)"
    )
    return bucket <= percentage
