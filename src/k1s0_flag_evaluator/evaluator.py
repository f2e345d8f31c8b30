"""フラグ評価器

フラグ定義と評価コンテキストだけを入力とする純粋関数。
内部状態を持たないため、任意のスレッド・タスクから並行に呼び出せる。
"""

from __future__ import annotations

from .conditions import evaluate_conditions
from .models import (
    EvaluationContext,
    EvaluationExplanation,
    EvaluationResult,
    FeatureFlag,
    RuleOperator,
)
from .rollout import is_in_rollout


def _bool_text(value: bool) -> str:
    return "true" if value else "false"


def _resolve_operator(raw: RuleOperator | str | None, details: list[str]) -> RuleOperator:
    if raw is None:
        return RuleOperator.AND
    if isinstance(raw, RuleOperator):
        return raw
    details.append(f"⚠ Unknown rule operator {raw!r}, using AND")
    return RuleOperator.AND


def evaluate_flag(flag: FeatureFlag, context: EvaluationContext) -> EvaluationResult:
    """フラグをコンテキストに対して評価する。

    評価順序:
        1. デフォルト値で初期化
        2. ルールがなければデフォルト値を返す
        3. 条件を記載順に評価し AND/OR で結合 (不一致ならデフォルト値)
        4. 結果が True の場合のみロールアウトで絞り込む

    ルールデータが不正でも例外は送出せず、トレース付きで真偽値に落とし込む。
    同じ入力に対しては常に同じ結果と同じトレースを返す。
    """
    details: list[str] = []
    result = flag.default_value
    matched_rule: str | None = None

    details.append(f"Flag: {flag.display_name}")
    details.append(f"Environment: {flag.environment}")
    details.append(f"Default value: {_bool_text(flag.default_value)}")

    rules = flag.rules
    if rules is None or rules.is_empty():
        details.append("No rules defined, using default value")
    else:
        details.append("Evaluating rules...")

        if rules.conditions:
            operator = _resolve_operator(rules.operator, details)
            if evaluate_conditions(rules.conditions, operator, context, details):
                result = True
                matched_rule = f"Conditions matched ({operator})"
                details.append("✓ Conditions matched")
            else:
                result = flag.default_value
                details.append("✗ Conditions did not match, using default value")

        # ロールアウトは True の結果を絞り込むだけで、False を True にはしない
        if rules.rollout is not None and result:
            seed = rules.rollout.seed or flag.key
            if is_in_rollout(rules.rollout, context.user_id, seed, details):
                details.append("✓ User is in rollout percentage")
            else:
                result = False
                details.append("✗ User not in rollout percentage")

    return EvaluationResult(
        result=result,
        explanation=EvaluationExplanation(
            flag_key=flag.key,
            environment=str(flag.environment),
            result=result,
            default_value=flag.default_value,
            matched_rule=matched_rule,
            details=details,
        ),
    )
