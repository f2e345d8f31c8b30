"""条件評価と AND/OR 結合"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from .models import MISSING, Condition, ConditionOperator, EvaluationContext, RuleOperator


def format_value(value: Any) -> str:
    """トレース用に値を JSON 形式で文字列化する。欠損は undefined。"""
    if value is MISSING:
        return "undefined"
    try:
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        return repr(value)


def _is_number(value: Any) -> bool:
    # bool は int のサブクラスだが数値として扱わない
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """型を区別する厳密等価比較。

    数値同士は値で比較する (1 と 1.0 は等しい)。bool と数値は等しくない。
    配列や辞書はどの値とも等しくない。
    """
    if left is MISSING or right is MISSING:
        return left is right
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, (list, dict)) or isinstance(right, (list, dict)):
        return False
    return type(left) is type(right) and left == right


def _contains_strict(items: Sequence[Any], target: Any) -> bool:
    return any(strict_equals(item, target) for item in items)


def evaluate_condition(condition: Condition, actual: Any) -> bool:
    """単一条件をコンテキスト値に対して評価する。例外は送出しない。"""
    expected = condition.value
    op = condition.operator

    if op == ConditionOperator.EQUALS:
        return strict_equals(actual, expected)
    if op == ConditionOperator.NOT_EQUALS:
        return not strict_equals(actual, expected)
    if op == ConditionOperator.IN:
        return isinstance(expected, list) and _contains_strict(expected, actual)
    if op == ConditionOperator.NOT_IN:
        return isinstance(expected, list) and not _contains_strict(expected, actual)

    if op in (
        ConditionOperator.GT,
        ConditionOperator.LT,
        ConditionOperator.GTE,
        ConditionOperator.LTE,
    ):
        if not (_is_number(actual) and _is_number(expected)):
            return False
        if op == ConditionOperator.GT:
            return actual > expected
        if op == ConditionOperator.LT:
            return actual < expected
        if op == ConditionOperator.GTE:
            return actual >= expected
        return actual <= expected

    if op == ConditionOperator.CONTAINS:
        if isinstance(actual, str):
            return isinstance(expected, str) and expected in actual
        if isinstance(actual, list):
            return _contains_strict(actual, expected)
        return False
    if op == ConditionOperator.STARTS_WITH:
        return isinstance(actual, str) and isinstance(expected, str) and actual.startswith(expected)
    if op == ConditionOperator.ENDS_WITH:
        return isinstance(actual, str) and isinstance(expected, str) and actual.endswith(expected)

    return False


def evaluate_conditions(
    conditions: Sequence[Condition],
    operator: RuleOperator,
    context: EvaluationContext,
    details: list[str],
) -> bool:
    """全条件を記載順に評価し、operator で結合した結果を返す。

    各条件の結果は ✓/✗ 行として details に追記される。
    短絡評価はせず、全条件のトレースを残す。
    """
    details.append(f"Checking {len(conditions)} condition(s) with {operator} operator:")

    results: list[bool] = []
    for index, condition in enumerate(conditions, start=1):
        actual = context.get(condition.field)
        matched = evaluate_condition(condition, actual)
        icon = "✓" if matched else "✗"
        details.append(
            f"  {icon} Condition {index}: {condition.field} {condition.operator} "
            f"{format_value(condition.value)} (context: {format_value(actual)})"
        )
        results.append(matched)

    if operator == RuleOperator.OR:
        return any(results)
    return all(results)
