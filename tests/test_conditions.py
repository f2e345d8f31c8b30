"""条件評価のユニットテスト"""

from typing import Any

import pytest
from k1s0_flag_evaluator import MISSING, Condition, EvaluationContext, RuleOperator
from k1s0_flag_evaluator.conditions import (
    evaluate_condition,
    evaluate_conditions,
    format_value,
    strict_equals,
)


def cond(field: str, operator: str, value: Any) -> Condition:
    return Condition.from_dict({"field": field, "operator": operator, "value": value})


@pytest.mark.parametrize(
    ("operator", "expected", "actual", "matched"),
    [
        ("EQUALS", "CA", "CA", True),
        ("EQUALS", "CA", "US", False),
        ("NOT_EQUALS", "CA", "US", True),
        ("NOT_EQUALS", "CA", "CA", False),
        ("IN", ["CA", "US"], "US", True),
        ("IN", ["CA", "US"], "JP", False),
        ("NOT_IN", ["CA", "US"], "JP", True),
        ("NOT_IN", ["CA", "US"], "CA", False),
        ("GT", 18, 19, True),
        ("GT", 18, 18, False),
        ("LT", 18, 17, True),
        ("LT", 18, 18, False),
        ("GTE", 18, 18, True),
        ("GTE", 18, 17, False),
        ("LTE", 18, 18, True),
        ("LTE", 18, 19, False),
        ("CONTAINS", "@example.com", "alice@example.com", True),
        ("CONTAINS", "@example.com", "alice@test.io", False),
        ("CONTAINS", "beta", ["alpha", "beta"], True),
        ("CONTAINS", "gamma", ["alpha", "beta"], False),
        ("STARTS_WITH", "admin_", "admin_bob", True),
        ("STARTS_WITH", "admin_", "bob_admin", False),
        ("ENDS_WITH", ".jp", "example.jp", True),
        ("ENDS_WITH", ".jp", "example.com", False),
    ],
)
def test_operator_matrix(operator: str, expected: Any, actual: Any, matched: bool) -> None:
    """各演算子の一致・不一致。"""
    assert evaluate_condition(cond("f", operator, expected), actual) is matched


def test_equals_is_type_sensitive() -> None:
    """EQUALS は型を区別する。"""
    assert evaluate_condition(cond("age", "EQUALS", 18), "18") is False
    assert evaluate_condition(cond("flag", "EQUALS", 1), True) is False
    assert evaluate_condition(cond("flag", "EQUALS", True), True) is True


def test_equals_compares_int_and_float_by_value() -> None:
    """int と float は値で比較する。"""
    assert evaluate_condition(cond("age", "EQUALS", 18), 18.0) is True


def test_equals_never_matches_arrays() -> None:
    """配列同士は等しいとみなさない。"""
    assert evaluate_condition(cond("tags", "EQUALS", ["a"]), ["a"]) is False


def test_equals_null_matches_explicit_null_only() -> None:
    """null は明示的な null にのみ一致し、欠損には一致しない。"""
    assert evaluate_condition(cond("plan", "EQUALS", None), None) is True
    assert evaluate_condition(cond("plan", "EQUALS", None), MISSING) is False


def test_numeric_operators_require_numbers() -> None:
    """数値比較は双方が数値でなければ False。"""
    assert evaluate_condition(cond("age", "GT", 18), "30") is False
    assert evaluate_condition(cond("age", "GT", "18"), 30) is False
    assert evaluate_condition(cond("age", "GTE", 1), True) is False
    assert evaluate_condition(cond("age", "LT", 18), MISSING) is False


def test_in_requires_array_value() -> None:
    """IN / NOT_IN は value が配列でなければ False。"""
    assert evaluate_condition(cond("country", "IN", "CA"), "CA") is False
    assert evaluate_condition(cond("country", "NOT_IN", "CA"), "US") is False


def test_in_uses_strict_equality() -> None:
    """IN の要素比較も型を区別する。"""
    assert evaluate_condition(cond("id", "IN", [1, 2]), "1") is False
    assert evaluate_condition(cond("id", "IN", [1, 2]), 2) is True


def test_string_operators_require_strings() -> None:
    """文字列演算子は型不一致で False。"""
    assert evaluate_condition(cond("n", "STARTS_WITH", "1"), 123) is False
    assert evaluate_condition(cond("n", "ENDS_WITH", 3), "123") is False
    assert evaluate_condition(cond("n", "CONTAINS", 2), "123") is False
    assert evaluate_condition(cond("n", "CONTAINS", "2"), 123) is False


def test_unknown_operator_is_false() -> None:
    """未知の演算子は例外を出さず False。"""
    condition = cond("country", "MATCHES_REGEX", ".*")
    assert condition.operator == "MATCHES_REGEX"
    assert evaluate_condition(condition, "CA") is False


def test_absent_field_passes_negative_operators() -> None:
    """欠損フィールドは NOT_EQUALS / NOT_IN で True になる。"""
    assert evaluate_condition(cond("country", "NOT_EQUALS", "CA"), MISSING) is True
    assert evaluate_condition(cond("country", "NOT_IN", ["CA"]), MISSING) is True
    assert evaluate_condition(cond("country", "EQUALS", "CA"), MISSING) is False
    assert evaluate_condition(cond("country", "IN", ["CA"]), MISSING) is False
    assert evaluate_condition(cond("email", "CONTAINS", "@"), MISSING) is False


def test_strict_equals_missing() -> None:
    """MISSING 同士のみ等しい。"""
    assert strict_equals(MISSING, MISSING) is True
    assert strict_equals(MISSING, None) is False


def test_format_value() -> None:
    """トレース用の値表現。"""
    assert format_value("CA") == '"CA"'
    assert format_value(["CA", "US"]) == '["CA","US"]'
    assert format_value(True) == "true"
    assert format_value(None) == "null"
    assert format_value(18) == "18"
    assert format_value(MISSING) == "undefined"


def test_evaluate_conditions_and_requires_all() -> None:
    """AND は全条件一致で True。"""
    conditions = [cond("country", "EQUALS", "CA"), cond("age", "GTE", 18)]
    details: list[str] = []
    ctx = EvaluationContext.from_dict({"country": "CA", "age": 20})
    assert evaluate_conditions(conditions, RuleOperator.AND, ctx, details) is True

    ctx = EvaluationContext.from_dict({"country": "CA", "age": 17})
    assert evaluate_conditions(conditions, RuleOperator.AND, ctx, []) is False


def test_evaluate_conditions_or_requires_any() -> None:
    """OR はいずれかの条件一致で True。"""
    conditions = [cond("country", "EQUALS", "CA"), cond("age", "GTE", 18)]
    ctx = EvaluationContext.from_dict({"country": "US", "age": 20})
    assert evaluate_conditions(conditions, RuleOperator.OR, ctx, []) is True

    ctx = EvaluationContext.from_dict({"country": "US", "age": 10})
    assert evaluate_conditions(conditions, RuleOperator.OR, ctx, []) is False


def test_evaluate_conditions_traces_every_condition_in_order() -> None:
    """短絡せず、全条件を記載順にトレースする。"""
    conditions = [cond("country", "EQUALS", "CA"), cond("age", "GTE", 18)]
    details: list[str] = []
    ctx = EvaluationContext.from_dict({"country": "US"})
    evaluate_conditions(conditions, RuleOperator.AND, ctx, details)
    assert details == [
        "Checking 2 condition(s) with AND operator:",
        '  ✗ Condition 1: country EQUALS "CA" (context: "US")',
        "  ✗ Condition 2: age GTE 18 (context: undefined)",
    ]
