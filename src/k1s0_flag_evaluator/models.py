"""フラグ評価データモデル"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, Final, TypeAlias


class Environment(StrEnum):
    """フラグの実行環境。"""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class FlagState(StrEnum):
    """フラグのライフサイクル状態。"""

    DRAFT = "draft"
    LIVE = "live"
    DEPRECATED = "deprecated"


class RuleOperator(StrEnum):
    """条件の結合演算子。"""

    AND = "AND"
    OR = "OR"


class ConditionOperator(StrEnum):
    """条件の比較演算子。"""

    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    IN = "IN"
    NOT_IN = "NOT_IN"
    GT = "GT"
    LT = "LT"
    GTE = "GTE"
    LTE = "LTE"
    CONTAINS = "CONTAINS"
    STARTS_WITH = "STARTS_WITH"
    ENDS_WITH = "ENDS_WITH"


class _Missing:
    """コンテキストに存在しないフィールドを表す番兵。"""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()

Scalar: TypeAlias = str | int | float | bool | None
ContextValue: TypeAlias = Scalar | list[Scalar]


def _parse_enum(enum_cls: type[StrEnum], raw: Any) -> Any:
    """既知の値なら列挙型に、未知の値なら元の値のまま返す。"""
    try:
        return enum_cls(raw)
    except ValueError:
        return raw


def _parse_datetime(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    return None


@dataclass
class Condition:
    """コンテキストの 1 フィールドに対する比較条件。"""

    field: str
    operator: ConditionOperator | str
    value: Any = MISSING

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Condition:
        # value キーなしは null ではなく欠損として保持する
        return cls(
            field=str(data.get("field", "")),
            operator=_parse_enum(ConditionOperator, data.get("operator", "")),
            value=data.get("value", MISSING),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"field": self.field, "operator": str(self.operator)}
        if self.value is not MISSING:
            d["value"] = self.value
        return d


@dataclass
class RolloutConfig:
    """パーセンテージロールアウト設定。

    seed 未指定時はフラグキーをシードとして使用する。
    seed を変えるとユーザーの振り分けが変わる。
    """

    percentage: Any
    seed: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RolloutConfig:
        seed = data.get("seed")
        return cls(
            percentage=data.get("percentage"),
            seed=str(seed) if seed else None,
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"percentage": self.percentage}
        if self.seed is not None:
            d["seed"] = self.seed
        return d


@dataclass
class RuleMetadata:
    """ルールの付随情報。評価結果には影響しない。"""

    created_by: str | None = None
    last_modified_by: str | None = None
    description: str | None = None
    tags: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RuleMetadata:
        tags = data.get("tags")
        return cls(
            created_by=data.get("createdBy"),
            last_modified_by=data.get("lastModifiedBy"),
            description=data.get("description"),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.created_by is not None:
            d["createdBy"] = self.created_by
        if self.last_modified_by is not None:
            d["lastModifiedBy"] = self.last_modified_by
        if self.description is not None:
            d["description"] = self.description
        if self.tags:
            d["tags"] = list(self.tags)
        return d


@dataclass
class FlagRules:
    """フラグのターゲティングルール。"""

    operator: RuleOperator | str | None = None
    conditions: list[Condition] = field(default_factory=list)
    rollout: RolloutConfig | None = None
    metadata: RuleMetadata | None = None
    keys: frozenset[str] = field(default_factory=frozenset, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: Any) -> FlagRules | None:
        """ストアの JSON からルールを生成する。キーが 1 つもないか辞書以外なら None。

        値が空でもキーが存在すればルールありとして扱う
        ({"conditions": []} や未知のキーのみでも空ではない)。
        """
        if not isinstance(data, Mapping) or not data:
            return None
        raw_conditions = data.get("conditions")
        raw_rollout = data.get("rollout")
        raw_metadata = data.get("metadata")
        raw_operator = data.get("operator")
        return cls(
            operator=_parse_enum(RuleOperator, raw_operator) if raw_operator else None,
            conditions=[
                Condition.from_dict(c)
                for c in (raw_conditions if isinstance(raw_conditions, list) else [])
                if isinstance(c, Mapping)
            ],
            rollout=RolloutConfig.from_dict(raw_rollout) if isinstance(raw_rollout, Mapping) else None,
            metadata=RuleMetadata.from_dict(raw_metadata) if isinstance(raw_metadata, Mapping) else None,
            keys=frozenset(str(k) for k in data),
        )

    def is_empty(self) -> bool:
        return (
            not self.keys
            and self.operator is None
            and not self.conditions
            and self.rollout is None
            and self.metadata is None
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        if self.operator is not None:
            d["operator"] = str(self.operator)
        if self.conditions:
            d["conditions"] = [c.to_dict() for c in self.conditions]
        if self.rollout is not None:
            d["rollout"] = self.rollout.to_dict()
        if self.metadata is not None:
            d["metadata"] = self.metadata.to_dict()
        return d


@dataclass
class FeatureFlag:
    """フィーチャーフラグ定義。(key, environment) で一意。"""

    id: str
    key: str
    environment: Environment
    default_value: bool = False
    rules: FlagRules | None = None
    name: str = ""
    description: str = ""
    state: FlagState = FlagState.DRAFT
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_evaluated_at: datetime | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FeatureFlag:
        """ストアのレスポンス辞書から FeatureFlag を生成する。"""
        return cls(
            id=str(data["id"]),
            key=data["key"],
            environment=Environment(data.get("environment", "dev")),
            default_value=data.get("defaultValue") is True,
            rules=FlagRules.from_dict(data.get("rules")),
            name=data.get("name") or "",
            description=data.get("description") or "",
            state=_parse_enum(FlagState, data.get("state", "draft")),
            created_at=_parse_datetime(data.get("createdAt")),
            updated_at=_parse_datetime(data.get("updatedAt")),
            last_evaluated_at=_parse_datetime(data.get("lastEvaluatedAt")),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.key


@dataclass
class EvaluationContext:
    """フラグ評価コンテキスト。任意のフィールドを持つ開いたマッピング。"""

    attributes: dict[str, ContextValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> EvaluationContext:
        return cls(attributes=dict(data or {}))

    def get(self, name: str) -> ContextValue | _Missing:
        """フィールド値を返す。存在しない場合は MISSING。"""
        return self.attributes.get(name, MISSING)

    @property
    def user_id(self) -> ContextValue | _Missing:
        return self.get("userId")


@dataclass
class EvaluationExplanation:
    """評価結果の説明。details は評価手順の順序付きトレース。"""

    flag_key: str
    environment: str
    result: bool
    default_value: bool
    matched_rule: str | None = None
    details: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "flagKey": self.flag_key,
            "environment": self.environment,
            "result": self.result,
            "defaultValue": self.default_value,
        }
        if self.matched_rule is not None:
            d["matchedRule"] = self.matched_rule
        d["details"] = list(self.details)
        return d


@dataclass
class EvaluationResult:
    """フラグ評価結果。"""

    result: bool
    explanation: EvaluationExplanation

    def to_dict(self) -> dict[str, Any]:
        return {"result": self.result, "explanation": self.explanation.to_dict()}
