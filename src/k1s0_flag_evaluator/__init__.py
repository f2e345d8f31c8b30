"""k1s0 flag evaluator library."""

from .conditions import evaluate_condition, evaluate_conditions
from .config import (
    AppSection,
    EvaluationSection,
    EvaluatorConfig,
    FlagStoreSection,
    LogSection,
)
from .evaluator import evaluate_flag
from .exceptions import ConfigError, ConfigErrorCodes, FeatureFlagError, FeatureFlagErrorCodes
from .http_store import FlagStoreConfig, HttpFlagStore
from .loader import environment_config_path, load, load_for_environment
from .logger import new_logger
from .merger import deep_merge
from .models import (
    MISSING,
    Condition,
    ConditionOperator,
    Environment,
    EvaluationContext,
    EvaluationExplanation,
    EvaluationResult,
    FeatureFlag,
    FlagRules,
    FlagState,
    RolloutConfig,
    RuleMetadata,
    RuleOperator,
)
from .rollout import get_rollout_bucket, is_in_rollout
from .schemas import EvaluateRequest
from .service import EvaluationService, build_service
from .store import FlagStore, InMemoryFlagStore

__all__ = [
    "MISSING",
    "AppSection",
    "Condition",
    "ConditionOperator",
    "ConfigError",
    "ConfigErrorCodes",
    "Environment",
    "EvaluateRequest",
    "EvaluationContext",
    "EvaluationExplanation",
    "EvaluationResult",
    "EvaluationSection",
    "EvaluationService",
    "EvaluatorConfig",
    "FeatureFlag",
    "FeatureFlagError",
    "FeatureFlagErrorCodes",
    "FlagRules",
    "FlagState",
    "FlagStore",
    "FlagStoreConfig",
    "FlagStoreSection",
    "HttpFlagStore",
    "InMemoryFlagStore",
    "LogSection",
    "RolloutConfig",
    "RuleMetadata",
    "RuleOperator",
    "build_service",
    "deep_merge",
    "environment_config_path",
    "evaluate_condition",
    "evaluate_conditions",
    "evaluate_flag",
    "get_rollout_bucket",
    "is_in_rollout",
    "load",
    "load_for_environment",
    "new_logger",
]
