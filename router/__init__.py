"""Router module: requirement classification and conversation phases."""

from .classifier import (
    RequirementClassifier,
    assess_completeness,
    normalize_requirements,
    new_id,
)
from .router import ConversationRouter, RoutingOutcome
from .rules import COMPLETENESS_THRESHOLD, INTENT_RULES, KeywordRule

__all__ = [
    "RequirementClassifier",
    "assess_completeness",
    "normalize_requirements",
    "new_id",
    "ConversationRouter",
    "RoutingOutcome",
    "COMPLETENESS_THRESHOLD",
    "INTENT_RULES",
    "KeywordRule",
]
