"""Requirement analysis: domain, complexity, integration count and data volume.

All checks are case-folded substring tests over the joined requirement
answers, except the AI marker which must be a whole word ("email" and
"maintain" are not AI). A substring test for "ai" would add the AI point to
almost any text mentioning email, so complexity scores here are lower than
a plain substring count would give for such requirements.
"""

import re
from typing import Dict, List, Tuple

from contracts import Complexity, DataVolume, Requirement, RequirementAnalysis


INTEGRATION_KEYWORDS: Tuple[str, ...] = ("api", "integration", "connect", "sync", "webhook", "database")
AI_PATTERN = re.compile(r"\bai\b")
AI_KEYWORDS: Tuple[str, ...] = ("intelligent", "smart", "learning")
COMPLEX_LOGIC_KEYWORDS: Tuple[str, ...] = ("complex", "multiple conditions", "decision tree")
COMPLIANCE_KEYWORDS: Tuple[str, ...] = ("compliance", "regulation", "audit")
DATA_PROCESSING_KEYWORDS: Tuple[str, ...] = ("transform", "validate", "process data")
STORAGE_KEYWORDS: Tuple[str, ...] = ("store", "database", "save", "history")

# First match wins
DOMAIN_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("ecommerce", ("ecommerce", "e-commerce", "shop", "orders")),
    ("sales", ("crm", "sales", "leads")),
    ("data", ("data", "analytics", "reporting")),
    ("support", ("support", "customer service", "tickets")),
    ("marketing", ("marketing", "email", "campaigns")),
)
DEFAULT_DOMAIN = "general"

# Highest tier first
DATA_VOLUME_RULES: Tuple[Tuple[DataVolume, Tuple[str, ...]], ...] = (
    (DataVolume.VERY_HIGH, ("million", "thousands per hour", "big data")),
    (DataVolume.HIGH, ("thousands", "hundreds per hour")),
    (DataVolume.MEDIUM, ("hundreds", "dozens per hour")),
)

CRITICAL_FACTOR_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("real-time-processing", ("real-time", "immediate")),
    ("scalability", ("scale", "volume")),
    ("security-compliance", ("security", "compliance")),
    ("reliability", ("reliable", "uptime")),
)

# Score thresholds, highest first
COMPLEXITY_THRESHOLDS: Tuple[Tuple[int, Complexity], ...] = (
    (5, Complexity.ENTERPRISE),
    (3, Complexity.COMPLEX),
    (2, Complexity.MODERATE),
)


def combined_text(requirements: List[Requirement]) -> str:
    """Case-folded answers joined by single spaces."""
    return " ".join(r.answer.casefold() for r in requirements)


def _any_in(text: str, keywords: Tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def count_integrations(text: str) -> int:
    """Number of distinct integration keywords present."""
    return sum(1 for k in INTEGRATION_KEYWORDS if k in text)


def requires_ai(text: str) -> bool:
    return bool(AI_PATTERN.search(text)) or _any_in(text, AI_KEYWORDS)


def requires_data_processing(text: str) -> bool:
    return _any_in(text, DATA_PROCESSING_KEYWORDS)


def requires_storage(text: str) -> bool:
    return _any_in(text, STORAGE_KEYWORDS)


def has_complex_logic(text: str) -> bool:
    return _any_in(text, COMPLEX_LOGIC_KEYWORDS)


def has_compliance(text: str) -> bool:
    return _any_in(text, COMPLIANCE_KEYWORDS)


def complexity_score(text: str) -> int:
    """Additive score: integrations (+2 if >5, +1 if >2), AI +1, complex logic +1, compliance +2."""
    score = 0
    integrations = count_integrations(text)
    if integrations > 5:
        score += 2
    elif integrations > 2:
        score += 1
    if requires_ai(text):
        score += 1
    if has_complex_logic(text):
        score += 1
    if has_compliance(text):
        score += 2
    return score


def complexity_for_score(score: int) -> Complexity:
    for threshold, complexity in COMPLEXITY_THRESHOLDS:
        if score >= threshold:
            return complexity
    return Complexity.SIMPLE


def identify_domain(text: str) -> str:
    for domain, keywords in DOMAIN_RULES:
        if _any_in(text, keywords):
            return domain
    return DEFAULT_DOMAIN


def estimate_data_volume(text: str) -> DataVolume:
    for volume, keywords in DATA_VOLUME_RULES:
        if _any_in(text, keywords):
            return volume
    return DataVolume.LOW


def identify_critical_factors(text: str) -> List[str]:
    return [factor for factor, keywords in CRITICAL_FACTOR_RULES if _any_in(text, keywords)]


def group_by_category(requirements: List[Requirement]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for req in requirements:
        counts[req.category.value] = counts.get(req.category.value, 0) + 1
    return counts


def analyze_requirements(requirements: List[Requirement]) -> RequirementAnalysis:
    """Derive project characteristics from the requirement set.

    Args:
        requirements: Normalized requirement records (may be empty).

    Returns:
        RequirementAnalysis. Empty input gives domain "general",
        complexity "simple".
    """
    text = combined_text(requirements)
    score = complexity_score(text)
    return RequirementAnalysis(
        categories=group_by_category(requirements),
        complexity=complexity_for_score(score),
        complexity_score=score,
        domain=identify_domain(text),
        integration_count=count_integrations(text),
        data_volume=estimate_data_volume(text),
        primary_focus="automation",
        critical_factors=identify_critical_factors(text),
    )
