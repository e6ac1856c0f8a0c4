"""Blueprint module: requirement analysis and blueprint synthesis."""

from .analyzer import analyze_requirements
from .architecture import ARCHITECTURE_TEMPLATES, build_architecture, select_architecture_template
from .estimation import (
    FixedTimeSavingsEstimator,
    RandomTimeSavingsEstimator,
    TimeSavingsEstimator,
    calculate_costs,
    calculate_roi,
)
from .planning import build_implementation_plan, build_risk_assessment
from .synthesizer import BlueprintSynthesizer

__all__ = [
    "BlueprintSynthesizer",
    "analyze_requirements",
    "ARCHITECTURE_TEMPLATES",
    "build_architecture",
    "select_architecture_template",
    "build_implementation_plan",
    "build_risk_assessment",
    "calculate_costs",
    "calculate_roi",
    "TimeSavingsEstimator",
    "RandomTimeSavingsEstimator",
    "FixedTimeSavingsEstimator",
]
