"""Cost, ROI and success-metric estimation.

Rates and recurring costs are fixed constants. The only non-deterministic
input is the weekly time-savings estimate, which comes from an injected
``TimeSavingsEstimator`` so tests can pin it.
"""

import math
import random
from typing import List, Optional, Protocol

from contracts import (
    CostEstimation,
    DevelopmentCost,
    ImplementationPlan,
    RecurringCost,
    Requirement,
    ROIProjection,
    SuccessMetric,
    TotalCost,
)


DEVELOPER_RATE = 100        # USD per development hour
MANUAL_RATE = 50            # USD per manual hour saved
INFRA_MONTHLY = 200
MAINT_MONTHLY = 500
WEEKS_PER_MONTH = 4
MONTHS_PER_YEAR = 12
ROI_YEARS = 3

PRODUCTIVITY_GAIN_PERCENTAGE = 45
ERROR_REDUCTION_PERCENTAGE = 85

MIN_RANDOM_SAVINGS = 10
MAX_RANDOM_SAVINGS = 29


class TimeSavingsEstimator(Protocol):
    """Estimates manual hours saved per week by the automation."""

    def estimate(self, requirements: List[Requirement]) -> int:
        ...


class RandomTimeSavingsEstimator:
    """Placeholder estimator: uniform 10..29 hours per week."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def estimate(self, requirements: List[Requirement]) -> int:
        return self._rng.randint(MIN_RANDOM_SAVINGS, MAX_RANDOM_SAVINGS)


class FixedTimeSavingsEstimator:
    """Always returns the same number of hours."""

    def __init__(self, hours: int):
        if hours <= 0:
            raise ValueError(f"hours must be positive, got {hours}")
        self.hours = hours

    def estimate(self, requirements: List[Requirement]) -> int:
        return self.hours


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_costs(plan: ImplementationPlan) -> CostEstimation:
    """Development hours x rate plus fixed monthly infrastructure and maintenance."""
    hours = plan.total_hours
    development_total = hours * DEVELOPER_RATE
    infrastructure = RecurringCost(monthly=INFRA_MONTHLY, annually=INFRA_MONTHLY * MONTHS_PER_YEAR)
    maintenance = RecurringCost(monthly=MAINT_MONTHLY, annually=MAINT_MONTHLY * MONTHS_PER_YEAR)
    return CostEstimation(
        development=DevelopmentCost(hours=hours, rate=DEVELOPER_RATE, total=development_total),
        infrastructure=infrastructure,
        maintenance=maintenance,
        total=TotalCost(
            initial=development_total,
            first_year=development_total + infrastructure.annually + maintenance.annually,
        ),
    )


def calculate_roi(
    requirements: List[Requirement],
    costs: CostEstimation,
    estimator: TimeSavingsEstimator,
) -> ROIProjection:
    """Project savings, payback and three-year ROI.

    Args:
        requirements: Requirement set handed to the estimator.
        costs: Output of ``calculate_costs``.
        estimator: Source of the weekly hours saved.

    Returns:
        ROIProjection. ROI is rounded half-up to an integer percentage,
        payback is rounded up to whole months.
    """
    hours_per_week = estimator.estimate(requirements)
    monthly_savings = hours_per_week * WEEKS_PER_MONTH * MANUAL_RATE

    savings = monthly_savings * MONTHS_PER_YEAR * ROI_YEARS
    running_costs = (costs.infrastructure.annually + costs.maintenance.annually) * ROI_YEARS
    total_costs = costs.total.initial + running_costs
    roi = (savings - total_costs) / total_costs * 100 if total_costs else 0.0
    payback = math.ceil(costs.total.initial / monthly_savings) if monthly_savings else 0

    return ROIProjection(
        time_savings_hours_per_week=hours_per_week,
        cost_savings_per_month=monthly_savings,
        productivity_gain_percentage=PRODUCTIVITY_GAIN_PERCENTAGE,
        error_reduction_percentage=ERROR_REDUCTION_PERCENTAGE,
        payback_period_months=payback,
        three_year_roi=_round_half_up(roi),
    )


def build_success_metrics(roi: ROIProjection) -> List[SuccessMetric]:
    return [
        SuccessMetric(
            name="Process Automation Time Savings",
            description="Weekly hours saved through automation",
            measurement_method="Compare pre and post-automation time tracking",
            target_value=f"{roi.time_savings_hours_per_week} hours per week",
            frequency="Weekly measurement, monthly reporting",
        ),
        SuccessMetric(
            name="Process Error Rate",
            description="Percentage of processes completed without errors",
            measurement_method="Automated error tracking and logging",
            target_value=f"Less than {100 - roi.error_reduction_percentage:.1f}% error rate",
            frequency="Real-time monitoring, weekly reporting",
        ),
        SuccessMetric(
            name="Operational Cost Reduction",
            description="Monthly cost savings from automation",
            measurement_method="Calculate labor and operational cost differences",
            target_value=f"${roi.cost_savings_per_month} per month",
            frequency="Monthly financial analysis",
        ),
        SuccessMetric(
            name="User Satisfaction Score",
            description="User satisfaction with automated processes",
            measurement_method="Regular user surveys and feedback collection",
            target_value="85% or higher satisfaction rate",
            frequency="Quarterly user surveys",
        ),
        SuccessMetric(
            name="System Uptime and Reliability",
            description="Percentage of time automation system is available",
            measurement_method="Automated uptime monitoring and alerting",
            target_value="99.5% uptime",
            frequency="Real-time monitoring, monthly reporting",
        ),
    ]
