"""
Blueprint Synthesizer.

Turns an accumulated requirement set into a full Blueprint: analysis,
architecture, implementation plan, risk assessment, cost estimate, ROI
projection and success metrics. Every step is a pure function of the
requirements and config; the only injected collaborators are the id
factory and the time-savings estimator.
"""

from typing import Any, List, Optional

from loguru import logger

from contracts import (
    Architecture,
    Blueprint,
    BlueprintConfig,
    BusinessCase,
    Requirement,
    RequirementAnalysis,
    RequirementCategory,
    ROIProjection,
)
from router.classifier import IdFactory, new_id, normalize_requirements
from blueprint.analyzer import analyze_requirements, combined_text
from blueprint.architecture import build_architecture, select_architecture_template
from blueprint.estimation import (
    RandomTimeSavingsEstimator,
    TimeSavingsEstimator,
    build_success_metrics,
    calculate_costs,
    calculate_roi,
)
from blueprint.planning import build_implementation_plan, build_risk_assessment


DEFAULT_PROBLEM_STATEMENT = "Manual processes require automation to improve efficiency and reduce errors"

SUCCESS_CRITERIA = (
    "Successful automation of identified manual processes",
    "Achievement of target time savings and cost reduction",
    "Error rate below 1% for automated processes",
    "User adoption rate above 90% within 3 months",
    "System uptime above 99.5%",
)

BASE_STAKEHOLDERS = ("Project Manager", "End Users", "IT Administrator")

STAKEHOLDER_RULES = (
    (("sales", "crm"), ("Sales Team", "Sales Manager")),
    (("marketing",), ("Marketing Team", "Marketing Manager")),
    (("finance", "accounting"), ("Finance Team", "CFO")),
    (("customer", "support"), ("Customer Support Team", "Customer Success Manager")),
)


class BlueprintSynthesizer:
    """Generates blueprints from requirement sets."""

    def __init__(
        self,
        id_factory: Optional[IdFactory] = None,
        estimator: Optional[TimeSavingsEstimator] = None,
    ):
        """Initialize the synthesizer.

        Args:
            id_factory: Callable returning blueprint ids. Defaults to uuid4 hex.
            estimator: Weekly time-savings estimator. Defaults to the random
                placeholder; pass a FixedTimeSavingsEstimator for reproducible ROI.
        """
        self.id_factory = id_factory or new_id
        self.estimator = estimator or RandomTimeSavingsEstimator()

    def analyze(self, requirements: Any) -> RequirementAnalysis:
        """Analyze a requirement feed.

        Args:
            requirements: List of Requirement records or ``{category?, text}`` dicts.

        Raises:
            PreconditionError: If ``requirements`` is not a list.
        """
        return analyze_requirements(normalize_requirements(requirements, self.id_factory))

    def generate(self, requirements: Any, config: Optional[BlueprintConfig] = None) -> Blueprint:
        """Synthesize a blueprint.

        Args:
            requirements: List of Requirement records or ``{category?, text}``
                dicts. Malformed records are skipped.
            config: Blueprint configuration. ``config.complexity`` overrides the
                analyzed complexity for planning and risk; when None the
                analyzed value is used.

        Returns:
            Blueprint whose ``estimated_roi`` is the ROI projection's
            three-year ROI.

        Raises:
            PreconditionError: If ``requirements`` is not a list.
        """
        config = config or BlueprintConfig()
        reqs = normalize_requirements(requirements, self.id_factory)

        analysis = analyze_requirements(reqs)
        complexity = config.complexity or analysis.complexity
        template = select_architecture_template(analysis.domain)
        logger.debug(
            f"Analysis: domain={analysis.domain} complexity={analysis.complexity.value} "
            f"template={template.key}"
        )

        architecture = build_architecture(reqs, analysis, template)
        plan = build_implementation_plan(architecture, config, complexity)
        risks = build_risk_assessment(reqs, complexity)
        costs = calculate_costs(plan)
        roi = calculate_roi(reqs, costs, self.estimator)

        blueprint = Blueprint(
            id=self.id_factory(),
            title=self.title(analysis),
            overview=self.overview(analysis),
            business_case=self.business_case(reqs, architecture, roi),
            analysis=analysis,
            architecture=architecture,
            implementation_plan=plan,
            risk_assessment=risks,
            success_metrics=build_success_metrics(roi),
            cost_estimation=costs,
            roi_projection=roi,
            config=config,
            metadata={
                "requirement_count": len(reqs),
                "architecture_template": template.key,
                "effective_complexity": complexity.value,
            },
        )
        logger.info(
            f"Generated blueprint '{blueprint.title}' "
            f"({len(architecture.components)} components, {plan.total_hours}h, ROI {roi.three_year_roi}%)"
        )
        return blueprint

    @staticmethod
    def title(analysis: RequirementAnalysis) -> str:
        return (
            f"{analysis.domain.capitalize()} Automation System - "
            f"{analysis.complexity.value.capitalize()} Implementation"
        )

    @staticmethod
    def overview(analysis: RequirementAnalysis) -> str:
        factors = ", ".join(analysis.critical_factors) or "reliable operation"
        return (
            f"This {analysis.complexity.value} automation project will streamline "
            f"{analysis.domain} processes using n8n workflows. The system includes "
            f"{analysis.integration_count} key integrations and is designed to handle "
            f"{analysis.data_volume.value} data volumes. Key focus areas include "
            f"{analysis.primary_focus} with emphasis on {factors}."
        )

    def business_case(
        self,
        requirements: List[Requirement],
        architecture: Architecture,
        roi: ROIProjection,
    ) -> BusinessCase:
        return BusinessCase(
            problem_statement=self.problem_statement(requirements),
            proposed_solution=(
                f"Implement a {len(architecture.components)}-component automated system using "
                f"n8n workflows with {len(architecture.integrations)} key integrations. The "
                "solution includes intelligent data processing, error handling, and "
                "comprehensive monitoring to ensure reliable operation."
            ),
            expected_benefits=[
                f"{roi.time_savings_hours_per_week} hours saved per week",
                f"{roi.productivity_gain_percentage}% productivity improvement",
                f"{roi.error_reduction_percentage}% reduction in process errors",
                f"${roi.cost_savings_per_month} monthly cost savings",
                f"ROI of {roi.three_year_roi}% over 3 years",
            ],
            success_criteria=list(SUCCESS_CRITERIA),
            stakeholders=self.stakeholders(requirements),
        )

    @staticmethod
    def problem_statement(requirements: List[Requirement]) -> str:
        for req in requirements:
            if req.category == RequirementCategory.BUSINESS_PROCESS:
                return f"Current manual processes are inefficient and error-prone: {req.answer}"
        return DEFAULT_PROBLEM_STATEMENT

    @staticmethod
    def stakeholders(requirements: List[Requirement]) -> List[str]:
        text = combined_text(requirements)
        people = list(BASE_STAKEHOLDERS)
        for keywords, roles in STAKEHOLDER_RULES:
            if any(k in text for k in keywords):
                people.extend(r for r in roles if r not in people)
        return people
