"""Blueprint contracts: architecture, plan, risk, cost and ROI.

A Blueprint is the synthesized technical plan derived from accumulated
requirements. Its ROI figure is read from the embedded ROIProjection, never
stored separately.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime
from enum import Enum

from .requirement_contracts import Priority


class ProjectType(str, Enum):
    AUTOMATION = "automation"
    INTEGRATION = "integration"
    TRANSFORMATION = "transformation"
    ANALYTICS = "analytics"
    HYBRID = "hybrid"


class Complexity(str, Enum):
    """Project complexity tiers."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    ENTERPRISE = "enterprise"


class Timeline(str, Enum):
    URGENT = "urgent"
    NORMAL = "normal"
    EXTENDED = "extended"


class Budget(str, Enum):
    MINIMAL = "minimal"
    STANDARD = "standard"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


class RiskTolerance(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DataVolume(str, Enum):
    """Estimated data volume tier."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very-high"


class RiskLevel(str, Enum):
    """Impact / overall risk level. Probability uses LOW..HIGH only."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def score(self) -> int:
        return list(RiskLevel).index(self) + 1


class RiskCategory(str, Enum):
    TECHNICAL = "technical"
    BUSINESS = "business"
    OPERATIONAL = "operational"
    COMPLIANCE = "compliance"


class ComponentType(str, Enum):
    """Role of an architecture component."""
    TRIGGER = "trigger"
    PROCESSOR = "processor"
    INTEGRATOR = "integrator"
    STORAGE = "storage"
    NOTIFIER = "notifier"


class BlueprintConfig(BaseModel):
    """Caller-supplied knobs for blueprint generation."""
    project_type: ProjectType = Field(ProjectType.AUTOMATION)
    complexity: Optional[Complexity] = Field(
        None, description="Override; when None the analyzed complexity is used"
    )
    timeline: Timeline = Field(Timeline.NORMAL)
    budget: Budget = Field(Budget.STANDARD)
    risk_tolerance: RiskTolerance = Field(RiskTolerance.MEDIUM)


class RequirementAnalysis(BaseModel):
    """Characteristics derived from the requirement set."""
    categories: Dict[str, int] = Field(default_factory=dict, description="Requirement category -> count")
    complexity: Complexity = Field(Complexity.SIMPLE)
    domain: str = Field("general")
    integration_count: int = Field(0, ge=0)
    data_volume: DataVolume = Field(DataVolume.LOW)
    primary_focus: str = Field("automation")
    critical_factors: List[str] = Field(default_factory=list)
    complexity_score: int = Field(0, ge=0)


class ArchitectureTemplate(BaseModel):
    """Domain-specific architecture skeleton."""
    model_config = ConfigDict(frozen=True)

    key: str = Field(...)
    components: Tuple[str, ...] = Field(default_factory=tuple)
    integrations: Tuple[str, ...] = Field(default_factory=tuple)
    security_requirements: Tuple[str, ...] = Field(default_factory=tuple)
    scalability_patterns: Tuple[str, ...] = Field(default_factory=tuple)


# =============================================================================
# Architecture
# =============================================================================

class Component(BaseModel):
    """A logical building block of the automation."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(...)
    type: ComponentType = Field(...)
    description: str = Field("")
    node_hints: List[str] = Field(default_factory=list, description="Target node-type hints")
    dependencies: List[str] = Field(default_factory=list)
    configuration: Dict[str, str] = Field(default_factory=dict)


class DataFlowStep(BaseModel):
    """One step of the end-to-end data flow, numbered from 1."""
    model_config = ConfigDict(frozen=True)

    step: int = Field(..., ge=1)
    description: str = Field(...)
    input_source: str = Field("")
    processing: str = Field("")
    output_destination: str = Field("")
    error_handling: str = Field("")


class IntegrationSpec(BaseModel):
    """A declared external service dependency."""
    model_config = ConfigDict(frozen=True)

    service: str = Field(...)
    purpose: str = Field("")
    data_exchanged: List[str] = Field(default_factory=list)
    auth_method: str = Field("")
    rate_limit: Optional[int] = Field(None, ge=0, description="Requests per minute")
    fallback_strategy: Optional[str] = Field(None)


class Architecture(BaseModel):
    """Technical architecture produced once per blueprint."""
    model_config = ConfigDict(frozen=True)

    components: List[Component] = Field(default_factory=list)
    data_flow: List[DataFlowStep] = Field(default_factory=list)
    integrations: List[IntegrationSpec] = Field(default_factory=list)
    security_considerations: List[str] = Field(default_factory=list)
    scalability_plan: str = Field("")

    def components_of(self, component_type: ComponentType) -> List[Component]:
        return [c for c in self.components if c.type == component_type]

    def has_component_type(self, component_type: ComponentType) -> bool:
        return any(c.type == component_type for c in self.components)


# =============================================================================
# Implementation plan
# =============================================================================

class Task(BaseModel):
    """A single unit of implementation work."""
    id: str = Field(..., description="Dotted id, e.g. 2.1")
    name: str = Field(...)
    description: str = Field("")
    estimated_hours: int = Field(..., ge=0)
    skills_required: List[str] = Field(default_factory=list)
    priority: Priority = Field(Priority.MEDIUM)


class ImplementationPhase(BaseModel):
    """A phase of the implementation plan."""
    name: str = Field(...)
    duration: str = Field(..., description="Human range, e.g. '1-2 weeks'")
    tasks: List[Task] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    risk_level: RiskLevel = Field(RiskLevel.MEDIUM)

    @property
    def total_hours(self) -> int:
        return sum(t.estimated_hours for t in self.tasks)


class ImplementationPlan(BaseModel):
    """Ordered phases plus delivery narrative."""
    phases: List[ImplementationPhase] = Field(default_factory=list)
    total_time_estimate: str = Field("")
    resource_requirements: List[str] = Field(default_factory=list)
    prerequisites: List[str] = Field(default_factory=list)
    testing_strategy: str = Field("")
    deployment_plan: str = Field("")

    @property
    def total_hours(self) -> int:
        """Sum of task hours across every phase."""
        return sum(p.total_hours for p in self.phases)


# =============================================================================
# Risk
# =============================================================================

class Risk(BaseModel):
    """An identified project risk."""
    id: str = Field(...)
    description: str = Field(...)
    impact: RiskLevel = Field(...)
    probability: RiskLevel = Field(..., description="low, medium or high")
    category: RiskCategory = Field(...)
    mitigation: str = Field("")
    contingency: str = Field("")

    @field_validator('probability')
    @classmethod
    def probability_not_critical(cls, v: RiskLevel) -> RiskLevel:
        if v == RiskLevel.CRITICAL:
            raise ValueError("probability must be low, medium or high")
        return v

    @property
    def score(self) -> int:
        """impact x probability (impact 1-4, probability 1-3)."""
        return self.impact.score * self.probability.score


class RiskAssessment(BaseModel):
    """All risks plus the aggregated level."""
    risks: List[Risk] = Field(default_factory=list)
    overall_risk_level: RiskLevel = Field(RiskLevel.LOW)
    mitigation_strategy: str = Field("")


# =============================================================================
# Business case, metrics, cost, ROI
# =============================================================================

class SuccessMetric(BaseModel):
    """How success will be measured."""
    name: str = Field(...)
    description: str = Field("")
    measurement_method: str = Field("")
    target_value: str = Field("")
    frequency: str = Field("")


class BusinessCase(BaseModel):
    problem_statement: str = Field(...)
    proposed_solution: str = Field("")
    expected_benefits: List[str] = Field(default_factory=list)
    success_criteria: List[str] = Field(default_factory=list)
    stakeholders: List[str] = Field(default_factory=list)


class DevelopmentCost(BaseModel):
    hours: int = Field(..., ge=0)
    rate: int = Field(..., ge=0)
    total: int = Field(..., ge=0)


class RecurringCost(BaseModel):
    monthly: int = Field(..., ge=0)
    annually: int = Field(..., ge=0)


class TotalCost(BaseModel):
    initial: int = Field(..., ge=0)
    first_year: int = Field(..., ge=0)


class CostEstimation(BaseModel):
    """Development, infrastructure and maintenance costs in USD."""
    development: DevelopmentCost = Field(...)
    infrastructure: RecurringCost = Field(...)
    maintenance: RecurringCost = Field(...)
    total: TotalCost = Field(...)


class ROIProjection(BaseModel):
    """Savings and return projection."""
    time_savings_hours_per_week: int = Field(..., ge=0)
    cost_savings_per_month: int = Field(..., ge=0)
    productivity_gain_percentage: int = Field(45)
    error_reduction_percentage: int = Field(85)
    payback_period_months: int = Field(..., ge=0)
    three_year_roi: int = Field(..., description="Percent, rounded")


# =============================================================================
# Blueprint
# =============================================================================

class Blueprint(BaseModel):
    """Complete synthesized plan for one automation project."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(...)
    title: str = Field(...)
    overview: str = Field("")
    business_case: BusinessCase = Field(...)
    analysis: RequirementAnalysis = Field(...)
    architecture: Architecture = Field(...)
    implementation_plan: ImplementationPlan = Field(...)
    risk_assessment: RiskAssessment = Field(...)
    success_metrics: List[SuccessMetric] = Field(default_factory=list)
    cost_estimation: CostEstimation = Field(...)
    roi_projection: ROIProjection = Field(...)
    config: BlueprintConfig = Field(default_factory=BlueprintConfig)
    created_at: datetime = Field(default_factory=datetime.now)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def estimated_roi(self) -> int:
        """Three-year ROI percentage, always derived from the ROI projection."""
        return self.roi_projection.three_year_roi

    def to_markdown(self) -> str:
        """Render the blueprint as a human-readable markdown report."""
        lines = [f"# {self.title}", "", self.overview, ""]

        bc = self.business_case
        lines.extend(["## Business Case", "", f"**Problem:** {bc.problem_statement}", ""])
        lines.extend([f"**Proposed solution:** {bc.proposed_solution}", ""])
        if bc.expected_benefits:
            lines.append("**Expected benefits:**")
            lines.extend(f"- {b}" for b in bc.expected_benefits)
            lines.append("")
        if bc.stakeholders:
            lines.append(f"**Stakeholders:** {', '.join(bc.stakeholders)}")
            lines.append("")

        lines.extend(["## Architecture", "", "| Component | Type | Description |", "|---|---|---|"])
        for c in self.architecture.components:
            lines.append(f"| {c.name} | {c.type.value} | {c.description} |")
        lines.append("")

        if self.architecture.data_flow:
            lines.extend(["### Data Flow", ""])
            for step in self.architecture.data_flow:
                lines.append(f"{step.step}. {step.description}")
            lines.append("")

        if self.architecture.integrations:
            lines.extend(["### Integrations", ""])
            for spec in self.architecture.integrations:
                rate = f" ({spec.rate_limit} req/min)" if spec.rate_limit else ""
                lines.append(f"- **{spec.service}**{rate}: {spec.purpose}")
            lines.append("")

        lines.extend(["### Security", ""])
        lines.extend(f"- {s}" for s in self.architecture.security_considerations)
        lines.extend(["", f"**Scalability:** {self.architecture.scalability_plan}", ""])

        plan = self.implementation_plan
        lines.extend([
            "## Implementation Plan", "",
            f"**Total:** {plan.total_time_estimate} ({plan.total_hours} hours)", "",
        ])
        for i, phase in enumerate(plan.phases, 1):
            lines.append(f"### Phase {i}: {phase.name} ({phase.duration}, risk {phase.risk_level.value})")
            lines.append("")
            for task in phase.tasks:
                lines.append(f"- {task.id} {task.name}: {task.estimated_hours}h")
            lines.append("")

        ra = self.risk_assessment
        lines.extend(["## Risks", "", f"**Overall risk level:** {ra.overall_risk_level.value}", ""])
        for risk in ra.risks:
            lines.append(
                f"- [{risk.category.value}] {risk.description} "
                f"(impact {risk.impact.value}, probability {risk.probability.value}). "
                f"Mitigation: {risk.mitigation}"
            )
        lines.append("")

        cost = self.cost_estimation
        roi = self.roi_projection
        lines.extend([
            "## Cost and ROI", "",
            f"- Development: {cost.development.hours}h x ${cost.development.rate} = ${cost.development.total:,}",
            f"- Infrastructure: ${cost.infrastructure.monthly}/month",
            f"- Maintenance: ${cost.maintenance.monthly}/month",
            f"- First year total: ${cost.total.first_year:,}",
            f"- Time savings: {roi.time_savings_hours_per_week} hours/week",
            f"- Payback period: {roi.payback_period_months} months",
            f"- Three-year ROI: {self.estimated_roi}%",
            "",
        ])

        if self.success_metrics:
            lines.extend(["## Success Metrics", ""])
            for m in self.success_metrics:
                lines.append(f"- **{m.name}**: {m.target_value} ({m.frequency})")
            lines.append("")

        return "\n".join(lines)
