"""Implementation plan and risk assessment."""

import math
import re
from typing import List

from contracts import (
    Architecture,
    BlueprintConfig,
    Complexity,
    ComponentType,
    ImplementationPhase,
    ImplementationPlan,
    Priority,
    Requirement,
    Risk,
    RiskAssessment,
    RiskCategory,
    RiskLevel,
    RiskTolerance,
    Task,
    Timeline,
)
from blueprint.analyzer import combined_text, count_integrations


WORKFLOW_HOURS = {
    Complexity.SIMPLE: 16,
    Complexity.MODERATE: 32,
    Complexity.COMPLEX: 64,
    Complexity.ENTERPRISE: 120,
}
DEFAULT_WORKFLOW_HOURS = 24

# Days per week used when summing phase durations
WORK_DAYS_PER_WEEK = 5


def estimate_workflow_hours(complexity: Complexity) -> int:
    return WORKFLOW_HOURS.get(complexity, DEFAULT_WORKFLOW_HOURS)


def _core_duration(complexity: Complexity) -> str:
    if complexity == Complexity.SIMPLE:
        return "1 week"
    if complexity == Complexity.COMPLEX:
        return "2-3 weeks"
    return "1-2 weeks"


def build_phases(config: BlueprintConfig, complexity: Complexity) -> List[ImplementationPhase]:
    """The fixed four-phase skeleton, scaled by complexity and timeline."""
    urgent = config.timeline == Timeline.URGENT

    setup = ImplementationPhase(
        name="Setup and Foundation",
        duration="2-3 days" if urgent else "3-5 days",
        tasks=[
            Task(
                id="1.1",
                name="Environment Setup",
                description="Configure n8n instance, database, and basic infrastructure",
                estimated_hours=6 if urgent else 8,
                skills_required=["n8n", "DevOps", "Cloud Infrastructure"],
                priority=Priority.CRITICAL,
            ),
            Task(
                id="1.2",
                name="Security Configuration",
                description="Implement authentication, authorization, and basic security measures",
                estimated_hours=4,
                skills_required=["Security", "n8n Configuration"],
                priority=Priority.CRITICAL,
            ),
            Task(
                id="1.3",
                name="Integration Credentials",
                description="Configure API keys, OAuth, and other authentication credentials",
                estimated_hours=3,
                skills_required=["API Integration", "Security"],
                priority=Priority.HIGH,
            ),
        ],
        deliverables=["Working n8n environment", "Security baseline", "Integration readiness"],
        dependencies=[],
        risk_level=RiskLevel.LOW,
    )

    core = ImplementationPhase(
        name="Core Workflow Development",
        duration=_core_duration(complexity),
        tasks=[
            Task(
                id="2.1",
                name="Primary Workflow Creation",
                description="Build main automation workflows based on requirements",
                estimated_hours=estimate_workflow_hours(complexity),
                skills_required=["n8n Development", "Business Logic", "API Integration"],
                priority=Priority.CRITICAL,
            ),
            Task(
                id="2.2",
                name="Error Handling Implementation",
                description="Add comprehensive error handling and recovery mechanisms",
                estimated_hours=8,
                skills_required=["n8n Advanced Features", "Error Handling"],
                priority=Priority.HIGH,
            ),
            Task(
                id="2.3",
                name="Data Validation Logic",
                description="Implement data validation and quality checks",
                estimated_hours=6,
                skills_required=["Data Validation", "n8n Functions"],
                priority=Priority.HIGH,
            ),
        ],
        deliverables=["Functional workflows", "Error handling system", "Data validation"],
        dependencies=["Phase 1 completion"],
        risk_level=RiskLevel.HIGH if complexity == Complexity.COMPLEX else RiskLevel.MEDIUM,
    )

    testing = ImplementationPhase(
        name="Integration and Testing",
        duration="1-2 weeks",
        tasks=[
            Task(
                id="3.1",
                name="System Integration Testing",
                description="Test all integrations with real systems and data",
                estimated_hours=16,
                skills_required=["Testing", "System Integration", "n8n"],
                priority=Priority.CRITICAL,
            ),
            Task(
                id="3.2",
                name="Performance Optimization",
                description="Optimize workflows for performance and efficiency",
                estimated_hours=8,
                skills_required=["Performance Tuning", "n8n Optimization"],
                priority=Priority.MEDIUM,
            ),
            Task(
                id="3.3",
                name="User Acceptance Testing",
                description="Conduct testing with end users and stakeholders",
                estimated_hours=12,
                skills_required=["User Training", "Testing Coordination"],
                priority=Priority.HIGH,
            ),
        ],
        deliverables=["Tested system", "Performance benchmarks", "User approval"],
        dependencies=["Phase 2 completion"],
        risk_level=RiskLevel.MEDIUM,
    )

    deployment = ImplementationPhase(
        name="Deployment and Training",
        duration="3-5 days",
        tasks=[
            Task(
                id="4.1",
                name="Production Deployment",
                description="Deploy workflows to production environment",
                estimated_hours=6,
                skills_required=["Deployment", "DevOps", "n8n Administration"],
                priority=Priority.CRITICAL,
            ),
            Task(
                id="4.2",
                name="User Training",
                description="Train users on new automated processes",
                estimated_hours=8,
                skills_required=["Training", "Documentation", "User Support"],
                priority=Priority.HIGH,
            ),
            Task(
                id="4.3",
                name="Documentation",
                description="Create comprehensive system documentation",
                estimated_hours=6,
                skills_required=["Technical Writing", "Documentation"],
                priority=Priority.MEDIUM,
            ),
        ],
        deliverables=["Live system", "Trained users", "Complete documentation"],
        dependencies=["Phase 3 completion"],
        risk_level=RiskLevel.LOW,
    )

    return [setup, core, testing, deployment]


def calculate_total_time(phases: List[ImplementationPhase]) -> str:
    """Sum phase durations in weeks, using the leading number of each range.

    "2-3 weeks" counts 2 weeks, "3-5 days" counts 3/5 of a week. The total
    is rounded up.
    """
    total_days = 0
    for phase in phases:
        match = re.match(r"\s*(\d+)", phase.duration)
        if "week" in phase.duration:
            total_days += (int(match.group(1)) if match else 1) * WORK_DAYS_PER_WEEK
        elif "day" in phase.duration:
            total_days += int(match.group(1)) if match else 3
        else:
            total_days += WORK_DAYS_PER_WEEK
    return f"{math.ceil(total_days / WORK_DAYS_PER_WEEK)} weeks"


def identify_resource_requirements(architecture: Architecture) -> List[str]:
    resources = ["n8n Developer", "Project Manager"]
    if architecture.has_component_type(ComponentType.STORAGE):
        resources.append("Database Administrator")
    if len(architecture.integrations) > 3:
        resources.append("Integration Specialist")
    if any("AI" in c.name for c in architecture.components):
        resources.append("AI/ML Specialist")
    return resources


def identify_prerequisites(architecture: Architecture) -> List[str]:
    prerequisites = ["n8n instance access", "Project requirements approval"]
    prerequisites.extend(f"{spec.service} API access and credentials" for spec in architecture.integrations)
    if architecture.has_component_type(ComponentType.STORAGE):
        prerequisites.append("Database setup and configuration")
    return prerequisites


def build_testing_strategy(complexity: Complexity) -> str:
    strategy = "Comprehensive testing approach including unit tests for individual workflow components, "
    strategy += "integration tests for external API connections, "
    if complexity in (Complexity.COMPLEX, Complexity.ENTERPRISE):
        strategy += "load testing for performance validation, "
    strategy += "and user acceptance testing with key stakeholders. "
    strategy += "All tests will be documented with expected results and automated where possible."
    return strategy


def build_deployment_plan(config: BlueprintConfig) -> str:
    if config.risk_tolerance == RiskTolerance.LOW:
        plan = "Phased deployment approach with pilot group testing, followed by gradual rollout. "
    else:
        plan = "Direct deployment with comprehensive monitoring and rollback procedures. "
    plan += "Blue-green deployment strategy for zero-downtime updates. "
    plan += "Comprehensive monitoring and alerting from day one. "
    plan += "Documentation and training materials delivered before go-live."
    return plan


def build_implementation_plan(
    architecture: Architecture,
    config: BlueprintConfig,
    complexity: Complexity,
) -> ImplementationPlan:
    """Build the four-phase plan.

    Args:
        architecture: The blueprint's architecture.
        config: Blueprint configuration (timeline, risk tolerance).
        complexity: Effective complexity (config override or analyzed).
    """
    phases = build_phases(config, complexity)
    return ImplementationPlan(
        phases=phases,
        total_time_estimate=calculate_total_time(phases),
        resource_requirements=identify_resource_requirements(architecture),
        prerequisites=identify_prerequisites(architecture),
        testing_strategy=build_testing_strategy(complexity),
        deployment_plan=build_deployment_plan(config),
    )


# =============================================================================
# Risk assessment
# =============================================================================

TECHNICAL_RISK = Risk(
    id="tech-001",
    description="Integration complexity may cause delays",
    impact=RiskLevel.HIGH,
    probability=RiskLevel.MEDIUM,
    category=RiskCategory.TECHNICAL,
    mitigation="Prototype key integrations early in development",
    contingency="Implement simplified workflows as fallback",
)

ADOPTION_RISK = Risk(
    id="bus-001",
    description="User adoption may be slower than expected",
    impact=RiskLevel.MEDIUM,
    probability=RiskLevel.MEDIUM,
    category=RiskCategory.BUSINESS,
    mitigation="Comprehensive training and change management program",
    contingency="Phased rollout with support for legacy processes",
)

OPERATIONAL_RISK = Risk(
    id="ops-001",
    description="External API failures could disrupt workflows",
    impact=RiskLevel.HIGH,
    probability=RiskLevel.LOW,
    category=RiskCategory.OPERATIONAL,
    mitigation="Implement circuit breaker patterns and fallback mechanisms",
    contingency="Manual process procedures for critical operations",
)

MITIGATION_STRATEGY = (
    "Proactive risk monitoring with automated alerts and clearly defined escalation procedures"
)

# Average impact x probability score, highest bucket first
RISK_BUCKETS = (
    (9, RiskLevel.CRITICAL),
    (6, RiskLevel.HIGH),
    (3, RiskLevel.MEDIUM),
)


def overall_risk_level(risks: List[Risk]) -> RiskLevel:
    """Bucket the mean impact x probability score (>=9 critical, >=6 high, >=3 medium)."""
    if not risks:
        return RiskLevel.LOW
    average = sum(r.score for r in risks) / len(risks)
    for threshold, level in RISK_BUCKETS:
        if average >= threshold:
            return level
    return RiskLevel.LOW


def build_risk_assessment(requirements: List[Requirement], complexity: Complexity) -> RiskAssessment:
    """Technical risk for complex/enterprise work, an adoption risk always,
    and an operational risk when more than three integration keywords appear."""
    risks: List[Risk] = []
    if complexity in (Complexity.COMPLEX, Complexity.ENTERPRISE):
        risks.append(TECHNICAL_RISK)
    risks.append(ADOPTION_RISK)
    if count_integrations(combined_text(requirements)) > 3:
        risks.append(OPERATIONAL_RISK)

    return RiskAssessment(
        risks=risks,
        overall_risk_level=overall_risk_level(risks),
        mitigation_strategy=MITIGATION_STRATEGY,
    )
