"""Tests for blueprint synthesis, planning and estimation."""

from unittest.mock import MagicMock

import pytest

from contracts import (
    BlueprintConfig,
    Complexity,
    Requirement,
    RiskLevel,
    Timeline,
)
from blueprint import (
    BlueprintSynthesizer,
    FixedTimeSavingsEstimator,
    RandomTimeSavingsEstimator,
)
from blueprint.planning import overall_risk_level
from errors import PreconditionError


class TestBlueprintGeneration:
    """Test the assembled blueprint for the e-commerce reference case."""

    def test_title_and_overview(self, synthesizer, ecommerce_requirements):
        """Test title and overview wording."""
        blueprint = synthesizer.generate(ecommerce_requirements)
        assert blueprint.title == "Ecommerce Automation System - Simple Implementation"
        assert blueprint.overview.startswith("This simple automation project will streamline ecommerce processes")
        assert blueprint.overview.endswith("with emphasis on reliable operation.")

    def test_ids_come_from_factory(self, synthesizer, ecommerce_requirements):
        """Test requirement and blueprint ids use the injected factory."""
        blueprint = synthesizer.generate(ecommerce_requirements)
        assert blueprint.id == "id-3"

    def test_costs(self, synthesizer, ecommerce_requirements):
        """Test development hours, totals and recurring costs."""
        blueprint = synthesizer.generate(ecommerce_requirements)
        cost = blueprint.cost_estimation
        assert blueprint.implementation_plan.total_hours == 101
        assert cost.development.total == 10100
        assert cost.infrastructure.annually == 2400
        assert cost.maintenance.annually == 6000
        assert cost.total.initial == 10100
        assert cost.total.first_year == 18500

    def test_roi(self, synthesizer, ecommerce_requirements):
        """Test the ROI projection with a fixed 20 hours per week."""
        blueprint = synthesizer.generate(ecommerce_requirements)
        roi = blueprint.roi_projection
        assert roi.time_savings_hours_per_week == 20
        assert roi.cost_savings_per_month == 4000
        assert roi.payback_period_months == 3
        assert roi.three_year_roi == 308
        assert blueprint.estimated_roi == 308

    def test_plan(self, synthesizer, ecommerce_requirements):
        """Test the four-phase plan."""
        plan = synthesizer.generate(ecommerce_requirements).implementation_plan
        assert [p.name for p in plan.phases] == [
            "Setup and Foundation",
            "Core Workflow Development",
            "Integration and Testing",
            "Deployment and Training",
        ]
        assert plan.phases[1].duration == "1 week"
        assert plan.total_time_estimate == "4 weeks"
        assert plan.resource_requirements == ["n8n Developer", "Project Manager"]
        assert "External API API access and credentials" in plan.prerequisites

    def test_risks(self, synthesizer, ecommerce_requirements):
        """Test only the adoption risk applies."""
        risks = synthesizer.generate(ecommerce_requirements).risk_assessment
        assert [r.id for r in risks.risks] == ["bus-001"]
        assert risks.overall_risk_level == RiskLevel.MEDIUM

    def test_business_case(self, synthesizer, ecommerce_requirements):
        """Test problem statement and benefits."""
        case = synthesizer.generate(ecommerce_requirements).business_case
        assert case.problem_statement == (
            "Current manual processes are inefficient and error-prone: automate e-commerce order processing"
        )
        assert case.expected_benefits[0] == "20 hours saved per week"
        assert case.expected_benefits[-1] == "ROI of 308% over 3 years"
        assert case.stakeholders == ["Project Manager", "End Users", "IT Administrator"]

    def test_success_metrics(self, synthesizer, ecommerce_requirements):
        """Test the five metrics and their targets."""
        metrics = synthesizer.generate(ecommerce_requirements).success_metrics
        assert len(metrics) == 5
        assert metrics[0].target_value == "20 hours per week"
        assert metrics[1].target_value == "Less than 15.0% error rate"
        assert metrics[2].target_value == "$4000 per month"

    def test_metadata(self, synthesizer, ecommerce_requirements):
        """Test generation metadata."""
        metadata = synthesizer.generate(ecommerce_requirements).metadata
        assert metadata == {
            "requirement_count": 2,
            "architecture_template": "e-commerce-automation",
            "effective_complexity": "simple",
        }

    def test_empty_requirements(self, synthesizer):
        """Test an empty feed still yields a blueprint."""
        blueprint = synthesizer.generate([])
        assert blueprint.title == "General Automation System - Simple Implementation"
        assert blueprint.business_case.problem_statement == (
            "Manual processes require automation to improve efficiency and reduce errors"
        )

    def test_requires_list(self, synthesizer):
        """Test a bare string is a caller error."""
        with pytest.raises(PreconditionError):
            synthesizer.generate("automate orders")

    def test_markdown_report(self, synthesizer, ecommerce_requirements):
        """Test the markdown rendering carries the key figures."""
        report = synthesizer.generate(ecommerce_requirements).to_markdown()
        assert report.startswith("# Ecommerce Automation System - Simple Implementation")
        assert "**Total:** 4 weeks (101 hours)" in report
        assert "- Three-year ROI: 308%" in report


class TestConfigOverrides:
    """Test blueprint configuration knobs."""

    def test_complexity_override(self, synthesizer, ecommerce_requirements):
        """Test config complexity drives planning and risk."""
        blueprint = synthesizer.generate(
            ecommerce_requirements, BlueprintConfig(complexity=Complexity.COMPLEX)
        )
        assert blueprint.analysis.complexity == Complexity.SIMPLE
        assert blueprint.metadata["effective_complexity"] == "complex"
        assert blueprint.implementation_plan.phases[1].duration == "2-3 weeks"
        assert blueprint.implementation_plan.phases[1].risk_level == RiskLevel.HIGH
        assert blueprint.implementation_plan.total_hours == 149
        assert [r.id for r in blueprint.risk_assessment.risks] == ["tech-001", "bus-001"]
        assert "load testing" in blueprint.implementation_plan.testing_strategy

    def test_urgent_timeline(self, synthesizer, ecommerce_requirements):
        """Test an urgent timeline shortens setup."""
        plan = synthesizer.generate(
            ecommerce_requirements, BlueprintConfig(timeline=Timeline.URGENT)
        ).implementation_plan
        assert plan.phases[0].duration == "2-3 days"
        assert plan.phases[0].tasks[0].estimated_hours == 6
        assert plan.total_hours == 99
        assert plan.total_time_estimate == "3 weeks"

    def test_low_risk_tolerance(self, synthesizer, ecommerce_requirements):
        """Test low tolerance gives a phased rollout."""
        plan = synthesizer.generate(
            ecommerce_requirements, BlueprintConfig(risk_tolerance="low")
        ).implementation_plan
        assert plan.deployment_plan.startswith("Phased deployment approach")


class TestRiskAssessment:
    """Test risk selection and aggregation."""

    def test_complex_requirements_add_technical_risk(self, synthesizer):
        """Test analyzed complexity adds the technical risk."""
        blueprint = synthesizer.generate([{"category": "business-process", "text": "ai lead scoring with audit compliance"}])
        risks = blueprint.risk_assessment
        assert [r.id for r in risks.risks] == ["tech-001", "bus-001"]
        assert risks.overall_risk_level == RiskLevel.MEDIUM

    def test_many_integrations_add_operational_risk(self, synthesizer):
        """Test more than three integration keywords add the operational risk."""
        blueprint = synthesizer.generate([{"category": "integrations", "text": "api integration connect sync"}])
        assert [r.id for r in blueprint.risk_assessment.risks] == ["bus-001", "ops-001"]

    def test_overall_level_buckets(self):
        """Test empty risk lists are low."""
        assert overall_risk_level([]) == RiskLevel.LOW


class TestEstimators:
    """Test time-savings estimators."""

    def test_fixed_rejects_non_positive(self):
        """Test zero hours is invalid."""
        with pytest.raises(ValueError):
            FixedTimeSavingsEstimator(0)

    def test_random_is_seeded_and_bounded(self):
        """Test the same seed reproduces the estimate within 10..29."""
        first = RandomTimeSavingsEstimator(seed=7).estimate([])
        second = RandomTimeSavingsEstimator(seed=7).estimate([])
        assert first == second
        assert 10 <= first <= 29

    def test_estimator_receives_requirements(self, id_factory, ecommerce_requirements):
        """Test the injected estimator sees the normalized requirements."""
        estimator = MagicMock()
        estimator.estimate.return_value = 10
        synthesizer = BlueprintSynthesizer(id_factory=id_factory, estimator=estimator)

        blueprint = synthesizer.generate(ecommerce_requirements)

        estimator.estimate.assert_called_once()
        passed = estimator.estimate.call_args[0][0]
        assert all(isinstance(r, Requirement) for r in passed)
        assert len(passed) == 2
        assert blueprint.roi_projection.cost_savings_per_month == 2000
