"""Tests for intent classification and requirement extraction."""

import pytest

from contracts import ConversationContext, MessageRole, Priority, Requirement, RequirementCategory
from errors import PreconditionError
from router import assess_completeness, normalize_requirements


class TestClassifyIntent:
    """Test the ordered intent rule table."""

    def test_ecommerce(self, classifier):
        """Test e-commerce wording maps to business-process."""
        result = classifier.classify_intent("Automate e-commerce order processing")
        assert result.intent == "business-process"
        assert result.category == RequirementCategory.BUSINESS_PROCESS
        assert result.confidence == 0.9
        assert result.keywords == ["ecommerce"]
        assert result.rule == "ecommerce"

    def test_crm_rule_precedes_support(self, classifier):
        """Test 'customers' hits the CRM rule before support is checked."""
        result = classifier.classify_intent("Our customers open support tickets")
        assert result.rule == "crm-sales"
        assert result.keywords == ["crm", "sales"]
        assert result.confidence == 0.85

    def test_support(self, classifier):
        """Test helpdesk wording."""
        result = classifier.classify_intent("Route customer service requests from the helpdesk")
        assert result.rule == "support"
        assert result.confidence == 0.8

    def test_technical(self, classifier):
        """Test technical wording maps to technical-specs."""
        result = classifier.classify_intent("Connect our API")
        assert result.intent == "technical-requirement"
        assert result.category == RequirementCategory.TECHNICAL_SPECS
        assert result.confidence == 0.7

    def test_scale(self, classifier):
        """Test scale wording maps to scale-volume."""
        result = classifier.classify_intent("We need more capacity")
        assert result.intent == "scale-requirement"
        assert result.category == RequirementCategory.SCALE_VOLUME

    def test_general_inquiry(self, classifier):
        """Test the fallback keeps words longer than three characters."""
        result = classifier.classify_intent("hello there my friend")
        assert result.intent == "general-inquiry"
        assert result.category is None
        assert result.confidence == 0.5
        assert result.keywords == ["hello", "there", "friend"]
        assert result.rule is None

    def test_rejects_non_string(self, classifier):
        """Test a non-string message is a caller error."""
        with pytest.raises(PreconditionError):
            classifier.classify_intent(None)


class TestExtractRequirements:
    """Test trigger-phrase extraction."""

    def test_automation_phrase(self, classifier):
        """Test the matched phrase keeps original case."""
        requirements = classifier.extract_requirements("Please Automate invoice approvals")
        assert len(requirements) == 1
        req = requirements[0]
        assert req.category == RequirementCategory.BUSINESS_PROCESS
        assert req.answer == "Automate invoice approvals"
        assert req.priority == Priority.CRITICAL
        assert req.confidence == 0.8
        assert req.follow_up_needed
        assert req.tags == ["automation", "process"]
        assert req.id == "id-1"

    def test_automation_phrase_is_capped(self, classifier):
        """Test at most 100 characters follow the trigger word."""
        message = "automation " + "x" * 200
        req = classifier.extract_requirements(message)[0]
        assert req.answer == message[:110]

    def test_one_requirement_per_integration_keyword(self, classifier):
        """Test each present keyword yields its own requirement."""
        message = "Connect the API and sync nightly"
        requirements = classifier.extract_requirements(message)
        assert [r.question for r in requirements] == [
            "What integration is needed for connect?",
            "What integration is needed for sync?",
            "What integration is needed for api?",
        ]
        assert all(r.answer == message for r in requirements)
        assert all(r.category == RequirementCategory.INTEGRATIONS for r in requirements)
        assert requirements[0].tags == ["integration", "connect"]
        assert requirements[0].priority == Priority.HIGH

    def test_nothing_to_extract(self, classifier):
        """Test plain messages yield nothing."""
        assert classifier.extract_requirements("hello there") == []


class TestClassifyInContext:
    """Test classification that updates a conversation."""

    def test_records_history_and_requirements(self, classifier):
        """Test the message and extracted requirements land in the context."""
        context = ConversationContext()
        result = classifier.classify("Automate order sync with our shop", context)

        assert result.rule == "ecommerce"
        assert len(result.extracted_requirements) == 2
        assert context.requirements == result.extracted_requirements
        assert len(context.history) == 1
        assert context.history[0].role == MessageRole.USER
        assert context.history[0].metadata["intent"] == "business-process"

    def test_rejects_non_context(self, classifier):
        """Test a dict is not a conversation context."""
        with pytest.raises(PreconditionError):
            classifier.classify("hello", {})


class TestCompleteness:
    """Test critical-category coverage."""

    def test_complete(self, complete_requirements, id_factory):
        """Test all four critical categories give 1.0."""
        assert assess_completeness(normalize_requirements(complete_requirements, id_factory)) == 1.0

    def test_repeats_do_not_count(self, id_factory):
        """Test coverage is set-based."""
        requirements = normalize_requirements(
            [{"category": "integrations", "text": f"service {n}"} for n in range(5)],
            id_factory,
        )
        assert assess_completeness(requirements) == 0.25

    def test_non_critical_categories_ignored(self, id_factory):
        """Test only the four critical categories count."""
        requirements = normalize_requirements(
            [{"category": "security-compliance", "text": "SOC 2"}], id_factory
        )
        assert assess_completeness(requirements) == 0.0
        assert assess_completeness([]) == 0.0


class TestNormalizeRequirements:
    """Test requirement feed normalization."""

    def test_explicit_category(self, id_factory):
        """Test records with a category keep it."""
        result = normalize_requirements(
            [{"category": "scale-volume", "text": "1000 orders a day", "priority": "critical"}],
            id_factory,
        )
        assert result[0].category == RequirementCategory.SCALE_VOLUME
        assert result[0].answer == "1000 orders a day"
        assert result[0].priority == Priority.CRITICAL
        assert result[0].id == "id-1"

    def test_missing_category_uses_intent(self, id_factory):
        """Test a record without category is classified."""
        result = normalize_requirements(
            [{"text": "Connect our API"}, {"text": "hello there"}],
            id_factory,
        )
        assert result[0].category == RequirementCategory.TECHNICAL_SPECS
        assert result[1].category == RequirementCategory.BUSINESS_PROCESS

    def test_answer_alias_and_explicit_id(self):
        """Test 'answer' stands in for 'text' and ids are kept."""
        result = normalize_requirements([{"id": "r-7", "category": "integrations", "answer": "Stripe"}])
        assert result[0].id == "r-7"
        assert result[0].answer == "Stripe"

    def test_requirement_instances_pass_through(self):
        """Test Requirement models are kept as is."""
        req = Requirement(id="x", category="integrations", answer="HubSpot")
        assert normalize_requirements([req]) == [req]

    def test_bad_records_are_skipped(self, id_factory):
        """Test unknown categories, blank text and non-records are dropped."""
        result = normalize_requirements(
            [
                {"category": "astrology", "text": "stars"},
                {"category": "integrations", "text": "   "},
                {"category": "integrations"},
                "plain string",
                {"category": "integrations", "text": "Slack", "confidence": 7},
                {"category": "integrations", "text": "Slack"},
            ],
            id_factory,
        )
        assert [r.answer for r in result] == ["Slack"]

    def test_requires_list(self):
        """Test a single record is a caller error."""
        with pytest.raises(PreconditionError):
            normalize_requirements({"category": "integrations", "text": "x"})
