"""Tests for the conversation router and its phase state machine."""

from unittest.mock import MagicMock

from contracts import (
    ConversationContext,
    ConversationPhase,
    RequirementCategory,
    TemplateCategory,
)
from librarian import TemplateStore
from router import ConversationRouter, normalize_requirements


def context_with(records, phase=ConversationPhase.DISCOVERY):
    context = ConversationContext(phase=phase)
    context.add_requirements(normalize_requirements(records))
    return context


class TestPhaseTransitions:
    """Test discovery -> requirements -> blueprint -> implementation."""

    def test_business_intent_leaves_discovery(self, store, classifier):
        """Test the first business-process message opens requirements."""
        router = ConversationRouter(store, classifier=classifier)
        context = ConversationContext()

        outcome = router.handle("Automate our e-commerce orders", context)

        assert outcome.previous_phase == ConversationPhase.DISCOVERY
        assert outcome.phase == ConversationPhase.REQUIREMENTS
        assert outcome.transitioned
        assert [t.id for t in outcome.related_templates] == ["ecommerce-order-processing"]

    def test_other_intents_stay_in_discovery(self, store, classifier):
        """Test technical messages do not move discovery."""
        router = ConversationRouter(store, classifier=classifier)
        context = ConversationContext()

        outcome = router.handle("Connect our API", context)

        assert outcome.phase == ConversationPhase.DISCOVERY
        assert not outcome.transitioned
        assert outcome.related_templates == []
        assert len(context.requirements) == 2

    def test_complete_requirements_open_blueprint(self, store, classifier, complete_requirements):
        """Test full critical coverage moves requirements to blueprint."""
        router = ConversationRouter(store, classifier=classifier)
        context = context_with(complete_requirements, ConversationPhase.REQUIREMENTS)

        outcome = router.handle("that is everything", context)

        assert outcome.phase == ConversationPhase.BLUEPRINT
        assert outcome.completeness == 1.0

    def test_three_of_four_is_not_enough(self, store, classifier, complete_requirements):
        """Test completeness must exceed 0.8."""
        router = ConversationRouter(store, classifier=classifier)
        context = context_with(complete_requirements[:3], ConversationPhase.REQUIREMENTS)

        outcome = router.handle("that is everything", context)

        assert outcome.phase == ConversationPhase.REQUIREMENTS
        assert outcome.completeness == 0.75
        assert outcome.missing_categories[0] == RequirementCategory.SCALE_VOLUME

    def test_one_transition_per_message(self, store, classifier, complete_requirements):
        """Test discovery never jumps straight to blueprint."""
        router = ConversationRouter(store, classifier=classifier)
        context = context_with(complete_requirements)

        outcome = router.handle("We sell products online", context)
        assert outcome.phase == ConversationPhase.REQUIREMENTS

        outcome = router.handle("anything else", context)
        assert outcome.phase == ConversationPhase.BLUEPRINT

    def test_mark_implementation(self, store):
        """Test implementation follows a produced blueprint, once."""
        router = ConversationRouter(store)
        context = ConversationContext(phase=ConversationPhase.BLUEPRINT)

        assert router.mark_implementation(context)
        assert context.phase == ConversationPhase.IMPLEMENTATION
        assert not router.mark_implementation(context)

    def test_later_phases_ignore_messages(self, store, classifier):
        """Test blueprint and implementation do not regress."""
        router = ConversationRouter(store, classifier=classifier)
        context = ConversationContext(phase=ConversationPhase.IMPLEMENTATION)

        outcome = router.handle("Automate our shop", context)

        assert outcome.phase == ConversationPhase.IMPLEMENTATION


class TestRelatedTemplates:
    """Test template suggestions surfaced while routing."""

    def test_category_hint_uses_search(self, classifier):
        """Test the matched rule's template category drives a browse."""
        store = MagicMock(spec=TemplateStore)
        store.search.return_value = []
        store.recommend.return_value = []
        router = ConversationRouter(store, classifier=classifier)

        router.handle("We need help with our sales leads", ConversationContext())

        filters = store.search.call_args[0][1]
        assert filters.category == TemplateCategory.CRM_SALES
        store.recommend.assert_called_once()

    def test_empty_category_falls_back_to_recommend(self, classifier):
        """Test recommendations replace an empty category browse."""
        store = TemplateStore([{
            "id": "shop-sync",
            "name": "Shop Lead Sync",
            "category": "crm-sales",
            "popularity": 10,
        }])
        router = ConversationRouter(store, classifier=classifier)

        outcome = router.handle("shop", ConversationContext())

        assert [t.id for t in outcome.related_templates] == ["shop-sync"]

    def test_related_limit(self, classifier):
        """Test the number of suggestions is capped."""
        store = TemplateStore([
            {"id": f"t{n}", "name": f"Order flow {n}", "category": "e-commerce"} for n in range(5)
        ])
        router = ConversationRouter(store, classifier=classifier, related_limit=2)

        outcome = router.handle("online store orders", ConversationContext())

        assert len(outcome.related_templates) == 2

    def test_recommended_templates(self, store, classifier):
        """Test recommendations come from requirement answers."""
        router = ConversationRouter(store, classifier=classifier)
        context = context_with([{"category": "business-process", "text": "lead scoring"}])
        assert [t.id for t in router.recommended_templates(context)] == ["lead-scoring-qualification"]


class TestQuestions:
    """Test follow-up questions and summaries."""

    def test_next_questions_for_empty_context(self, store):
        """Test the first three missing categories are asked in order."""
        router = ConversationRouter(store)
        questions = router.next_questions(ConversationContext())
        assert questions == [
            "Business Process: What specific business process or workflow would you like to automate?",
            "Technical Specs: What platforms or systems are currently involved?",
            "Integrations: Which third-party services do you currently use?",
        ]

    def test_missing_categories_skip_covered(self, store):
        """Test covered categories are not asked again."""
        context = context_with([{"category": "business-process", "text": "invoices"}])
        assert ConversationRouter.missing_categories(context) == [
            RequirementCategory.TECHNICAL_SPECS,
            RequirementCategory.INTEGRATIONS,
            RequirementCategory.SCALE_VOLUME,
            RequirementCategory.SECURITY_COMPLIANCE,
            RequirementCategory.BUDGET_TIMELINE,
        ]

    def test_summary(self):
        """Test bullet summary with truncation."""
        assert ConversationRouter.summarize_requirements(ConversationContext()) == (
            "No specific requirements captured yet."
        )
        context = context_with([
            {"category": "integrations", "text": "Stripe"},
            {"category": "business-process", "text": "y" * 150},
        ])
        lines = ConversationRouter.summarize_requirements(context).split("\n")
        assert lines[0] == "- Integrations: Stripe"
        assert lines[1] == "- Business Process: " + "y" * 100 + "..."
