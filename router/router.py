"""Conversation router: owns the phase state machine.

discovery -> requirements   on the first business-process intent
requirements -> blueprint   when completeness > 0.8 (all four critical categories)
blueprint -> implementation after a blueprint was produced (mark_implementation)
"""

from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from contracts import (
    ConversationContext,
    ConversationPhase,
    IntentClassification,
    RequirementCategory,
    SearchFilters,
    WorkflowTemplate,
)
from librarian import TemplateStore
from router.classifier import RequirementClassifier, assess_completeness
from router.rules import (
    BUSINESS_PROCESS,
    COMPLETENESS_THRESHOLD,
    MAX_NEXT_QUESTIONS,
    QUESTION_BANK,
    QUESTION_ORDER,
)


SUMMARY_ANSWER_LIMIT = 100


class RoutingOutcome(BaseModel):
    """What happened to the conversation after one message."""
    phase: ConversationPhase = Field(...)
    previous_phase: ConversationPhase = Field(...)
    intent: IntentClassification = Field(...)
    completeness: float = Field(..., ge=0.0, le=1.0)
    missing_categories: List[RequirementCategory] = Field(default_factory=list)
    next_questions: List[str] = Field(default_factory=list)
    related_templates: List[WorkflowTemplate] = Field(default_factory=list)

    @property
    def transitioned(self) -> bool:
        return self.phase != self.previous_phase


class ConversationRouter:
    """Routes user messages through the conversation phases."""

    def __init__(
        self,
        store: TemplateStore,
        classifier: Optional[RequirementClassifier] = None,
        related_limit: int = 3,
    ):
        """Initialize the router.

        Args:
            store: Template store used to surface related templates.
            classifier: Optional custom classifier instance.
            related_limit: Maximum related templates returned per message.
        """
        self.store = store
        self.classifier = classifier or RequirementClassifier()
        self.related_limit = related_limit

    def handle(self, message: str, context: ConversationContext) -> RoutingOutcome:
        """Classify ``message``, update ``context`` and advance its phase.

        At most one phase transition happens per message.

        Args:
            message: Raw user utterance.
            context: The conversation's context (mutated).

        Returns:
            RoutingOutcome describing the new state.
        """
        previous = context.phase
        intent = self.classifier.classify(message, context)
        related: List[WorkflowTemplate] = []

        if previous == ConversationPhase.DISCOVERY:
            if intent.intent == BUSINESS_PROCESS:
                self._advance(context, ConversationPhase.REQUIREMENTS)
                related = self.related_templates(intent, context)
        elif previous == ConversationPhase.REQUIREMENTS:
            if assess_completeness(context.requirements) > COMPLETENESS_THRESHOLD:
                self._advance(context, ConversationPhase.BLUEPRINT)

        missing = self.missing_categories(context)
        return RoutingOutcome(
            phase=context.phase,
            previous_phase=previous,
            intent=intent,
            completeness=assess_completeness(context.requirements),
            missing_categories=missing,
            next_questions=self.next_questions(context),
            related_templates=related,
        )

    def mark_implementation(self, context: ConversationContext) -> bool:
        """Move a conversation whose blueprint has been produced into implementation."""
        return self._advance(context, ConversationPhase.IMPLEMENTATION)

    def _advance(self, context: ConversationContext, phase: ConversationPhase) -> bool:
        before = context.phase
        moved = context.advance_to(phase)
        if moved:
            logger.info(f"Conversation phase {before.value} -> {phase.value}")
        return moved

    def related_templates(
        self,
        intent: IntentClassification,
        context: ConversationContext,
    ) -> List[WorkflowTemplate]:
        """Templates in the matched rule's category, else recommendations."""
        hint = None
        for rule in self.classifier.rules:
            if rule.name == intent.rule:
                hint = rule.template_category
                break

        results: List[WorkflowTemplate] = []
        if hint is not None:
            results = self.store.search("", SearchFilters(category=hint))
        if not results:
            logger.debug("No templates in hinted category, falling back to recommend")
            texts = [r.answer for r in context.requirements]
            if context.history:
                texts.append(context.history[-1].content)
            results = self.store.recommend(texts)
        return results[:self.related_limit]

    def recommended_templates(self, context: ConversationContext, limit: int = 5) -> List[WorkflowTemplate]:
        """Recommendations from every requirement answer gathered so far."""
        return self.store.recommend([r.answer for r in context.requirements], limit=limit)

    @staticmethod
    def missing_categories(context: ConversationContext) -> List[RequirementCategory]:
        covered = context.covered_categories()
        return [c for c in QUESTION_ORDER if c not in covered]

    def next_questions(self, context: ConversationContext) -> List[str]:
        """First question of up to three missing categories, in fixed order."""
        questions = []
        for category in self.missing_categories(context):
            bank = QUESTION_BANK.get(category, ())
            if bank:
                questions.append(f"{category.display_name}: {bank[0]}")
        return questions[:MAX_NEXT_QUESTIONS]

    @staticmethod
    def summarize_requirements(context: ConversationContext) -> str:
        """Bullet list of the captured requirements."""
        if not context.requirements:
            return "No specific requirements captured yet."
        lines = []
        for req in context.requirements:
            answer = req.answer
            if len(answer) > SUMMARY_ANSWER_LIMIT:
                answer = answer[:SUMMARY_ANSWER_LIMIT] + "..."
            lines.append(f"- {req.category.display_name}: {answer}")
        return "\n".join(lines)
