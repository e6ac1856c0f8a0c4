"""Requirement classifier: intent detection and requirement extraction.

Keyword-driven, no model calls. Intent comes from the first matching rule in
``router.rules.INTENT_RULES``; requirement extraction runs independently of
intent, so a single message can yield several requirements.
"""

import re
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from loguru import logger
from pydantic import ValidationError

from contracts import (
    ConversationContext,
    IntentClassification,
    Message,
    MessageRole,
    Requirement,
    RequirementCategory,
)
from errors import PreconditionError, require_list
from router.rules import (
    AUTOMATION_EXTRACTION,
    AUTOMATION_PATTERN,
    AUTOMATION_TRIGGERS,
    CRITICAL_CATEGORIES,
    GENERAL_CONFIDENCE,
    GENERAL_INQUIRY,
    GENERAL_MIN_WORD_LENGTH,
    INTEGRATION_EXTRACTION,
    INTEGRATION_TRIGGERS,
    INTENT_RULES,
    KeywordRule,
    first_match,
)


IdFactory = Callable[[], str]


def new_id() -> str:
    return uuid.uuid4().hex


class RequirementClassifier:
    """Classifies user messages and extracts Requirement records."""

    def __init__(
        self,
        id_factory: Optional[IdFactory] = None,
        rules: Iterable[KeywordRule] = INTENT_RULES,
    ):
        """Initialize the classifier.

        Args:
            id_factory: Zero-arg callable producing requirement ids.
                Defaults to uuid4 hex.
            rules: Ordered intent rules; first match wins.
        """
        self.id_factory = id_factory or new_id
        self.rules = tuple(rules)
        self._automation_re = re.compile(AUTOMATION_PATTERN, re.IGNORECASE)

    def classify_intent(self, message: str) -> IntentClassification:
        """Classify ``message`` against the ordered rule table.

        Returns:
            IntentClassification without extracted requirements. No rule
            matching yields ``general-inquiry`` at confidence 0.5 with the
            message's longer words as keywords.
        """
        if not isinstance(message, str):
            raise PreconditionError(f"message must be a string, got {type(message).__name__}")

        text = message.casefold()
        rule = first_match(text, self.rules)
        if rule is None:
            words = [w for w in text.split(" ") if len(w) > GENERAL_MIN_WORD_LENGTH]
            return IntentClassification(
                intent=GENERAL_INQUIRY,
                category=None,
                confidence=GENERAL_CONFIDENCE,
                keywords=words,
            )

        return IntentClassification(
            intent=rule.intent,
            category=rule.category,
            confidence=rule.confidence,
            keywords=list(rule.labels),
            rule=rule.name,
        )

    def extract_requirements(self, message: str) -> List[Requirement]:
        """Scan ``message`` for automation and integration trigger phrases.

        - "automate"/"automation": one business-process requirement whose
          answer is the matched phrase.
        - each of integrate, connect, sync, api, webhook present: one
          integrations requirement whose answer is the full message.
        """
        if not isinstance(message, str):
            raise PreconditionError(f"message must be a string, got {type(message).__name__}")

        text = message.casefold()
        requirements: List[Requirement] = []

        if any(trigger in text for trigger in AUTOMATION_TRIGGERS):
            match = self._automation_re.search(message)
            if match:
                rule = AUTOMATION_EXTRACTION
                requirements.append(Requirement(
                    id=self.id_factory(),
                    category=rule.category,
                    question=rule.question,
                    answer=match.group(0),
                    priority=rule.priority,
                    confidence=rule.confidence,
                    follow_up_needed=True,
                    tags=list(rule.tags),
                ))

        for keyword in INTEGRATION_TRIGGERS:
            if keyword in text:
                rule = INTEGRATION_EXTRACTION
                requirements.append(Requirement(
                    id=self.id_factory(),
                    category=rule.category,
                    question=rule.question.format(keyword=keyword),
                    answer=message,
                    priority=rule.priority,
                    confidence=rule.confidence,
                    follow_up_needed=True,
                    tags=[*rule.tags, keyword],
                ))

        return requirements

    def classify(self, message: str, context: ConversationContext) -> IntentClassification:
        """Classify a user message within a conversation.

        Records the message in the context history and appends any extracted
        requirements to the context.

        Args:
            message: Raw user utterance.
            context: The conversation's context (mutated).

        Returns:
            IntentClassification including the extracted requirements.
        """
        if not isinstance(context, ConversationContext):
            raise PreconditionError(
                f"context must be a ConversationContext, got {type(context).__name__}"
            )

        intent = self.classify_intent(message)
        extracted = self.extract_requirements(message)

        context.history.append(Message(
            role=MessageRole.USER,
            content=message,
            metadata={"intent": intent.intent, "confidence": intent.confidence},
        ))
        context.add_requirements(extracted)

        logger.debug(
            f"Classified message as {intent.intent} ({intent.confidence}); "
            f"extracted {len(extracted)} requirement(s)"
        )
        return intent.model_copy(update={"extracted_requirements": extracted})


# =============================================================================
# Completeness
# =============================================================================

def assess_completeness(requirements: List[Requirement]) -> float:
    """Fraction of critical categories present (set-based, so repeats don't count)."""
    covered: Set[RequirementCategory] = {r.category for r in requirements}
    hits = sum(1 for category in CRITICAL_CATEGORIES if category in covered)
    return hits / len(CRITICAL_CATEGORIES)


# =============================================================================
# Requirement feed normalization
# =============================================================================

def normalize_requirements(
    records: Any,
    id_factory: Optional[IdFactory] = None,
) -> List[Requirement]:
    """Turn a requirement feed into Requirement records.

    Accepts Requirement instances or ``{category?, text}`` dicts (``answer``
    is accepted in place of ``text``). A dict without a category is given
    the category of its classified intent, falling back to business-process.
    Records with missing or empty text, or with an unknown category, are
    skipped with a warning.

    Raises:
        PreconditionError: If ``records`` is not a list.
    """
    items = require_list(records, "requirements")
    make_id = id_factory or new_id
    classifier: Optional[RequirementClassifier] = None

    requirements: List[Requirement] = []
    for index, item in enumerate(items):
        if isinstance(item, Requirement):
            requirements.append(item)
            continue
        if not isinstance(item, dict):
            logger.warning(f"Skipping requirement #{index}: not a record ({type(item).__name__})")
            continue

        text = item.get("text", item.get("answer"))
        if not isinstance(text, str) or not text.strip():
            logger.warning(f"Skipping requirement #{index}: missing text")
            continue

        raw_category = item.get("category")
        if raw_category is None:
            if classifier is None:
                classifier = RequirementClassifier(id_factory=make_id)
            category = classifier.classify_intent(text).category or RequirementCategory.BUSINESS_PROCESS
        else:
            try:
                category = RequirementCategory(raw_category)
            except ValueError:
                logger.warning(f"Skipping requirement #{index}: unknown category '{raw_category}'")
                continue

        fields: Dict[str, Any] = {
            k: v for k, v in item.items()
            if k in ("question", "priority", "confidence", "follow_up_needed", "tags")
        }
        try:
            requirements.append(Requirement(
                id=str(item.get("id") or make_id()),
                category=category,
                answer=text,
                **fields,
            ))
        except ValidationError as e:
            logger.warning(f"Skipping requirement #{index}: {e.error_count()} validation error(s)")

    return requirements
