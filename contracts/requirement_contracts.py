"""Requirement and conversation contracts."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum


class RequirementCategory(str, Enum):
    """Fixed set of requirement categories."""
    BUSINESS_PROCESS = "business-process"
    TECHNICAL_SPECS = "technical-specs"
    INTEGRATIONS = "integrations"
    SCALE_VOLUME = "scale-volume"
    SECURITY_COMPLIANCE = "security-compliance"
    USER_EXPERIENCE = "user-experience"
    BUDGET_TIMELINE = "budget-timeline"
    SUCCESS_METRICS = "success-metrics"

    @property
    def display_name(self) -> str:
        """Title-cased name, e.g. 'Business Process'."""
        return " ".join(word.capitalize() for word in self.value.split("-"))


class Priority(str, Enum):
    """Priority level for requirements and tasks."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConversationPhase(str, Enum):
    """Conversation phases. Strictly advances, never regresses."""
    DISCOVERY = "discovery"
    REQUIREMENTS = "requirements"
    BLUEPRINT = "blueprint"
    IMPLEMENTATION = "implementation"

    @property
    def order(self) -> int:
        return list(ConversationPhase).index(self)


class Requirement(BaseModel):
    """A single categorized fact extracted from one user utterance."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    category: RequirementCategory = Field(...)
    question: str = Field("", description="The question this requirement answers")
    answer: str = Field(..., min_length=1, description="The requirement text")
    priority: Priority = Field(Priority.MEDIUM)
    confidence: float = Field(0.5, ge=0.0, le=1.0)
    follow_up_needed: bool = Field(False)
    tags: List[str] = Field(default_factory=list)


class MessageRole(str, Enum):
    """Who authored a conversation message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """One entry of the conversation history."""
    role: MessageRole = Field(...)
    content: str = Field(...)
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ConversationContext(BaseModel):
    """State owned by a single conversation."""
    phase: ConversationPhase = Field(ConversationPhase.DISCOVERY)
    requirements: List[Requirement] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)
    history: List[Message] = Field(default_factory=list)

    def advance_to(self, phase: ConversationPhase) -> bool:
        """Move forward to ``phase``. Returns False (and stays put) for a backwards move."""
        if phase.order <= self.phase.order:
            return False
        self.phase = phase
        return True

    def add_requirements(self, requirements: List[Requirement]) -> None:
        self.requirements.extend(requirements)

    def covered_categories(self) -> set:
        return {r.category for r in self.requirements}


class IntentClassification(BaseModel):
    """Result of classifying one user message."""
    intent: str = Field(..., description="business-process, technical-requirement, scale-requirement or general-inquiry")
    category: Optional[RequirementCategory] = Field(None)
    confidence: float = Field(..., ge=0.0, le=1.0)
    keywords: List[str] = Field(default_factory=list)
    rule: Optional[str] = Field(None, description="Name of the keyword rule that matched")
    extracted_requirements: List[Requirement] = Field(default_factory=list)
