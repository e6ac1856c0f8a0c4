"""Ordered keyword rule tables for intent classification and extraction.

Rules are evaluated top to bottom against the case-folded message; the first
rule with any keyword present as a substring wins. The keyword sets overlap
(e.g. "customers" vs "customer service"), so the order is part of the
behaviour.
"""

from typing import NamedTuple, Optional, Tuple

from contracts import Priority, RequirementCategory, TemplateCategory


BUSINESS_PROCESS = "business-process"
TECHNICAL_REQUIREMENT = "technical-requirement"
SCALE_REQUIREMENT = "scale-requirement"
GENERAL_INQUIRY = "general-inquiry"

GENERAL_CONFIDENCE = 0.5
# Fallback keywords keep words strictly longer than this
GENERAL_MIN_WORD_LENGTH = 3


class KeywordRule(NamedTuple):
    """One row of the intent table."""
    name: str
    keywords: Tuple[str, ...]
    intent: str
    category: RequirementCategory
    confidence: float
    labels: Tuple[str, ...]
    template_category: Optional[TemplateCategory] = None

    def matches(self, text: str) -> bool:
        """``text`` must already be case-folded."""
        return any(keyword in text for keyword in self.keywords)


INTENT_RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        name="ecommerce",
        keywords=("ecommerce", "e-commerce", "online store", "shop", "orders", "products"),
        intent=BUSINESS_PROCESS,
        category=RequirementCategory.BUSINESS_PROCESS,
        confidence=0.9,
        labels=("ecommerce",),
        template_category=TemplateCategory.E_COMMERCE,
    ),
    KeywordRule(
        name="crm-sales",
        keywords=("lead", "leads", "crm", "sales", "prospects", "customers"),
        intent=BUSINESS_PROCESS,
        category=RequirementCategory.BUSINESS_PROCESS,
        confidence=0.85,
        labels=("crm", "sales"),
        template_category=TemplateCategory.CRM_SALES,
    ),
    KeywordRule(
        name="marketing",
        keywords=("marketing", "email", "social media", "content", "campaigns"),
        intent=BUSINESS_PROCESS,
        category=RequirementCategory.BUSINESS_PROCESS,
        confidence=0.8,
        labels=("marketing",),
        template_category=TemplateCategory.MARKETING_AUTOMATION,
    ),
    KeywordRule(
        name="support",
        keywords=("support", "tickets", "customer service", "helpdesk"),
        intent=BUSINESS_PROCESS,
        category=RequirementCategory.BUSINESS_PROCESS,
        confidence=0.8,
        labels=("support",),
        template_category=TemplateCategory.CUSTOMER_SUPPORT,
    ),
    KeywordRule(
        name="technical",
        keywords=("api", "database", "integration", "webhook", "data"),
        intent=TECHNICAL_REQUIREMENT,
        category=RequirementCategory.TECHNICAL_SPECS,
        confidence=0.7,
        labels=("technical",),
        template_category=TemplateCategory.DATA_PROCESSING,
    ),
    KeywordRule(
        name="scale",
        keywords=("scale", "volume", "performance", "load", "capacity"),
        intent=SCALE_REQUIREMENT,
        category=RequirementCategory.SCALE_VOLUME,
        confidence=0.7,
        labels=("scale",),
    ),
)


def first_match(text: str, rules: Tuple[KeywordRule, ...] = INTENT_RULES) -> Optional[KeywordRule]:
    """Return the first rule matching case-folded ``text``, or None."""
    for rule in rules:
        if rule.matches(text):
            return rule
    return None


# =============================================================================
# Requirement extraction
# =============================================================================

AUTOMATION_TRIGGERS: Tuple[str, ...] = ("automate", "automation")
# Matched phrase: the trigger word plus up to 100 following characters, original case
AUTOMATION_PATTERN = r"(automate|automation).{0,100}"


class ExtractionRule(NamedTuple):
    """Template for requirements emitted when a trigger keyword is present."""
    category: RequirementCategory
    question: str
    priority: Priority
    confidence: float
    tags: Tuple[str, ...]


AUTOMATION_EXTRACTION = ExtractionRule(
    category=RequirementCategory.BUSINESS_PROCESS,
    question="What process needs automation?",
    priority=Priority.CRITICAL,
    confidence=0.8,
    tags=("automation", "process"),
)

INTEGRATION_TRIGGERS: Tuple[str, ...] = ("integrate", "connect", "sync", "api", "webhook")

INTEGRATION_EXTRACTION = ExtractionRule(
    category=RequirementCategory.INTEGRATIONS,
    question="What integration is needed for {keyword}?",
    priority=Priority.HIGH,
    confidence=0.7,
    tags=("integration",),
)


# =============================================================================
# Completeness and follow-up questions
# =============================================================================

COMPLETENESS_THRESHOLD = 0.8

CRITICAL_CATEGORIES: Tuple[RequirementCategory, ...] = (
    RequirementCategory.BUSINESS_PROCESS,
    RequirementCategory.TECHNICAL_SPECS,
    RequirementCategory.INTEGRATIONS,
    RequirementCategory.SCALE_VOLUME,
)

QUESTION_BANK = {
    RequirementCategory.BUSINESS_PROCESS: (
        "What specific business process or workflow would you like to automate?",
        "How is this process currently handled manually?",
        "What are the main pain points with the current process?",
        "Who are the key stakeholders involved in this process?",
        "What triggers the start of this process?",
        "What are the typical decision points in this workflow?",
        "How often does this process occur (daily, weekly, monthly)?",
        "What are the success criteria for this automation?",
    ),
    RequirementCategory.TECHNICAL_SPECS: (
        "What platforms or systems are currently involved?",
        "Do you have existing APIs or databases that need integration?",
        "What data formats are you working with?",
        "Are there any specific performance requirements?",
        "What level of real-time processing do you need?",
        "Do you need data transformation or validation steps?",
        "Are there any specific compliance or security requirements?",
        "What error handling and monitoring capabilities do you need?",
    ),
    RequirementCategory.INTEGRATIONS: (
        "Which third-party services do you currently use?",
        "What CRM, ERP, or other business systems need to connect?",
        "Do you have preferred cloud platforms (AWS, Azure, GCP)?",
        "Are there any legacy systems that need integration?",
        "What authentication methods are supported by your systems?",
        "Do you have webhook capabilities in your current tools?",
        "Are there any rate limiting considerations we should know about?",
        "What data synchronization requirements do you have?",
    ),
    RequirementCategory.SCALE_VOLUME: (
        "What is the current volume of transactions/data you process?",
        "What volume do you expect in 6-12 months?",
        "Are there peak usage periods we should plan for?",
        "Do you need the system to scale automatically?",
        "Are there any geographical distribution requirements?",
        "What are your uptime and availability requirements?",
        "Do you need redundancy and failover capabilities?",
        "What is the acceptable processing time for each workflow?",
    ),
    RequirementCategory.SECURITY_COMPLIANCE: (
        "What industry regulations do you need to comply with?",
        "Do you handle sensitive data (PII, financial, health)?",
        "What are your data retention and deletion requirements?",
        "Do you need audit logging and compliance reporting?",
        "What authentication and authorization controls are required?",
        "Are there data residency or sovereignty requirements?",
        "Do you need encryption at rest and in transit?",
        "What are your backup and disaster recovery needs?",
    ),
    RequirementCategory.BUDGET_TIMELINE: (
        "What is your budget range for this automation project?",
        "When do you need this system to be operational?",
        "Are there any critical deadlines or business events?",
        "Do you prefer a phased implementation approach?",
        "What ongoing maintenance and support do you expect?",
        "Do you have internal resources to manage the system?",
        "Are you open to SaaS solutions or prefer on-premise?",
        "What is your expected ROI timeline?",
    ),
}

# Categories asked about, in this order, when requirements are missing
QUESTION_ORDER: Tuple[RequirementCategory, ...] = tuple(QUESTION_BANK.keys())
MAX_NEXT_QUESTIONS = 3
