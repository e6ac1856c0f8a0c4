"""Architecture builder: components, data flow, integration specs, security, scaling."""

from typing import Dict, List, Optional, Tuple

from loguru import logger

from contracts import (
    Architecture,
    ArchitectureTemplate,
    Component,
    ComponentType,
    DataFlowStep,
    DataVolume,
    IntegrationSpec,
    Requirement,
    RequirementAnalysis,
)
from blueprint.analyzer import (
    combined_text,
    requires_ai,
    requires_data_processing,
    requires_storage,
)


ARCHITECTURE_TEMPLATES: Dict[str, ArchitectureTemplate] = {
    "e-commerce-automation": ArchitectureTemplate(
        key="e-commerce-automation",
        components=("order-processor", "inventory-manager", "notification-system", "analytics-engine"),
        integrations=("payment-gateway", "shipping-api", "crm-system", "email-service"),
        security_requirements=("pci-compliance", "data-encryption", "audit-logging"),
        scalability_patterns=("horizontal-scaling", "load-balancing", "caching-layer"),
    ),
    "crm-sales-automation": ArchitectureTemplate(
        key="crm-sales-automation",
        components=("lead-capture", "scoring-engine", "nurturing-system", "reporting-dashboard"),
        integrations=("web-forms", "email-marketing", "calendar-system", "communication-tools"),
        security_requirements=("data-privacy", "access-controls", "backup-systems"),
        scalability_patterns=("database-optimization", "api-rate-limiting", "queue-management"),
    ),
    "data-processing-pipeline": ArchitectureTemplate(
        key="data-processing-pipeline",
        components=("data-ingestion", "transformation-engine", "validation-system", "storage-layer"),
        integrations=("data-sources", "etl-tools", "analytics-platforms", "monitoring-systems"),
        security_requirements=("data-governance", "encryption", "compliance-reporting"),
        scalability_patterns=("stream-processing", "distributed-computing", "data-partitioning"),
    ),
}

GENERIC_TEMPLATE = ArchitectureTemplate(
    key="generic",
    components=("trigger-system", "processing-engine", "integration-layer", "monitoring-system"),
    integrations=("external-apis", "databases", "notification-services"),
    security_requirements=("authentication", "authorization", "data-protection"),
    scalability_patterns=("load-balancing", "caching", "monitoring"),
)

DOMAIN_TEMPLATE_KEYS: Dict[str, str] = {
    "ecommerce": "e-commerce-automation",
    "sales": "crm-sales-automation",
    "crm": "crm-sales-automation",
    "data": "data-processing-pipeline",
}


def select_architecture_template(domain: str) -> ArchitectureTemplate:
    """Exact domain lookup; unmatched domains get the generic template."""
    key = DOMAIN_TEMPLATE_KEYS.get(domain)
    if key is None:
        logger.debug(f"No architecture template for domain '{domain}', using generic")
        return GENERIC_TEMPLATE
    return ARCHITECTURE_TEMPLATES[key]


# =============================================================================
# Components
# =============================================================================

# (keyword, node hints) for the integration layer, in order
INTEGRATION_NODE_HINTS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("google", ("google-sheets", "gmail")),
    ("slack", ("slack",)),
    ("hubspot", ("hubspot",)),
    ("salesforce", ("salesforce",)),
    ("stripe", ("stripe",)),
    ("email", ("email-send", "imap-email")),
)


def integration_node_hints(text: str) -> List[str]:
    hints = ["http-request"]
    for keyword, nodes in INTEGRATION_NODE_HINTS:
        if keyword in text:
            hints.extend(nodes)
    return hints


def build_components(text: str) -> List[Component]:
    """Components in fixed order; trigger, integrator and notifier are always present."""
    components = [
        Component(
            name="Trigger System",
            type=ComponentType.TRIGGER,
            description="Initiates workflows based on events, schedules, or manual triggers",
            node_hints=["webhook", "cron", "manual-trigger", "email-trigger"],
            dependencies=["External event sources"],
            configuration={
                "webhook-security": "Required for external triggers",
                "scheduling": "Cron expressions for time-based triggers",
                "retry-logic": "Automatic retry on failures",
            },
        )
    ]

    if requires_data_processing(text):
        components.append(Component(
            name="Data Processing Engine",
            type=ComponentType.PROCESSOR,
            description="Transforms, validates, and enriches data",
            node_hints=["function", "json", "xml", "set", "merge", "item-lists"],
            dependencies=["Input data sources"],
            configuration={
                "validation-rules": "Data quality checks",
                "transformation-logic": "Business rule implementation",
                "error-handling": "Graceful error recovery",
            },
        ))

    if requires_ai(text):
        components.append(Component(
            name="AI Decision Engine",
            type=ComponentType.PROCESSOR,
            description="AI-powered decision making and content generation",
            node_hints=["openai", "anthropic", "google-ai", "hugging-face"],
            dependencies=["AI API services"],
            configuration={
                "model-selection": "Appropriate AI models for tasks",
                "prompt-engineering": "Optimized prompts for consistent results",
                "rate-limiting": "API quota management",
            },
        ))

    components.append(Component(
        name="Integration Layer",
        type=ComponentType.INTEGRATOR,
        description="Connects with external systems and services",
        node_hints=integration_node_hints(text),
        dependencies=["External system APIs"],
        configuration={
            "authentication": "OAuth, API keys, or other auth methods",
            "rate-limiting": "Respect external API limits",
            "fallback-strategies": "Handle integration failures gracefully",
        },
    ))

    if requires_storage(text):
        components.append(Component(
            name="Data Storage",
            type=ComponentType.STORAGE,
            description="Persistent data storage and retrieval",
            node_hints=["postgres", "mysql", "mongodb", "redis", "google-sheets"],
            dependencies=["Database systems"],
            configuration={
                "backup-strategy": "Regular automated backups",
                "performance-optimization": "Indexed queries and caching",
                "security": "Encrypted storage and access controls",
            },
        ))

    components.append(Component(
        name="Notification System",
        type=ComponentType.NOTIFIER,
        description="Sends notifications and updates to users",
        node_hints=["email-send", "slack", "discord", "sms", "push-notifications"],
        dependencies=["Communication services"],
        configuration={
            "template-management": "Dynamic message templates",
            "delivery-tracking": "Monitor notification success",
            "personalization": "User-specific messaging",
        },
    ))
    return components


def build_data_flow(text: str) -> List[DataFlowStep]:
    """Trigger, optional transformation, optional AI, integration, notification."""
    stages = [
        (
            "Initial trigger receives data or event",
            "External trigger (webhook, schedule, manual)",
            "Validate trigger data and extract relevant information",
            "Processing engine",
            "Log error and send notification to administrators",
        )
    ]
    if requires_data_processing(text):
        stages.append((
            "Data transformation and enrichment",
            "Raw trigger data",
            "Apply business rules, validate, transform, and enrich data",
            "Integration layer or AI engine",
            "Retry with exponential backoff, fallback to manual review",
        ))
    if requires_ai(text):
        stages.append((
            "AI-powered analysis and decision making",
            "Processed data",
            "AI analysis, classification, or content generation",
            "Decision routing system",
            "Use fallback rules if AI service is unavailable",
        ))
    stages.append((
        "External system integration",
        "Processed and analyzed data",
        "Format data for external systems and execute API calls",
        "Target systems (CRM, database, etc.)",
        "Queue for retry, notify on persistent failures",
    ))
    stages.append((
        "Result notification and logging",
        "Integration results",
        "Generate status reports and user notifications",
        "Users, dashboards, logs",
        "Ensure notifications are delivered despite failures",
    ))

    return [
        DataFlowStep(
            step=i,
            description=description,
            input_source=source,
            processing=processing,
            output_destination=destination,
            error_handling=error_handling,
        )
        for i, (description, source, processing, destination, error_handling) in enumerate(stages, 1)
    ]


# =============================================================================
# Integration specs
# =============================================================================

SERVICE_KEYWORDS: Tuple[Tuple[str, str], ...] = (
    ("hubspot", "HubSpot"),
    ("salesforce", "Salesforce"),
    ("stripe", "Stripe"),
    ("paypal", "PayPal"),
    ("shopify", "Shopify"),
    ("woocommerce", "WooCommerce"),
    ("gmail", "Gmail"),
    ("outlook", "Outlook"),
    ("slack", "Slack"),
    ("discord", "Discord"),
    ("trello", "Trello"),
    ("asana", "Asana"),
    ("jira", "Jira"),
)

KNOWN_SERVICE_SPECS: Dict[str, IntegrationSpec] = {
    "HubSpot": IntegrationSpec(
        service="HubSpot CRM",
        purpose="Contact and deal management",
        data_exchanged=["Contact information", "Deal data", "Activity logs"],
        auth_method="OAuth 2.0 or API key",
        rate_limit=100,
        fallback_strategy="Queue updates for retry during rate limit periods",
    ),
    "Stripe": IntegrationSpec(
        service="Stripe Payments",
        purpose="Payment processing and subscription management",
        data_exchanged=["Payment data", "Customer information", "Subscription details"],
        auth_method="API key (secret key for server-side)",
        rate_limit=100,
        fallback_strategy="Use webhook notifications for reliable payment status updates",
    ),
}

DEFAULT_INTEGRATION = IntegrationSpec(
    service="External API",
    purpose="Exchange data with the target system over HTTP",
    data_exchanged=["Processed records", "Status updates"],
    auth_method="API key or bearer token",
    rate_limit=None,
    fallback_strategy="Queue requests for retry when the endpoint is unavailable",
)


def extract_mentioned_services(text: str) -> List[str]:
    return [service for keyword, service in SERVICE_KEYWORDS if keyword in text]


def service_spec(service: str) -> IntegrationSpec:
    """Known spec for ``service``, else a generic one."""
    spec = KNOWN_SERVICE_SPECS.get(service)
    if spec is not None:
        return spec
    return IntegrationSpec(
        service=service,
        purpose=f"Exchange data with {service}",
        data_exchanged=["Records", "Status updates"],
        auth_method="OAuth 2.0 or API key",
        rate_limit=None,
        fallback_strategy="Queue requests for retry on failure",
    )


def build_integration_specs(text: str) -> List[IntegrationSpec]:
    specs = [service_spec(s) for s in extract_mentioned_services(text)]
    if not specs:
        logger.debug("No known services mentioned, using generic External API integration")
        specs.append(DEFAULT_INTEGRATION)
    return specs


# =============================================================================
# Security and scalability
# =============================================================================

BASELINE_SECURITY: Tuple[str, ...] = (
    "API key and credential management using environment variables",
    "Data encryption in transit using HTTPS",
    "Input validation and sanitization",
    "Error handling without exposing sensitive information",
)

# (keywords, considerations added when any keyword is present)
SECURITY_RULES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (
        ("payment", "financial"),
        ("PCI DSS compliance for payment data", "Secure storage of financial information"),
    ),
    (
        ("personal", "customer data"),
        ("GDPR/CCPA compliance for personal data", "Data retention and deletion policies"),
    ),
    (
        ("healthcare", "medical"),
        ("HIPAA compliance for health information", "Audit logging for all data access"),
    ),
)


def build_security_considerations(text: str, template: Optional[ArchitectureTemplate] = None) -> List[str]:
    considerations = list(BASELINE_SECURITY)
    for keywords, additions in SECURITY_RULES:
        if any(k in text for k in keywords):
            considerations.extend(additions)
    if template is not None:
        considerations.extend(f"Domain requirement: {req}" for req in template.security_requirements)
    return considerations


def build_scalability_plan(analysis: RequirementAnalysis, template: Optional[ArchitectureTemplate] = None) -> str:
    plan = "Horizontal scaling approach with "
    if analysis.data_volume in (DataVolume.HIGH, DataVolume.VERY_HIGH):
        plan += "distributed processing, queue-based architecture, and database optimization. "
    else:
        plan += "load balancing and caching layers. "
    if analysis.integration_count > 5:
        plan += "API rate limiting and connection pooling for multiple integrations. "
    plan += "Monitoring and auto-scaling capabilities for peak demand periods."
    if template is not None and template.scalability_patterns:
        plan += f" Recommended patterns: {', '.join(template.scalability_patterns)}."
    return plan


def build_architecture(
    requirements: List[Requirement],
    analysis: RequirementAnalysis,
    template: Optional[ArchitectureTemplate] = None,
) -> Architecture:
    """Assemble the technical architecture for a requirement set.

    Args:
        requirements: Normalized requirements.
        analysis: Result of ``analyze_requirements``.
        template: Architecture template; selected from the domain when omitted.

    Returns:
        Immutable Architecture.
    """
    text = combined_text(requirements)
    template = template or select_architecture_template(analysis.domain)
    return Architecture(
        components=build_components(text),
        data_flow=build_data_flow(text),
        integrations=build_integration_specs(text),
        security_considerations=build_security_considerations(text, template),
        scalability_plan=build_scalability_plan(analysis, template),
    )
