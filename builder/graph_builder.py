"""
Graph Builder.

Lowers a Blueprint's architecture into n8n workflow graphs. The main graph
is a linear chain:

    trigger -> [validation] -> processing... -> integration... -> notification

with an optional error-handling side path (handler -> notification) that is
never wired into the main chain. Supporting graphs (data processing,
monitoring) have fixed shapes.

Construction never fails on unknown services or requirement text; every
unresolved case falls back to a defined node.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from loguru import logger

from contracts import (
    Blueprint,
    ComponentType,
    Edge,
    GraphNode,
    GraphOptions,
    IntegrationSpec,
    Requirement,
    SecurityLevel,
    WorkflowGraph,
)
from errors import PreconditionError
from router.classifier import IdFactory, new_id, normalize_requirements
from blueprint.analyzer import combined_text
from builder.nodes import NodeFactory
from builder.serializer import serialize


WEBHOOK_TRIGGER = "webhook"
SCHEDULE_TRIGGER = "schedule"
EMAIL_TRIGGER = "email"
MANUAL_TRIGGER = "manual"

# First match wins
TRIGGER_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (WEBHOOK_TRIGGER, ("webhook", "api", "real-time")),
    (SCHEDULE_TRIGGER, ("schedule", "daily", "hourly")),
    (EMAIL_TRIGGER, ("email", "imap")),
)

TEXT_PROCESSING_KEYWORDS = ("text", "content", "message")
CLASSIFICATION_KEYWORDS = ("classify", "categorize", "analyze")

# Case-insensitive substring of the integration spec's service name
SERVICE_NODE_RULES: Tuple[Tuple[str, Callable[[NodeFactory], GraphNode]], ...] = (
    ("hubspot", NodeFactory.hubspot),
    ("salesforce", NodeFactory.salesforce),
    ("stripe", NodeFactory.stripe),
    ("database", NodeFactory.database_insert),
    ("postgres", NodeFactory.database_insert),
)

MAX_RETRIES = 3
MONITORING_COMPONENT_THRESHOLD = 3

BASE_TAGS = ("automation", "flowsmith")
TITLE_TAG_RULES: Tuple[Tuple[Tuple[str, ...], Tuple[str, ...]], ...] = (
    (("ecommerce",), ("ecommerce",)),
    (("crm", "sales"), ("crm", "sales")),
    (("data",), ("data-processing",)),
)

DATA_PROCESSING_SCHEDULE = "0 */4 * * *"
MONITORING_SCHEDULE = "*/15 * * * *"


def determine_trigger(text: str) -> str:
    for trigger, keywords in TRIGGER_RULES:
        if any(k in text for k in keywords):
            return trigger
    return MANUAL_TRIGGER


def connect(connections: Dict[str, List[Edge]], source: str, target: str) -> None:
    """Append a main edge from ``source`` to port 0 of ``target``."""
    connections.setdefault(source, []).append(Edge(node=target, type="main", index=0))


def workflow_tags(blueprint: Blueprint, *extra: str) -> List[str]:
    title = blueprint.title.casefold()
    tags = list(BASE_TAGS)
    for keywords, labels in TITLE_TAG_RULES:
        if any(k in title for k in keywords):
            tags.extend(labels)
    tags.extend(t for t in extra if t not in tags)
    return tags


class GraphBuilder:
    """Compiles blueprints into WorkflowGraphs."""

    def __init__(
        self,
        options: Optional[GraphOptions] = None,
        id_factory: Optional[IdFactory] = None,
    ):
        """Initialize the builder.

        Args:
            options: Default compile options. Defaults to ``GraphOptions.basic()``.
            id_factory: Callable returning graph ids. Defaults to uuid4 hex.
        """
        self.options = options or GraphOptions.basic()
        self.id_factory = id_factory or new_id

    def compile(
        self,
        blueprint: Blueprint,
        requirements: Any,
        options: Optional[GraphOptions] = None,
    ) -> List[WorkflowGraph]:
        """Compile the main graph plus any supporting graphs.

        Args:
            blueprint: Blueprint to lower.
            requirements: Requirement records or ``{category?, text}`` dicts
                used for trigger and AI-node selection.
            options: Per-call options; the builder's defaults when omitted.

        Returns:
            [main, data processing?, monitoring?] in that order.

        Raises:
            PreconditionError: If ``blueprint`` is not a Blueprint or
                ``requirements`` is not a list.
        """
        if not isinstance(blueprint, Blueprint):
            raise PreconditionError(f"blueprint must be a Blueprint, got {type(blueprint).__name__}")
        options = options or self.options
        reqs = normalize_requirements(requirements)

        graphs = [self.build_main_graph(blueprint, reqs, options)]
        if self.requires_data_processing_graph(blueprint):
            graphs.append(self.build_data_processing_graph(blueprint))
        if self.requires_monitoring_graph(blueprint, options):
            graphs.append(self.build_monitoring_graph(blueprint))

        logger.info(f"Compiled {len(graphs)} graph(s) for '{blueprint.title}'")
        return graphs

    def generate_variations(self, blueprint: Blueprint, requirements: Any) -> List[WorkflowGraph]:
        """Basic-option graphs followed by advanced-option graphs."""
        basic = self.compile(blueprint, requirements, GraphOptions.basic())
        advanced = self.compile(blueprint, requirements, GraphOptions.advanced())
        return basic + advanced

    @staticmethod
    def serialize(graph: WorkflowGraph) -> str:
        return serialize(graph)

    # =========================================================================
    # Main graph
    # =========================================================================

    def build_main_graph(
        self,
        blueprint: Blueprint,
        requirements: List[Requirement],
        options: GraphOptions,
    ) -> WorkflowGraph:
        factory = NodeFactory()
        text = combined_text(requirements)
        nodes: List[GraphNode] = []
        connections: Dict[str, List[Edge]] = {}

        def append(node: GraphNode) -> None:
            if nodes:
                connect(connections, nodes[-1].name, node.name)
            nodes.append(node)
            factory.advance()

        append(self._trigger_node(factory, text))

        if options.security_level != SecurityLevel.BASIC:
            append(factory.validation())

        for node in self._processing_nodes(factory, blueprint, text):
            append(node)

        for node in self._integration_nodes(factory, blueprint.architecture.integrations):
            if options.enable_retries:
                node = node.model_copy(update={
                    "parameters": {**node.parameters, "retryOnFail": True, "maxTries": MAX_RETRIES},
                })
            append(node)

        append(factory.notification(blueprint.title))

        settings: Dict[str, Any] = {"executionOrder": "v1"}
        if options.include_logging:
            settings["saveExecutionProgress"] = True
        meta: Dict[str, Any] = {}
        if options.include_error_handling:
            handler = factory.error_handler()
            notifier = factory.error_notification()
            nodes.extend([handler, notifier])
            connect(connections, handler.name, notifier.name)
            meta["errorPath"] = [handler.name]

        return WorkflowGraph(
            id=self.id_factory(),
            name=f"{blueprint.title} - Main Workflow",
            nodes=nodes,
            connections=connections,
            active=False,
            settings=settings,
            tags=workflow_tags(blueprint),
            meta=meta,
        )

    @staticmethod
    def _trigger_node(factory: NodeFactory, text: str) -> GraphNode:
        trigger = determine_trigger(text)
        if trigger == WEBHOOK_TRIGGER:
            return factory.webhook_trigger()
        if trigger == SCHEDULE_TRIGGER:
            return factory.schedule_trigger()
        if trigger == EMAIL_TRIGGER:
            return factory.email_trigger()
        return factory.manual_trigger()

    @staticmethod
    def _processing_nodes(factory: NodeFactory, blueprint: Blueprint, text: str) -> List[GraphNode]:
        """One node per processor component; a generic one if there are none."""
        nodes = []
        for component in blueprint.architecture.components_of(ComponentType.PROCESSOR):
            if "AI" in component.name:
                resource = "text" if any(k in text for k in TEXT_PROCESSING_KEYWORDS) else "chat"
                operation = "classify" if any(k in text for k in CLASSIFICATION_KEYWORDS) else "complete"
                nodes.append(factory.ai_processing(resource, operation))
            elif "Data" in component.name:
                nodes.append(factory.transform_data())
            else:
                nodes.append(factory.process_data())
        if not nodes:
            nodes.append(factory.process_data())
        return nodes

    @staticmethod
    def _integration_nodes(factory: NodeFactory, integrations: List[IntegrationSpec]) -> List[GraphNode]:
        """One node per integration spec; a generic HTTP node if there are none."""
        nodes = []
        for spec in integrations:
            service = spec.service.casefold()
            for keyword, build in SERVICE_NODE_RULES:
                if keyword in service:
                    nodes.append(build(factory))
                    break
            else:
                nodes.append(factory.http_request())
        if not nodes:
            nodes.append(factory.http_request())
        return nodes

    # =========================================================================
    # Supporting graphs
    # =========================================================================

    @staticmethod
    def requires_data_processing_graph(blueprint: Blueprint) -> bool:
        return blueprint.architecture.has_component_type(ComponentType.STORAGE)

    @staticmethod
    def requires_monitoring_graph(blueprint: Blueprint, options: GraphOptions) -> bool:
        return options.add_monitoring or len(blueprint.architecture.components) > MONITORING_COMPONENT_THRESHOLD

    def _chain(self, blueprint: Blueprint, suffix: str, tag: str, nodes: List[GraphNode]) -> WorkflowGraph:
        connections: Dict[str, List[Edge]] = {}
        for source, target in zip(nodes, nodes[1:]):
            connect(connections, source.name, target.name)
        return WorkflowGraph(
            id=self.id_factory(),
            name=f"{blueprint.title} - {suffix}",
            nodes=nodes,
            connections=connections,
            active=True,
            settings={"executionOrder": "v1"},
            tags=workflow_tags(blueprint, tag),
        )

    def build_data_processing_graph(self, blueprint: Blueprint) -> WorkflowGraph:
        """schedule -> fetch -> batch transform -> status update."""
        factory = NodeFactory()
        nodes = []
        for make in (
            lambda: factory.schedule_trigger("Data Processing Schedule", DATA_PROCESSING_SCHEDULE),
            factory.fetch_pending,
            factory.process_batch,
            factory.update_status,
        ):
            nodes.append(make())
            factory.advance()
        return self._chain(blueprint, "Data Processing", "data-processing", nodes)

    def build_monitoring_graph(self, blueprint: Blueprint) -> WorkflowGraph:
        """schedule -> health check."""
        factory = NodeFactory()
        trigger = factory.schedule_trigger("Monitoring Schedule", MONITORING_SCHEDULE)
        factory.advance()
        check = factory.health_check()
        return self._chain(blueprint, "Monitoring", "monitoring", [trigger, check])
