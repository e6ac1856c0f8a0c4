"""Workflow graph contracts (n8n node-graph model)."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum


TRIGGER_NODE_TYPES = frozenset({
    "n8n-nodes-base.webhook",
    "n8n-nodes-base.cron",
    "n8n-nodes-base.emailReadImap",
    "n8n-nodes-base.manualTrigger",
})


class SecurityLevel(str, Enum):
    """Input hardening applied to compiled graphs."""
    BASIC = "basic"
    STANDARD = "standard"
    HIGH = "high"


class ScalabilityPattern(str, Enum):
    SIMPLE = "simple"
    DISTRIBUTED = "distributed"
    ENTERPRISE = "enterprise"


class GraphOptions(BaseModel):
    """Switches for graph compilation."""
    include_error_handling: bool = Field(False)
    add_monitoring: bool = Field(False)
    enable_retries: bool = Field(False)
    include_logging: bool = Field(False)
    security_level: SecurityLevel = Field(SecurityLevel.BASIC)
    scalability_pattern: ScalabilityPattern = Field(ScalabilityPattern.SIMPLE)

    @classmethod
    def basic(cls) -> "GraphOptions":
        return cls()

    @classmethod
    def standard(cls) -> "GraphOptions":
        """Error handling, monitoring, retries and logging on; standard security."""
        return cls(
            include_error_handling=True,
            add_monitoring=True,
            enable_retries=True,
            include_logging=True,
            security_level=SecurityLevel.STANDARD,
            scalability_pattern=ScalabilityPattern.SIMPLE,
        )

    @classmethod
    def advanced(cls) -> "GraphOptions":
        """Everything on, high security, enterprise scaling."""
        return cls(
            include_error_handling=True,
            add_monitoring=True,
            enable_retries=True,
            include_logging=True,
            security_level=SecurityLevel.HIGH,
            scalability_pattern=ScalabilityPattern.ENTERPRISE,
        )


class GraphNode(BaseModel):
    """A typed node with parameters and a canvas position."""
    id: str = Field(...)
    name: str = Field(..., min_length=1)
    type: str = Field(..., description="Engine node type, e.g. n8n-nodes-base.httpRequest")
    type_version: int = Field(1, ge=1)
    position: Tuple[int, int] = Field((0, 0))
    parameters: Dict[str, Any] = Field(default_factory=dict)
    credentials: Optional[Dict[str, str]] = Field(None)

    @property
    def is_trigger(self) -> bool:
        return self.type in TRIGGER_NODE_TYPES


class Edge(BaseModel):
    """Connection target: node name, channel and input port."""
    node: str = Field(...)
    type: str = Field("main")
    index: int = Field(0, ge=0)


class WorkflowGraph(BaseModel):
    """Compiled, serializable automation graph."""
    id: str = Field(...)
    name: str = Field(...)
    nodes: List[GraphNode] = Field(default_factory=list)
    connections: Dict[str, List[Edge]] = Field(
        default_factory=dict, description="Source node name -> ordered outbound edges"
    )
    active: bool = Field(False)
    settings: Dict[str, Any] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    version_id: str = Field("1")
    meta: Dict[str, Any] = Field(
        default_factory=dict, description="Editor-side data the engine ignores, e.g. errorPath roots"
    )

    def node_names(self) -> List[str]:
        return [n.name for n in self.nodes]

    def get_node(self, name: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.name == name:
                return node
        return None

    def inbound_count(self, name: str) -> int:
        """Number of edges that target ``name``."""
        return sum(
            1 for edges in self.connections.values() for e in edges if e.node == name
        )

    def edge_count(self) -> int:
        return sum(len(edges) for edges in self.connections.values())

    def node_types(self) -> List[str]:
        """Node types in node-list order."""
        return [n.type for n in self.nodes]

    def error_roots(self) -> List[str]:
        """Names of nodes that start an error side path."""
        return list(self.meta.get("errorPath", []))

    def trigger(self) -> Optional[GraphNode]:
        """First trigger node, if any."""
        for node in self.nodes:
            if node.is_trigger:
                return node
        return None
