"""Builder module: compiles blueprints into n8n workflow graphs."""

from .graph_builder import GraphBuilder, determine_trigger
from .nodes import NodeFactory
from .serializer import deserialize, serialize, validate_structure

__all__ = [
    "GraphBuilder",
    "NodeFactory",
    "determine_trigger",
    "serialize",
    "deserialize",
    "validate_structure",
]
