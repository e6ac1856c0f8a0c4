"""n8n workflow JSON (de)serialization and structural validation.

Document shape::

    {
      "id": ..., "name": ...,
      "nodes": [{"id", "name", "type", "typeVersion", "position": [x, y],
                 "parameters", "credentials"?}],
      "connections": {"<source name>": {"main": [[{"node", "type", "index"}], ...]}},
      "active": false, "settings": {...}, "tags": [...], "versionId": "1",
      "meta": {"errorPath": [...]}?
    }

Each edge occupies its own output slot of ``main``.
"""

import json
from typing import Any, Dict, List, Set

from pydantic import ValidationError

from contracts import Edge, GraphNode, WorkflowGraph
from errors import GraphFormatError


def node_to_dict(node: GraphNode) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "type": node.type,
        "typeVersion": node.type_version,
        "position": list(node.position),
        "parameters": node.parameters,
    }
    if node.credentials is not None:
        data["credentials"] = node.credentials
    return data


def graph_to_dict(graph: WorkflowGraph) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": graph.id,
        "name": graph.name,
        "nodes": [node_to_dict(n) for n in graph.nodes],
        "connections": {
            source: {"main": [[edge.model_dump()] for edge in edges]}
            for source, edges in graph.connections.items()
        },
        "active": graph.active,
        "settings": graph.settings,
        "tags": graph.tags,
        "versionId": graph.version_id,
    }
    if graph.meta:
        data["meta"] = graph.meta
    return data


def serialize(graph: WorkflowGraph) -> str:
    """Render ``graph`` as an importable n8n JSON document (2-space indent)."""
    return json.dumps(graph_to_dict(graph), indent=2)


def _parse_connections(raw: Any) -> Dict[str, List[Edge]]:
    if not isinstance(raw, dict):
        raise GraphFormatError("'connections' must be an object")
    connections: Dict[str, List[Edge]] = {}
    for source, channels in raw.items():
        if not isinstance(channels, dict):
            raise GraphFormatError(f"connections of '{source}' must be an object")
        edges: List[Edge] = []
        for slot in channels.get("main", []):
            if not isinstance(slot, list):
                raise GraphFormatError(f"output slot of '{source}' must be a list")
            for item in slot:
                if not isinstance(item, dict):
                    raise GraphFormatError(f"edge from '{source}' must be an object")
                edges.append(Edge(**item))
        connections[source] = edges
    return connections


def deserialize(text: str) -> WorkflowGraph:
    """Rebuild a WorkflowGraph from its JSON document.

    Raises:
        GraphFormatError: On invalid JSON or a document that does not
            describe a graph.
    """
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise GraphFormatError(f"Invalid graph JSON: {e}") from e
    if not isinstance(data, dict):
        raise GraphFormatError("Graph document must be a JSON object")
    raw_nodes = data.get("nodes")
    if not isinstance(raw_nodes, list):
        raise GraphFormatError("'nodes' must be a list")

    try:
        nodes = [
            GraphNode(
                id=n["id"],
                name=n["name"],
                type=n["type"],
                type_version=n.get("typeVersion", 1),
                position=tuple(n.get("position", (0, 0))),
                parameters=n.get("parameters", {}),
                credentials=n.get("credentials"),
            )
            for n in raw_nodes
        ]
        graph = WorkflowGraph(
            id=data["id"],
            name=data["name"],
            nodes=nodes,
            connections=_parse_connections(data.get("connections", {})),
            active=data.get("active", False),
            settings=data.get("settings", {}),
            tags=data.get("tags", []),
            version_id=str(data.get("versionId", "1")),
            meta=data.get("meta") or {},
        )
    except (KeyError, TypeError) as e:
        raise GraphFormatError(f"Malformed graph document: {e!r}") from e
    except ValidationError as e:
        raise GraphFormatError(f"Malformed graph document: {e.error_count()} validation error(s)") from e

    known = set(graph.node_names())
    for source, edges in graph.connections.items():
        unknown = [name for name in [source, *(e.node for e in edges)] if name not in known]
        if unknown:
            raise GraphFormatError(f"Connections name unknown node '{unknown[0]}'")
    return graph


def _reachable(graph: WorkflowGraph, start: str) -> Set[str]:
    seen: Set[str] = set()
    stack = [start]
    while stack:
        name = stack.pop()
        if name in seen:
            continue
        seen.add(name)
        stack.extend(e.node for e in graph.connections.get(name, []))
    return seen


def _has_cycle(graph: WorkflowGraph) -> bool:
    visiting: Set[str] = set()
    done: Set[str] = set()

    def visit(name: str) -> bool:
        if name in done:
            return False
        if name in visiting:
            return True
        visiting.add(name)
        if any(visit(e.node) for e in graph.connections.get(name, [])):
            return True
        visiting.discard(name)
        done.add(name)
        return False

    return any(visit(name) for name in list(graph.connections))


def validate_structure(graph: WorkflowGraph) -> List[str]:
    """Structural violations of ``graph``; empty when well formed.

    Nodes listed under ``meta.errorPath`` are side-path roots:
    they need no inbound edge but must not be reachable from the trigger.
    """
    problems: List[str] = []
    names = graph.node_names()
    known = set(names)
    if len(known) != len(names):
        problems.append("duplicate node names")

    for source, edges in graph.connections.items():
        if source not in known:
            problems.append(f"edges from unknown node '{source}'")
        for edge in edges:
            if edge.node not in known:
                problems.append(f"edge from '{source}' to unknown node '{edge.node}'")

    trigger = graph.trigger()
    if trigger is None:
        problems.append("no trigger node")
    side_roots = set(graph.error_roots())

    for node in graph.nodes:
        inbound = graph.inbound_count(node.name)
        if node.is_trigger:
            if inbound:
                problems.append(f"trigger '{node.name}' has inbound edges")
        elif node.name not in side_roots and inbound == 0:
            problems.append(f"node '{node.name}' has no inbound edge")

    if trigger is not None:
        main_path = _reachable(graph, trigger.name)
        for root in side_roots & main_path:
            problems.append(f"error path '{root}' is reachable from the main path")

    if _has_cycle(graph):
        problems.append("cycle along main connections")
    return problems
