"""
Validation of externally supplied workflow graphs.

Graphs that do not come from :mod:`sketchflow.parser` (for example the JSON
returned by a text-to-flowchart model) are untrusted. They must have the same
``{"nodes": [...], "edges": [...]}`` shape the parser produces before they are
handed to the layout engine.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .models import Edge, Graph, Node, NodeType


class GraphValidationError(ValueError):
    """Raised when a graph payload does not have the expected shape."""

    pass


class NodePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1)
    label: str
    type: NodeType = NodeType.PROCESS


class EdgePayload(BaseModel):
    """An edge; ``source``/``target`` are accepted for ``from``/``to``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    source: str = Field(..., alias="from", min_length=1)
    target: str = Field(..., alias="to", min_length=1)
    label: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def accept_source_target(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if "from" not in data and "source" in data:
                data["from"] = data.pop("source")
            if "to" not in data and "target" in data:
                data["to"] = data.pop("target")
        return data


class GraphPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nodes: List[NodePayload]
    edges: List[EdgePayload]

    @model_validator(mode="after")
    def check_references(self) -> "GraphPayload":
        seen = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id}")
            seen.add(node.id)

        for index, edge in enumerate(self.edges):
            for end in (edge.source, edge.target):
                if end not in seen:
                    raise ValueError(
                        f"Edge {index} ({edge.source} -> {edge.target}) "
                        f"references unknown node '{end}'"
                    )
        return self

    def to_graph(self) -> Graph:
        return Graph(
            nodes=[Node(n.id, n.label, n.type) for n in self.nodes],
            edges=[Edge(e.source, e.target, e.label or None) for e in self.edges],
        )


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "graph"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def validate_graph_payload(data: Any) -> Graph:
    """
    Validate an untrusted graph payload and convert it to a Graph.

    Args:
        data: Decoded JSON, expected to be a mapping with ``nodes`` and
            ``edges`` lists.

    Returns:
        The equivalent Graph, nodes and edges in payload order.

    Raises:
        GraphValidationError: If either list is missing or not a list, a
            required field is missing or has the wrong type, a node id is
            duplicated, or an edge references an unknown node.
    """
    if not isinstance(data, dict):
        raise GraphValidationError(
            f"Graph payload must be an object with 'nodes' and 'edges', "
            f"got {type(data).__name__}"
        )

    for key in ("nodes", "edges"):
        if key not in data:
            raise GraphValidationError(f"Graph payload is missing '{key}'")
        if not isinstance(data[key], list):
            raise GraphValidationError(
                f"Graph payload '{key}' must be a list, "
                f"got {type(data[key]).__name__}"
            )

    try:
        payload = GraphPayload.model_validate(data)
    except ValidationError as exc:
        raise GraphValidationError(
            f"Invalid graph payload: {_describe(exc)}"
        ) from exc

    return payload.to_graph()
