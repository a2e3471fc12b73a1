"""
Data models for workflow parsing and layout.

This module contains the dataclasses shared by the parser, the layout engine
and any downstream renderer. The parse-side models describe the graph that
was read from text; the layout-side models describe where each node sits and
how each edge is drawn.

Classes:
    NodeType: Kind of a node (process step or decision).
    Node: A unique step in the workflow.
    Edge: A directed, optionally labeled connection between two nodes.
    Graph: Nodes in insertion order plus edges in creation order.
    PositionedNode: A node with its rank, order and canvas geometry.
    RoutedEdge: An edge with the polyline used to draw it.
    LayoutResult: Everything a renderer needs to draw the workflow.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

Point = Tuple[float, float]


class NodeType(str, Enum):
    """Kind of a workflow node."""

    PROCESS = "process"
    DECISION = "decision"


@dataclass(frozen=True)
class Node:
    """
    A unique step in the workflow.

    Attributes:
        id: Identifier, stable within one parse (e.g. ``node_0``).
        label: Display text with any decision ``?`` suffix removed.
        type: Process or decision.
    """

    id: str
    label: str
    type: NodeType = NodeType.PROCESS

    @property
    def is_decision(self) -> bool:
        return self.type is NodeType.DECISION

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "label": self.label, "type": self.type.value}


@dataclass(frozen=True)
class Edge:
    """
    A directed connection between two nodes.

    Attributes:
        source: Id of the node the edge leaves.
        target: Id of the node the edge enters.
        label: Optional edge text such as ``yes`` or ``approved``.
    """

    source: str
    target: str
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.source, "to": self.target, "label": self.label}


@dataclass
class Graph:
    """Workflow graph: nodes in insertion order, edges in creation order."""

    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[Node]:
        """Return the node with the given id, or None."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_node_by_label(self, label: str) -> Optional[Node]:
        """Return the node with the given cleaned label, or None."""
        for node in self.nodes:
            if node.label == label:
                return node
        return None

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    def in_degree(self, node_id: str) -> int:
        """Count edges entering ``node_id`` (parallel edges count separately)."""
        return sum(1 for edge in self.edges if edge.target == node_id)

    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the ``{nodes, edges}`` renderer contract."""
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


@dataclass(frozen=True)
class PositionedNode:
    """
    A node placed on the canvas.

    ``x`` and ``y`` are the coordinates of the node's center.

    Attributes:
        node: The workflow node.
        rank: Layer index along the flow direction (0 = first layer).
        order: Position within the rank (0 = leftmost/topmost).
        x: Center x coordinate.
        y: Center y coordinate.
        width: Bounding box width.
        height: Bounding box height.
        lines: Wrapped label text, one entry per line.
    """

    node: Node
    rank: int
    order: int
    x: float
    y: float
    width: float
    height: float
    lines: Tuple[str, ...] = ()

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def left(self) -> float:
        return self.x - self.width / 2

    @property
    def right(self) -> float:
        return self.x + self.width / 2

    @property
    def top(self) -> float:
        return self.y - self.height / 2

    @property
    def bottom(self) -> float:
        return self.y + self.height / 2

    def to_dict(self) -> Dict[str, Any]:
        data = self.node.to_dict()
        data.update(
            {
                "rank": self.rank,
                "order": self.order,
                "x": self.x,
                "y": self.y,
                "width": self.width,
                "height": self.height,
                "lines": list(self.lines),
            }
        )
        return data


@dataclass(frozen=True)
class RoutedEdge:
    """
    An edge with its drawing path.

    The first point lies on the source node's boundary and the last point on
    the target node's boundary, so an arrowhead can be drawn along the final
    segment.
    """

    edge: Edge
    points: Tuple[Point, ...]
    is_back_edge: bool = False

    @property
    def source(self) -> str:
        return self.edge.source

    @property
    def target(self) -> str:
        return self.edge.target

    @property
    def label(self) -> Optional[str]:
        return self.edge.label

    def to_dict(self) -> Dict[str, Any]:
        data = self.edge.to_dict()
        data["points"] = [[x, y] for x, y in self.points]
        data["back_edge"] = self.is_back_edge
        return data


@dataclass(frozen=True)
class LayoutResult:
    """Complete layout of a workflow graph."""

    nodes: Tuple[PositionedNode, ...] = ()
    edges: Tuple[RoutedEdge, ...] = ()
    width: float = 0.0
    height: float = 0.0
    direction: str = "TB"
    has_cycles: bool = False

    def get_node(self, node_id: str) -> Optional[PositionedNode]:
        for positioned in self.nodes:
            if positioned.id == node_id:
                return positioned
        return None

    @property
    def back_edges(self) -> List[RoutedEdge]:
        return [routed for routed in self.edges if routed.is_back_edge]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the positioned-graph renderer contract."""
        return {
            "nodes": [positioned.to_dict() for positioned in self.nodes],
            "edges": [routed.to_dict() for routed in self.edges],
            "width": self.width,
            "height": self.height,
        }
