"""
Edge routing module for workflow layout.

Handles orthogonal routing of edges between positioned nodes with:
- Port assignment (where edges leave and enter a node's outline)
- Jogs placed in the gaps between ranks, through virtual nodes
- Back edges routed around the side of the drawing, one lane each
- Self loops drawn as a small loop beside their node

Routing works on the abstract (cross, main) axes of
:class:`~sketchflow.positioning.Placement`; the flow enters a node on its
``FLOW_IN`` side and leaves it on its ``FLOW_OUT`` side. Process nodes are
rectangles and decision nodes are diamonds; every port lies exactly on the
node's outline.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .layout import RankingResult
from .models import Graph, Point, RoutedEdge
from .positioning import Placement, PositionCalculator
from .sizing import NodeBox


class PortSide(Enum):
    """Which side of a node a port is on, relative to the flow."""

    FLOW_IN = "flow_in"  # top in TB, left in LR
    FLOW_OUT = "flow_out"  # bottom in TB, right in LR
    NEAR = "near"  # left in TB, top in LR
    FAR = "far"  # right in TB, bottom in LR


@dataclass
class Port:
    """A connection point on a node outline, in (cross, main) coordinates."""

    node: str
    side: PortSide
    cross: float
    main: float


@dataclass
class NodeShape:
    """Center and half extents of a node on the abstract axes."""

    cross: float
    main: float
    half_cross: float
    half_main: float
    diamond: bool

    def port(self, node: str, side: PortSide, offset: float) -> Port:
        """
        Port on ``side`` displaced by ``offset`` along that side.

        For FLOW_IN/FLOW_OUT the offset runs along the cross axis, for
        NEAR/FAR along the main axis.
        """
        if side in (PortSide.FLOW_IN, PortSide.FLOW_OUT):
            depth = self.half_main
            if self.diamond:
                depth *= 1 - abs(offset) / self.half_cross
            sign = 1 if side == PortSide.FLOW_OUT else -1
            return Port(node, side, self.cross + offset, self.main + sign * depth)

        depth = self.half_cross
        if self.diamond:
            depth *= 1 - abs(offset) / self.half_main
        sign = 1 if side == PortSide.FAR else -1
        return Port(node, side, self.cross + sign * depth, self.main + offset)


class EdgeRouter:
    """
    Routes edges between positioned nodes using orthogonal paths.

    Attributes:
        back_edge_spacing: Distance between back-edge lanes, and between the
            drawing and the first lane. Also the size of a self loop.
    """

    def __init__(self, back_edge_spacing: float = 30.0):
        if back_edge_spacing <= 0:
            raise ValueError("back_edge_spacing must be positive")
        self.back_edge_spacing = back_edge_spacing

    def route_edges(
        self,
        graph: Graph,
        ranking: RankingResult,
        placement: Placement,
        boxes: Dict[str, NodeBox],
        calculator: PositionCalculator,
    ) -> List[RoutedEdge]:
        """
        Route all edges of the graph.

        Args:
            graph: The workflow graph.
            ranking: Ranks, order and virtual-node chains.
            placement: Node centers and rank bands.
            boxes: Bounding box of every real node.
            calculator: Used to map box sizes onto the placement's axes.

        Returns:
            One RoutedEdge per graph edge, in graph edge order.
        """
        shapes = {
            node.id: NodeShape(
                cross=placement.centers[node.id][0],
                main=placement.centers[node.id][1],
                half_cross=calculator.cross_size(boxes[node.id]) / 2,
                half_main=calculator.main_size(boxes[node.id]) / 2,
                diamond=node.is_decision,
            )
            for node in graph.nodes
        }

        back = set(ranking.back_edges)
        lanes = self._assign_lanes(graph, ranking, placement, shapes)
        out_ports, in_ports = self._allocate_ports(
            graph, ranking, placement, shapes, lanes
        )

        routes: List[RoutedEdge] = []
        loop_counts: Dict[str, int] = {}

        for index, edge in enumerate(graph.edges):
            if edge.source == edge.target:
                count = loop_counts.get(edge.source, 0)
                loop_counts[edge.source] = count + 1
                path = self._self_loop(shapes[edge.source], edge.source, count)
            elif index in back:
                path = self._back_edge_path(
                    out_ports[index], in_ports[index], lanes[index], ranking, placement
                )
            else:
                path = self._forward_path(
                    out_ports[index],
                    in_ports[index],
                    ranking.chains[index],
                    ranking,
                    placement,
                )

            points = tuple(placement.to_xy(cross, main) for cross, main in path)
            routes.append(
                RoutedEdge(edge=edge, points=points, is_back_edge=index in back)
            )

        return routes

    def _assign_lanes(
        self,
        graph: Graph,
        ranking: RankingResult,
        placement: Placement,
        shapes: Dict[str, NodeShape],
    ) -> Dict[int, float]:
        """Cross-axis lane of every back edge that is not a self loop."""
        extents = [shape.cross - shape.half_cross for shape in shapes.values()]
        extents.extend(cross for cross, _ in placement.centers.values())
        near_edge = min(extents, default=0.0)

        lanes: Dict[int, float] = {}
        for index in ranking.back_edges:
            edge = graph.edges[index]
            if edge.source == edge.target:
                continue
            lanes[index] = near_edge - self.back_edge_spacing * (len(lanes) + 1)
        return lanes

    def _allocate_ports(
        self,
        graph: Graph,
        ranking: RankingResult,
        placement: Placement,
        shapes: Dict[str, NodeShape],
        lanes: Dict[int, float],
    ) -> Tuple[Dict[int, Port], Dict[int, Port]]:
        """
        Allocate exit and entry ports, distributing them evenly.

        Ports on a side are sorted by the cross position of the other end
        of the first (or last) segment so that edges sharing a node do not
        cross each other right at the node.
        """
        leaving: Dict[str, List[Tuple[float, int]]] = {}
        entering: Dict[str, List[Tuple[float, int]]] = {}

        for index, edge in enumerate(graph.edges):
            if edge.source == edge.target:
                continue
            if index in lanes:
                out_key = in_key = lanes[index]
            else:
                chain = ranking.chains[index]
                out_key = placement.centers[chain[1]][0]
                in_key = placement.centers[chain[-2]][0]
            leaving.setdefault(edge.source, []).append((out_key, index))
            entering.setdefault(edge.target, []).append((in_key, index))

        out_ports: Dict[int, Port] = {}
        in_ports: Dict[int, Port] = {}
        for ports, grouped, side in (
            (out_ports, leaving, PortSide.FLOW_OUT),
            (in_ports, entering, PortSide.FLOW_IN),
        ):
            for node, items in grouped.items():
                shape = shapes[node]
                items.sort()
                for slot, (_, index) in enumerate(items):
                    offset = self._port_offset(shape.half_cross, slot, len(items))
                    ports[index] = shape.port(node, side, offset)

        return out_ports, in_ports

    def _port_offset(self, half_extent: float, slot: int, total: int) -> float:
        """Offset of port ``slot`` of ``total`` from the middle of a side."""
        if total == 1:
            return 0.0
        return -half_extent + 2 * half_extent * (slot + 1) / (total + 1)

    def _forward_path(
        self,
        source_port: Port,
        target_port: Port,
        chain: List,
        ranking: RankingResult,
        placement: Placement,
    ) -> List[Tuple[float, float]]:
        """
        Calculate waypoints for a forward edge.

        The path runs along the main axis and changes lanes only in the gap
        after each rank, passing through the edge's virtual nodes.
        """
        path = [(source_port.cross, source_port.main)]
        current = source_port.cross

        for step in range(len(chain) - 1):
            if step == len(chain) - 2:
                next_cross = target_port.cross
            else:
                next_cross = placement.centers[chain[step + 1]][0]

            if next_cross != current:
                gap = placement.gap_after(ranking.ranks[chain[step]])
                path.append((current, gap))
                path.append((next_cross, gap))
                current = next_cross

        path.append((target_port.cross, target_port.main))
        return path

    def _back_edge_path(
        self,
        source_port: Port,
        target_port: Port,
        lane: float,
        ranking: RankingResult,
        placement: Placement,
    ) -> List[Tuple[float, float]]:
        """
        Calculate waypoints for an edge that points against the flow.

        It leaves its source into the following gap, runs along a lane
        beside the drawing and comes back in through the gap before its
        target.
        """
        below = placement.gap_after(ranking.ranks[source_port.node])
        above = placement.gap_before(ranking.ranks[target_port.node])
        return [
            (source_port.cross, source_port.main),
            (source_port.cross, below),
            (lane, below),
            (lane, above),
            (target_port.cross, above),
            (target_port.cross, target_port.main),
        ]

    def _self_loop(
        self, shape: NodeShape, node: str, count: int
    ) -> List[Tuple[float, float]]:
        """Small loop on the node's FAR side; repeated loops nest outward."""
        offset = shape.half_main / 2
        start = shape.port(node, PortSide.FAR, -offset)
        end = shape.port(node, PortSide.FAR, offset)
        reach = max(start.cross, end.cross) + self.back_edge_spacing * (count + 1)
        return [
            (start.cross, start.main),
            (reach, start.main),
            (reach, end.main),
            (end.cross, end.main),
        ]
