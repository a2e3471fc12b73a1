"""
Position calculation for workflow layout.

This module handles the geometric side of the layout:
- Rank bands along the flow axis (top-to-bottom or left-to-right)
- Node center positions within each rank
- Fitting the finished drawing onto a canvas with a margin

Calculations are done on two abstract axes: the *main* axis runs along the
flow (y in TB mode, x in LR mode) and the *cross* axis runs across a rank.
Nodes in a rank are laid out in order along the cross axis and each rank is
centered on the widest one.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Hashable, List, Sequence, Tuple

from .layout import RankingResult, is_virtual
from .models import Point, PositionedNode, RoutedEdge
from .sizing import NodeBox

DIRECTIONS = ("TB", "LR")


@dataclass
class RankBand:
    """
    Extent of one rank along the main axis.

    Attributes:
        rank: Index of this rank.
        start: Main-axis coordinate where the rank begins.
        end: Main-axis coordinate where the rank ends.
    """

    rank: int
    start: float
    end: float

    @property
    def center(self) -> float:
        return (self.start + self.end) / 2


@dataclass
class Placement:
    """
    Node centers before the drawing is fitted to the canvas.

    Attributes:
        direction: "TB" or "LR".
        centers: (cross, main) center of every real and virtual node.
        bands: Main-axis extent of every rank.
    """

    direction: str = "TB"
    rank_spacing: float = 0.0
    centers: Dict[Hashable, Tuple[float, float]] = field(default_factory=dict)
    bands: List[RankBand] = field(default_factory=list)

    def to_xy(self, cross: float, main: float) -> Point:
        """Convert abstract (cross, main) coordinates to canvas (x, y)."""
        if self.direction == "LR":
            return (main, cross)
        return (cross, main)

    def gap_after(self, rank: int) -> float:
        """Main-axis coordinate halfway between ``rank`` and the next rank."""
        if rank == len(self.bands) - 1:
            return self.bands[rank].end + self.rank_spacing / 2
        return (self.bands[rank].end + self.bands[rank + 1].start) / 2

    def gap_before(self, rank: int) -> float:
        """Main-axis coordinate halfway between ``rank`` and the previous rank."""
        if rank == 0:
            return self.bands[0].start - self.rank_spacing / 2
        return self.gap_after(rank - 1)


class PositionCalculator:
    """
    Calculates positions for all workflow elements.

    Attributes:
        node_spacing: Minimum space between neighboring nodes in a rank.
        rank_spacing: Space between consecutive ranks.
        edge_spacing: Space reserved next to a virtual node (an edge passing
            through a rank).
        direction: "TB" (top-to-bottom) or "LR" (left-to-right).
    """

    def __init__(
        self,
        node_spacing: float = 60.0,
        rank_spacing: float = 120.0,
        edge_spacing: float = 20.0,
        direction: str = "TB",
    ):
        """
        Initialize the position calculator.

        Args:
            node_spacing: Minimum space between nodes in the same rank.
            rank_spacing: Minimum space between ranks.
            edge_spacing: Space next to edges passing through a rank.
            direction: Flow direction, "TB" or "LR".
        """
        direction = direction.upper()
        if direction not in DIRECTIONS:
            raise ValueError(
                "direction must be 'TB' (top-to-bottom) or 'LR' (left-to-right)"
            )
        if node_spacing < 0 or rank_spacing < 0 or edge_spacing < 0:
            raise ValueError("spacing values must not be negative")

        self.node_spacing = node_spacing
        self.rank_spacing = rank_spacing
        self.edge_spacing = edge_spacing
        self.direction = direction

    def cross_size(self, box: NodeBox) -> float:
        return box.height if self.direction == "LR" else box.width

    def main_size(self, box: NodeBox) -> float:
        return box.width if self.direction == "LR" else box.height

    def calculate_positions(
        self, ranking: RankingResult, boxes: Dict[str, NodeBox]
    ) -> Placement:
        """
        Calculate node centers for every rank.

        Args:
            ranking: Ranks and within-rank order.
            boxes: Bounding box of every real node.

        Returns:
            Placement with (cross, main) centers and rank bands.
        """
        placement = Placement(
            direction=self.direction, rank_spacing=self.rank_spacing
        )

        # Rank bands along the main axis
        main_start = 0.0
        for rank, layer in enumerate(ranking.layers):
            thickness = max(
                (self.main_size(boxes[n]) for n in layer if not is_virtual(n)),
                default=0.0,
            )
            placement.bands.append(RankBand(rank, main_start, main_start + thickness))
            main_start += thickness + self.rank_spacing

        # Total cross-axis extent of each rank
        layer_extents: List[List[Tuple[Hashable, float]]] = []
        layer_totals: List[float] = []
        for layer in ranking.layers:
            extents = [
                (n, 0.0 if is_virtual(n) else self.cross_size(boxes[n])) for n in layer
            ]
            total = sum(size for _, size in extents)
            for (left, _), (right, _) in zip(extents, extents[1:]):
                total += self._spacing(left, right)
            layer_extents.append(extents)
            layer_totals.append(total)

        # Find maximum rank extent for centering
        max_total = max(layer_totals, default=0.0)

        for rank, extents in enumerate(layer_extents):
            current = (max_total - layer_totals[rank]) / 2
            band = placement.bands[rank]
            previous = None
            for node, size in extents:
                if previous is not None:
                    current += self._spacing(previous, node)
                placement.centers[node] = (current + size / 2, band.center)
                current += size
                previous = node

        return placement

    def _spacing(self, left: Hashable, right: Hashable) -> float:
        if is_virtual(left) or is_virtual(right):
            return self.edge_spacing
        return self.node_spacing

    def fit_to_canvas(
        self,
        nodes: Sequence[PositionedNode],
        edges: Sequence[RoutedEdge],
        margin: float,
    ) -> Tuple[List[PositionedNode], List[RoutedEdge], float, float]:
        """
        Translate everything so the drawing starts at ``(margin, margin)``.

        Args:
            nodes: Positioned nodes in raw layout coordinates.
            edges: Routed edges in raw layout coordinates.
            margin: Empty space kept on every side.

        Returns:
            Translated nodes, translated edges, canvas width, canvas height.
        """
        xs: List[float] = []
        ys: List[float] = []
        for positioned in nodes:
            xs.extend((positioned.left, positioned.right))
            ys.extend((positioned.top, positioned.bottom))
        for routed in edges:
            for x, y in routed.points:
                xs.append(x)
                ys.append(y)

        if not xs:
            return [], [], 2 * margin, 2 * margin

        dx = margin - min(xs)
        dy = margin - min(ys)

        moved_nodes = [replace(p, x=p.x + dx, y=p.y + dy) for p in nodes]
        moved_edges = [
            replace(r, points=tuple((x + dx, y + dy) for x, y in r.points))
            for r in edges
        ]
        width = max(xs) - min(xs) + 2 * margin
        height = max(ys) - min(ys) + 2 * margin
        return moved_nodes, moved_edges, width, height
