"""
Main workflow layout module.

Combines parsing, ranking, positioning and routing to turn workflow text
(or an externally supplied graph) into a fully positioned drawing that a
renderer can paint directly.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from .layout import HierarchicalLayout, RankingResult
from .models import Graph, LayoutResult, PositionedNode
from .parser import Parser
from .positioning import Placement, PositionCalculator
from .router import EdgeRouter
from .sizing import (
    DEFAULT_DECISION_SIZE,
    DEFAULT_PROCESS_SIZE,
    NodeBox,
    NodeSizer,
    TextMeasurer,
)
from .tracer import PipelineTrace
from .validation import validate_graph_payload


class FlowchartGenerator:
    """
    Lay out workflow flowcharts from simple text descriptions.

    A generator only holds configuration (and the trace of its last debug
    run); every call builds fresh parse and layout state. Callers sharing one
    generator across threads should pass their own ``trace`` instead of
    using ``debug=True``.

    Example:
        >>> generator = FlowchartGenerator()
        >>> layout = generator.generate(
        ...     "Start -> Qualify lead? yes -> Book call; no -> Send email -> End"
        ... )
        >>> [node.node.label for node in layout.nodes]
        ['Start', 'Qualify lead', 'Book call', 'Send email', 'End']
    """

    def __init__(
        self,
        node_spacing: float = 60.0,
        rank_spacing: float = 120.0,
        margin: float = 40.0,
        edge_spacing: float = 20.0,
        back_edge_spacing: float = 30.0,
        merge_rank_gap: int = 2,
        ordering_passes: int = 4,
        direction: str = "TB",
        char_width: float = 8.0,
        line_height: float = 16.0,
        font_path: Optional[str] = None,
        font_size: int = 14,
        process_size: Tuple[float, float] = DEFAULT_PROCESS_SIZE,
        decision_size: Tuple[float, float] = DEFAULT_DECISION_SIZE,
        padding: float = 10.0,
    ):
        """
        Initialize the generator.

        Args:
            node_spacing: Minimum space between nodes in the same rank
            rank_spacing: Minimum space between consecutive ranks
            margin: Empty space around the drawing
            edge_spacing: Space next to an edge passing through a rank
            back_edge_spacing: Distance between back-edge lanes
            merge_rank_gap: Minimum rank span of edges into a merge point
            ordering_passes: Barycenter sweeps used to reduce crossings
            direction: Flow direction - "TB" (top-to-bottom) or "LR"
                (left-to-right)
            char_width: Estimated label character width
            line_height: Height of one line of label text
            font_path: Optional font file used to measure labels instead of
                the fixed character width
            font_size: Size of the font loaded from ``font_path``
            process_size: Minimum (width, height) of process nodes
            decision_size: Minimum (width, height) of decision nodes
            padding: Space between label text and node outline
        """
        if margin < 0:
            raise ValueError("margin must not be negative")

        self.margin = margin
        self.direction = direction.upper()

        self.parser = Parser()
        self.layout_engine = HierarchicalLayout(
            merge_rank_gap=merge_rank_gap, ordering_passes=ordering_passes
        )
        self.position_calculator = PositionCalculator(
            node_spacing=node_spacing,
            rank_spacing=rank_spacing,
            edge_spacing=edge_spacing,
            direction=direction,
        )
        self.router = EdgeRouter(back_edge_spacing=back_edge_spacing)
        self.sizer = NodeSizer(
            measurer=TextMeasurer(
                char_width=char_width,
                line_height=line_height,
                font_path=font_path,
                font_size=font_size,
            ),
            process_size=process_size,
            decision_size=decision_size,
            padding=padding,
        )
        self._trace: Optional[PipelineTrace] = None

    def parse(self, input_text: str) -> Graph:
        """Parse workflow text into a graph."""
        return self.parser.parse(input_text)

    def generate(
        self,
        input_text: str,
        debug: bool = False,
        trace: Optional[PipelineTrace] = None,
    ) -> LayoutResult:
        """
        Parse workflow text and lay it out.

        Args:
            input_text: Text such as "A -> B? yes -> C; no -> D"
            debug: If True, capture a pipeline trace (see get_trace())
            trace: Trace to fill instead of the generator's own; the one
                returned by get_trace() is left untouched

        Returns:
            LayoutResult with positioned nodes and routed edges
        """
        trace = self._start_trace(input_text, debug, trace)
        graph = self.parser.parse(input_text, trace=trace)
        return self.layout(graph, trace=trace)

    def layout_payload(
        self,
        data: Any,
        debug: bool = False,
        trace: Optional[PipelineTrace] = None,
    ) -> LayoutResult:
        """
        Validate an externally supplied graph and lay it out.

        Args:
            data: Decoded JSON with "nodes" and "edges" lists
            debug: If True, capture a pipeline trace (see get_trace())
            trace: Trace to fill instead of the generator's own

        Returns:
            LayoutResult for the validated graph

        Raises:
            GraphValidationError: If the payload is malformed
        """
        trace = self._start_trace("", debug, trace)
        graph = validate_graph_payload(data)
        if trace is not None:
            trace.add_stage(
                "validate",
                {"nodes": len(graph.nodes), "edges": len(graph.edges)},
            )
        return self.layout(graph, trace=trace)

    def layout(
        self,
        graph: Union[Graph, Dict[str, Any]],
        trace: Optional[PipelineTrace] = None,
    ) -> LayoutResult:
        """
        Lay out a graph.

        A mapping is treated as an untrusted payload and validated first.

        Args:
            graph: Graph from the parser, or a payload mapping
            trace: Optional trace receiving the layout stages

        Returns:
            LayoutResult; identical graphs give identical results

        Raises:
            LayoutError: If an edge references an unknown node id
            GraphValidationError: If a payload mapping is malformed
        """
        if not isinstance(graph, Graph):
            graph = validate_graph_payload(graph)

        ranking = self.layout_engine.layout(graph, trace=trace)
        boxes = {node.id: self.sizer.size(node) for node in graph.nodes}
        placement = self.position_calculator.calculate_positions(ranking, boxes)

        positioned = self._positioned_nodes(graph, ranking, placement, boxes)
        routes = self.router.route_edges(
            graph, ranking, placement, boxes, self.position_calculator
        )
        positioned, routes, width, height = self.position_calculator.fit_to_canvas(
            positioned, routes, self.margin
        )

        if trace is not None:
            trace.add_stage(
                "positions",
                {p.id: (p.x, p.y, p.width, p.height) for p in positioned},
            )
            trace.add_stage(
                "routes",
                {f"{r.source}->{r.target}": list(r.points) for r in routes},
            )

        return LayoutResult(
            nodes=tuple(positioned),
            edges=tuple(routes),
            width=width,
            height=height,
            direction=self.direction,
            has_cycles=ranking.has_cycles,
        )

    def get_trace(self) -> Optional[PipelineTrace]:
        """
        Get the trace from the last debug run.

        Returns:
            PipelineTrace if the last generate()/layout_payload() call used
            debug=True, None otherwise.

        The trace lives on the generator, so debug runs made concurrently on
        one instance overwrite each other's trace. Pass ``trace=`` to
        generate()/layout_payload() to get a trace owned by the caller.
        """
        return self._trace

    def _start_trace(
        self,
        input_text: str,
        debug: bool,
        trace: Optional[PipelineTrace] = None,
    ) -> Optional[PipelineTrace]:
        if trace is not None:
            trace.input_text = input_text if isinstance(input_text, str) else ""
            trace.direction = self.direction
            return trace

        self._trace = None
        if debug:
            self._trace = PipelineTrace(
                input_text=input_text if isinstance(input_text, str) else "",
                direction=self.direction,
            )
        return self._trace

    def _positioned_nodes(
        self,
        graph: Graph,
        ranking: RankingResult,
        placement: Placement,
        boxes: Dict[str, NodeBox],
    ) -> List[PositionedNode]:
        positioned = []
        for node in graph.nodes:
            box = boxes[node.id]
            x, y = placement.to_xy(*placement.centers[node.id])
            positioned.append(
                PositionedNode(
                    node=node,
                    rank=ranking.ranks[node.id],
                    order=ranking.order_of(node.id),
                    x=x,
                    y=y,
                    width=box.width,
                    height=box.height,
                    lines=box.lines,
                )
            )
        return positioned


def generate_layout(input_text: str, **kwargs: Any) -> LayoutResult:
    """
    Convenience function to parse and lay out workflow text.

    Args:
        input_text: Workflow text
        **kwargs: Options passed to FlowchartGenerator

    Returns:
        LayoutResult
    """
    return FlowchartGenerator(**kwargs).generate(input_text)
