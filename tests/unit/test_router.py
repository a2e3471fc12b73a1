"""Unit tests for the router module."""

import pytest

from sketchflow.layout import HierarchicalLayout
from sketchflow.parser import parse_workflow
from sketchflow.positioning import PositionCalculator
from sketchflow.router import EdgeRouter, NodeShape, PortSide
from sketchflow.sizing import NodeSizer

EPS = 1e-9


def route(text, direction="TB", back_edge_spacing=30.0):
    """Run the pipeline up to routing and return the pieces."""
    graph = parse_workflow(text)
    ranking = HierarchicalLayout().layout(graph)
    sizer = NodeSizer()
    boxes = {node.id: sizer.size(node) for node in graph.nodes}
    calculator = PositionCalculator(direction=direction)
    placement = calculator.calculate_positions(ranking, boxes)
    routes = EdgeRouter(back_edge_spacing).route_edges(
        graph, ranking, placement, boxes, calculator
    )
    return graph, placement, boxes, routes


def on_outline(point, graph, placement, boxes, node_id):
    """Whether ``point`` lies on the drawn outline of a node."""
    cx, cy = placement.to_xy(*placement.centers[node_id])
    half_w = boxes[node_id].width / 2
    half_h = boxes[node_id].height / 2
    dx = abs(point[0] - cx)
    dy = abs(point[1] - cy)
    if graph.get_node(node_id).is_decision:
        return abs(dx / half_w + dy / half_h - 1) < EPS
    on_vertical = abs(dx - half_w) < EPS and dy <= half_h + EPS
    on_horizontal = abs(dy - half_h) < EPS and dx <= half_w + EPS
    return on_vertical or on_horizontal


def is_orthogonal(points):
    return all(a[0] == b[0] or a[1] == b[1] for a, b in zip(points, points[1:]))


WORKFLOWS = [
    "A -> B -> C",
    "Start -> Qualify lead? yes -> Book call; no -> Send email -> End",
    "Start -> Check? yes -> Approve -> Done; no -> Reject -> Done",
    "Draft -> Review? no -> Draft; yes -> Publish",
    "Retry? yes -> Retry?; no -> Stop",
]


class TestNodeShape:
    """Tests for port placement on node outlines."""

    @pytest.fixture
    def diamond(self):
        return NodeShape(cross=0.0, main=0.0, half_cross=75.0, half_main=50.0, diamond=True)

    @pytest.fixture
    def rectangle(self):
        return NodeShape(cross=0.0, main=0.0, half_cross=90.0, half_main=30.0, diamond=False)

    def test_diamond_vertex(self, diamond):
        """Test that a centered port on a diamond is its vertex."""
        port = diamond.port("n", PortSide.FLOW_OUT, 0.0)
        assert (port.cross, port.main) == (0.0, 50.0)

    def test_diamond_offset_port(self, diamond):
        """Test that an offset port follows the slanted side."""
        port = diamond.port("n", PortSide.FLOW_IN, 37.5)
        assert (port.cross, port.main) == (37.5, -25.0)

    def test_diamond_side_ports(self, diamond):
        """Test ports on the near and far sides of a diamond."""
        near = diamond.port("n", PortSide.NEAR, 0.0)
        far = diamond.port("n", PortSide.FAR, 25.0)
        assert (near.cross, near.main) == (-75.0, 0.0)
        assert (far.cross, far.main) == (37.5, 25.0)

    def test_rectangle_ports(self, rectangle):
        """Test that rectangle ports keep their full depth."""
        port = rectangle.port("n", PortSide.FLOW_OUT, 45.0)
        assert (port.cross, port.main) == (45.0, 30.0)
        port = rectangle.port("n", PortSide.FAR, -10.0)
        assert (port.cross, port.main) == (90.0, -10.0)


class TestEdgeRouter:
    """Tests for EdgeRouter."""

    def test_rejects_non_positive_spacing(self):
        """Test that lane spacing must be positive."""
        with pytest.raises(ValueError):
            EdgeRouter(back_edge_spacing=0)

    def test_port_offsets(self):
        """Test that ports are spread evenly across a side."""
        router = EdgeRouter()
        assert router._port_offset(30.0, 0, 1) == 0.0
        assert [router._port_offset(30.0, slot, 3) for slot in range(3)] == [
            -15.0,
            0.0,
            15.0,
        ]

    def test_one_route_per_edge_in_order(self):
        """Test that routes match graph edges one to one."""
        graph, _, _, routes = route(WORKFLOWS[2])
        assert [r.edge for r in routes] == graph.edges

    @pytest.mark.parametrize("direction", ["TB", "LR"])
    @pytest.mark.parametrize("text", WORKFLOWS)
    def test_endpoints_on_outlines(self, text, direction):
        """Test that every edge starts and ends on a node outline."""
        graph, placement, boxes, routes = route(text, direction)
        for routed in routes:
            assert on_outline(routed.points[0], graph, placement, boxes, routed.source)
            assert on_outline(routed.points[-1], graph, placement, boxes, routed.target)

    @pytest.mark.parametrize("direction", ["TB", "LR"])
    @pytest.mark.parametrize("text", WORKFLOWS)
    def test_paths_are_orthogonal(self, text, direction):
        """Test that every segment is horizontal or vertical."""
        _, _, _, routes = route(text, direction)
        for routed in routes:
            assert len(routed.points) >= 2
            assert is_orthogonal(routed.points)

    def test_straight_edge(self):
        """Test that vertically aligned nodes get a two-point path."""
        graph, placement, boxes, routes = route("A -> B")
        cx, cy = placement.centers["node_0"]
        assert routes[0].points == ((cx, cy + 30.0), (cx, placement.centers["node_1"][1] - 30.0))

    def test_decision_branches_leave_from_distinct_ports(self):
        """Test that two branches do not share an exit point."""
        _, _, _, routes = route(WORKFLOWS[1])
        yes, no = routes[1], routes[2]
        assert yes.points[0] != no.points[0]
        assert yes.points[0][0] < no.points[0][0]

    def test_merge_point_has_distinct_entries(self):
        """Test that edges into a merge point enter at different places."""
        graph, _, _, routes = route(WORKFLOWS[2])
        done = graph.get_node_by_label("Done").id
        entries = [r.points[-1] for r in routes if r.target == done]
        assert len(entries) == 2
        assert entries[0] != entries[1]

    def test_forward_edges_flow_downward(self):
        """Test that forward edges end below where they start."""
        _, _, _, routes = route(WORKFLOWS[2])
        for routed in routes:
            assert routed.points[-1][1] > routed.points[0][1]


class TestBackEdges:
    """Tests for routing edges against the flow."""

    def test_back_edge_uses_side_lane(self):
        """Test that a back edge runs beside the drawing."""
        graph, placement, boxes, routes = route(WORKFLOWS[3])
        back = [r for r in routes if r.is_back_edge]
        assert len(back) == 1
        points = back[0].points
        assert len(points) == 6
        lane = points[2][0]
        assert points[3][0] == lane
        lefts = [placement.centers[n.id][0] - boxes[n.id].width / 2 for n in graph.nodes]
        assert lane == min(lefts) - 30.0

    def test_back_edge_lanes_do_not_share(self):
        """Test that each back edge gets its own lane."""
        _, _, _, routes = route("A -> B -> C -> A; D -> E -> D", back_edge_spacing=25.0)
        lanes = [r.points[2][0] for r in routes if r.is_back_edge]
        assert len(lanes) == 2
        assert abs(lanes[0] - lanes[1]) == 25.0

    def test_self_loop_on_far_side(self):
        """Test that a self loop is drawn to the right of its node in TB."""
        graph, placement, boxes, routes = route("A -> A")
        points = routes[0].points
        cx, _ = placement.centers["node_0"]
        right = cx + boxes["node_0"].width / 2
        assert routes[0].is_back_edge
        assert len(points) == 4
        assert points[0][0] == right
        assert points[1][0] == right + 30.0
        assert points[0][1] < points[-1][1]

    def test_repeated_self_loops_nest(self):
        """Test that a second loop on the same node reaches further out."""
        _, _, _, routes = route("A -> A -> A")
        assert routes[1].points[1][0] - routes[0].points[1][0] == 30.0
