"""Unit tests for the models module."""

from sketchflow.models import (
    Edge,
    Graph,
    LayoutResult,
    Node,
    NodeType,
    PositionedNode,
    RoutedEdge,
)


class TestNodeAndEdge:
    """Tests for Node and Edge."""

    def test_node_defaults(self):
        """Test that nodes default to process."""
        node = Node("node_0", "Start")
        assert node.type == NodeType.PROCESS
        assert not node.is_decision

    def test_node_to_dict(self):
        """Test node serialization."""
        node = Node("node_1", "Qualify lead", NodeType.DECISION)
        assert node.to_dict() == {
            "id": "node_1",
            "label": "Qualify lead",
            "type": "decision",
        }

    def test_edge_to_dict(self):
        """Test that edges serialize with from/to keys."""
        assert Edge("a", "b", "yes").to_dict() == {"from": "a", "to": "b", "label": "yes"}
        assert Edge("a", "b").to_dict()["label"] is None


class TestGraph:
    """Tests for Graph helpers."""

    def test_lookups(self):
        """Test finding nodes by id and by label."""
        graph = Graph(nodes=[Node("n0", "A"), Node("n1", "B")], edges=[Edge("n0", "n1")])
        assert graph.get_node("n1").label == "B"
        assert graph.get_node("missing") is None
        assert graph.get_node_by_label("A").id == "n0"
        assert graph.get_node_by_label("C") is None

    def test_in_degree_counts_parallel_edges(self):
        """Test that parallel edges each count."""
        graph = Graph(
            nodes=[Node("a", "A"), Node("b", "B")],
            edges=[Edge("a", "b", "yes"), Edge("a", "b", "no")],
        )
        assert graph.in_degree("b") == 2
        assert graph.in_degree("a") == 0

    def test_empty(self):
        """Test the empty graph."""
        assert Graph().is_empty()
        assert Graph().to_dict() == {"nodes": [], "edges": []}


class TestLayoutModels:
    """Tests for PositionedNode, RoutedEdge and LayoutResult."""

    def positioned(self):
        return PositionedNode(
            node=Node("a", "Book call"),
            rank=2,
            order=0,
            x=100.0,
            y=50.0,
            width=180.0,
            height=60.0,
            lines=("Book call",),
        )

    def test_box_edges(self):
        """Test the bounding box properties."""
        p = self.positioned()
        assert (p.left, p.right, p.top, p.bottom) == (10.0, 190.0, 20.0, 80.0)
        assert p.id == "a"

    def test_positioned_to_dict(self):
        """Test positioned node serialization."""
        assert self.positioned().to_dict() == {
            "id": "a",
            "label": "Book call",
            "type": "process",
            "rank": 2,
            "order": 0,
            "x": 100.0,
            "y": 50.0,
            "width": 180.0,
            "height": 60.0,
            "lines": ["Book call"],
        }

    def test_routed_edge_to_dict(self):
        """Test routed edge serialization."""
        routed = RoutedEdge(Edge("a", "b", "no"), ((1.0, 2.0), (1.0, 9.0)), True)
        assert routed.source == "a"
        assert routed.target == "b"
        assert routed.label == "no"
        assert routed.to_dict() == {
            "from": "a",
            "to": "b",
            "label": "no",
            "points": [[1.0, 2.0], [1.0, 9.0]],
            "back_edge": True,
        }

    def test_layout_result(self):
        """Test layout result helpers and serialization."""
        forward = RoutedEdge(Edge("a", "b"), ((0.0, 0.0), (0.0, 1.0)))
        back = RoutedEdge(Edge("b", "a"), ((0.0, 1.0), (0.0, 0.0)), True)
        result = LayoutResult(
            nodes=(self.positioned(),),
            edges=(forward, back),
            width=300.0,
            height=200.0,
        )
        assert result.get_node("a") is result.nodes[0]
        assert result.get_node("zz") is None
        assert result.back_edges == [back]
        data = result.to_dict()
        assert set(data) == {"nodes", "edges", "width", "height"}
        assert data["width"] == 300.0
        assert len(data["edges"]) == 2
