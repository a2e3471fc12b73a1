"""
Layout module using networkx for hierarchical graph layout.

Uses networkx for:
- Graph representation
- Cycle detection
- Topological sorting / rank assignment

Ranking and ordering follow the layered (Sugiyama) approach:

1. Cycles are broken by setting DFS back edges aside.
2. Every node gets a rank with longest-path layering. Edges entering a merge
   point (a node with more than one incoming edge) must span at least
   ``merge_rank_gap`` ranks so converging branches are visibly separated.
3. Edges spanning several ranks are split with virtual nodes, one per
   intermediate rank.
4. Nodes within each rank are ordered with the barycenter heuristic; the
   ordering with the fewest crossings seen is kept.

Everything is driven by node and edge insertion order, so identical graphs
always produce identical layouts.
"""

from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Set, Tuple

import networkx as nx

from .models import Graph
from .tracer import PipelineTrace

VIRTUAL = "__virtual__"


class LayoutError(Exception):
    """Raised when a graph violates the builder invariants."""

    pass


def virtual_node(edge_index: int, step: int) -> Tuple[str, int, int]:
    """Key of the ``step``-th virtual node on edge ``edge_index``."""
    return (VIRTUAL, edge_index, step)


def is_virtual(node: Hashable) -> bool:
    return isinstance(node, tuple) and len(node) == 3 and node[0] == VIRTUAL


@dataclass
class RankingResult:
    """
    Result of rank assignment and ordering.

    Attributes:
        ranks: Rank of every real and virtual node.
        layers: Nodes of each rank in their final order, virtual nodes
            included.
        chains: For each forward edge (by index in ``graph.edges``) the
            nodes it passes through, source and target included.
        back_edges: Indices of edges set aside to break cycles.
        has_cycles: Whether the input graph contained a cycle.
        crossings: Number of crossings between adjacent ranks.
    """

    ranks: Dict[Hashable, int] = field(default_factory=dict)
    layers: List[List[Hashable]] = field(default_factory=list)
    chains: Dict[int, List[Hashable]] = field(default_factory=dict)
    back_edges: List[int] = field(default_factory=list)
    has_cycles: bool = False
    crossings: int = 0

    def order_of(self, node: Hashable) -> int:
        """Position of ``node`` within its rank."""
        return self.layers[self.ranks[node]].index(node)


def check_graph(graph: Graph) -> None:
    """
    Verify node ids are unique and every edge endpoint is a known node.

    Raises:
        LayoutError: On the first violation found.
    """
    known: Set[str] = set()
    for node in graph.nodes:
        if node.id in known:
            raise LayoutError(f"Duplicate node id '{node.id}'")
        known.add(node.id)

    for index, edge in enumerate(graph.edges):
        for end in (edge.source, edge.target):
            if end not in known:
                raise LayoutError(
                    f"Edge {index} ({edge.source} -> {edge.target}) "
                    f"references unknown node '{end}'"
                )


def count_crossings(layers: List[List[Hashable]], graph: nx.DiGraph) -> int:
    """Count edge crossings between every pair of adjacent layers."""
    total = 0
    for upper, lower in zip(layers, layers[1:]):
        upper_pos = {node: i for i, node in enumerate(upper)}
        lower_pos = {node: i for i, node in enumerate(lower)}
        segments = [
            (upper_pos[u], lower_pos[v])
            for u in upper
            for v in graph.successors(u)
            if v in lower_pos
        ]
        for i, (a1, b1) in enumerate(segments):
            for a2, b2 in segments[i + 1 :]:
                if (a1 - a2) * (b1 - b2) < 0:
                    total += 1
    return total


class HierarchicalLayout:
    """
    Rank and order assignment for workflow graphs.

    For DAGs: longest-path ranking over all edges.
    For cyclic graphs: identifies back edges, ranks without them, and reports
    them so they can be routed separately.
    """

    def __init__(self, merge_rank_gap: int = 2, ordering_passes: int = 4):
        """
        Initialize the layout.

        Args:
            merge_rank_gap: Minimum rank distance of an edge whose target
                has more than one incoming edge.
            ordering_passes: Number of down+up barycenter sweeps.
        """
        if merge_rank_gap < 1:
            raise ValueError("merge_rank_gap must be at least 1")
        if ordering_passes < 0:
            raise ValueError("ordering_passes must not be negative")

        self.merge_rank_gap = merge_rank_gap
        self.ordering_passes = ordering_passes

    def layout(
        self, graph: Graph, trace: Optional[PipelineTrace] = None
    ) -> RankingResult:
        """
        Compute ranks and within-rank order.

        Args:
            graph: The workflow graph.
            trace: Optional trace receiving ``rank`` and ``order`` stages.

        Returns:
            RankingResult with layers, virtual-node chains and back edges.

        Raises:
            LayoutError: If the graph references unknown node ids.
        """
        check_graph(graph)

        digraph = nx.DiGraph()
        digraph.add_nodes_from(graph.node_ids())
        digraph.add_edges_from((edge.source, edge.target) for edge in graph.edges)

        has_cycles = not nx.is_directed_acyclic_graph(digraph)
        back_pairs = self._find_back_edges(digraph) if has_cycles else set()

        result = RankingResult(has_cycles=has_cycles)
        result.back_edges = [
            index
            for index, edge in enumerate(graph.edges)
            if (edge.source, edge.target) in back_pairs
        ]

        working = digraph.copy()
        working.remove_edges_from(back_pairs)

        min_lengths = self._min_lengths(graph, back_pairs)
        ranks = self._assign_ranks(working, min_lengths)
        result.ranks = dict(ranks)

        layers, proper = self._build_layers(graph, ranks, result)

        if trace is not None:
            trace.add_stage(
                "rank",
                {
                    "ranks": {node: rank for node, rank in ranks.items()},
                    "back_edges": [
                        f"{graph.edges[i].source}->{graph.edges[i].target}"
                        for i in result.back_edges
                    ],
                    "has_cycles": has_cycles,
                },
            )

        result.layers, result.crossings = self._order_layers(layers, proper)

        if trace is not None:
            trace.add_stage(
                "order",
                {
                    "layers": [
                        [n if not is_virtual(n) else "*" for n in layer]
                        for layer in result.layers
                    ],
                    "crossings": result.crossings,
                },
            )

        return result

    def _find_back_edges(self, graph: nx.DiGraph) -> Set[Tuple[str, str]]:
        """
        Identify the edges that close cycles.

        Uses DFS from nodes with no predecessors (then from any unvisited
        node), both in insertion order. An edge into a node still on the DFS
        stack is a back edge; self loops are always back edges. The search is
        iterative, so arbitrarily long loops are fine.
        """
        # dfs_labeled_edges starts from nodes in graph order; put roots first.
        ordered = nx.DiGraph()
        ordered.add_nodes_from(n for n in graph.nodes() if graph.in_degree(n) == 0)
        ordered.add_nodes_from(graph.nodes())
        ordered.add_edges_from(graph.edges())

        on_stack: Set[str] = set()
        back_edges: Set[Tuple[str, str]] = set()
        for parent, child, kind in nx.dfs_labeled_edges(ordered):
            if kind == "forward":
                on_stack.add(child)
            elif kind == "reverse":
                on_stack.discard(child)
            elif kind == "nontree" and child in on_stack:
                back_edges.add((parent, child))

        return back_edges


    def _min_lengths(
        self, graph: Graph, back_pairs: Set[Tuple[str, str]]
    ) -> Dict[Tuple[str, str], int]:
        """Minimum rank span per forward (source, target) pair."""
        in_degree: Dict[str, int] = {}
        for edge in graph.edges:
            in_degree[edge.target] = in_degree.get(edge.target, 0) + 1

        min_lengths: Dict[Tuple[str, str], int] = {}
        for edge in graph.edges:
            pair = (edge.source, edge.target)
            if pair in back_pairs:
                continue
            merge = in_degree[edge.target] > 1
            min_lengths[pair] = self.merge_rank_gap if merge else 1
        return min_lengths

    def _assign_ranks(
        self, working: nx.DiGraph, min_lengths: Dict[Tuple[str, str], int]
    ) -> Dict[str, int]:
        """Longest-path ranking: each node sits below all its predecessors."""
        ranks: Dict[str, int] = {}
        for node in nx.topological_sort(working):
            ranks[node] = max(
                (
                    ranks[pred] + min_lengths[(pred, node)]
                    for pred in working.predecessors(node)
                ),
                default=0,
            )
        # topological_sort yields a different order than insertion; restore it
        return {node: ranks[node] for node in working.nodes()}

    def _build_layers(
        self, graph: Graph, ranks: Dict[str, int], result: RankingResult
    ) -> Tuple[List[List[Hashable]], nx.DiGraph]:
        """
        Split long edges with virtual nodes and group nodes by rank.

        Returns the initial layers (real nodes in insertion order, then
        virtual nodes in edge order) and the proper graph whose edges only
        join adjacent ranks.
        """
        if not ranks:
            return [], nx.DiGraph()

        layers: List[List[Hashable]] = [[] for _ in range(max(ranks.values()) + 1)]
        for node_id, rank in ranks.items():
            layers[rank].append(node_id)

        proper = nx.DiGraph()
        proper.add_nodes_from(ranks)
        back = set(result.back_edges)

        for index, edge in enumerate(graph.edges):
            if index in back:
                continue
            source_rank = ranks[edge.source]
            span = ranks[edge.target] - source_rank
            chain: List[Hashable] = [edge.source]
            for step in range(1, span):
                dummy = virtual_node(index, step)
                result.ranks[dummy] = source_rank + step
                layers[source_rank + step].append(dummy)
                chain.append(dummy)
            chain.append(edge.target)

            nx.add_path(proper, chain)
            result.chains[index] = chain

        return layers, proper

    def _order_layers(
        self, layers: List[List[Hashable]], graph: nx.DiGraph
    ) -> Tuple[List[List[Hashable]], int]:
        """
        Order nodes within each layer to minimize edge crossings.
        Uses barycenter heuristic and keeps the best ordering found.
        """
        layers = [list(layer) for layer in layers]
        best = [list(layer) for layer in layers]
        best_crossings = count_crossings(layers, graph)

        if len(layers) <= 1:
            return best, best_crossings

        for _ in range(self.ordering_passes):
            if best_crossings == 0:
                break

            # Forward pass
            for i in range(1, len(layers)):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i - 1], graph, use_predecessors=True
                )

            # Backward pass
            for i in range(len(layers) - 2, -1, -1):
                layers[i] = self._order_layer_by_barycenter(
                    layers[i], layers[i + 1], graph, use_predecessors=False
                )

            crossings = count_crossings(layers, graph)
            if crossings < best_crossings:
                best = [list(layer) for layer in layers]
                best_crossings = crossings

        return best, best_crossings

    def _order_layer_by_barycenter(
        self,
        layer: List[Hashable],
        ref_layer: List[Hashable],
        graph: nx.DiGraph,
        use_predecessors: bool,
    ) -> List[Hashable]:
        """
        Order nodes by barycenter (average position of connected nodes).
        """
        ref_positions = {node: i for i, node in enumerate(ref_layer)}
        own_positions = {node: i for i, node in enumerate(layer)}

        def barycenter(node: Hashable) -> float:
            if use_predecessors:
                neighbors = graph.predecessors(node)
            else:
                neighbors = graph.successors(node)

            positions = [ref_positions[n] for n in neighbors if n in ref_positions]

            if not positions:
                # Keep original order for nodes with no connections to ref layer
                return float(own_positions[node])

            return sum(positions) / len(positions)

        return sorted(layer, key=barycenter)
