"""
Parser module for workflow text.

Turns text such as::

    Start -> Qualify lead? yes -> Book call; no -> Send email -> End

into a :class:`~sketchflow.models.Graph`. Nodes are identified by their
cleaned label, so repeating a label in another branch merges the branches
into the same node. A branch after the first one that does not name its
starting node continues from the most recent decision node.

Malformed text is never an error: anything that cannot be read as a label
becomes a process node, and empty text yields an empty graph.
"""

from typing import Dict, List, Optional

from .classifier import (
    ClassifiedToken,
    StepToken,
    TokenKind,
    classify_token,
    expand_tokens,
)
from .models import Edge, Graph, Node, NodeType
from .tokenizer import tokenize
from .tracer import PipelineTrace


class ParseError(Exception):
    """Raised when the parser is given something other than text."""

    pass


class GraphBuilder:
    """
    Builds one graph from classified branch tokens.

    A builder owns all mutable parse state (the label -> id mapping and the
    last decision pointer) and is meant to be used for a single parse.
    """

    def __init__(self, trace: Optional[PipelineTrace] = None):
        self.nodes: List[Node] = []
        self.edges: List[Edge] = []
        self.node_ids: Dict[str, str] = {}
        self.last_decision: Optional[str] = None
        self.trace = trace

    def get_or_create_node(self, label: str, node_type: NodeType) -> str:
        """
        Return the id for ``label``, allocating a node on first sight.

        The type of a node is fixed by its first occurrence.
        """
        if label in self.node_ids:
            return self.node_ids[label]

        node_id = f"node_{len(self.nodes)}"
        self.node_ids[label] = node_id
        self.nodes.append(Node(id=node_id, label=label, type=node_type))
        return node_id

    def add_branch(self, branch_index: int, tokens: List[StepToken]) -> None:
        """
        Add one branch of already-split step tokens.

        Args:
            branch_index: Position of the branch in the input (0-based).
            tokens: The branch's step tokens, fused tokens already expanded.
        """
        continuation = branch_index > 0
        previous = self.last_decision if continuation else None
        pending_label: Optional[str] = None

        for index, (token, force_node) in enumerate(tokens):
            label_allowed = previous is not None or (continuation and index == 0)
            classified = classify_token(token, label_allowed, force_node)

            if classified.is_label:
                pending_label = classified.label
                self._record(branch_index, index, classified)
                continue

            node_type = (
                NodeType.DECISION
                if classified.kind is TokenKind.DECISION
                else NodeType.PROCESS
            )
            node_id = self.get_or_create_node(classified.text, node_type)
            self._record(branch_index, index, classified, node_id)

            if previous is not None:
                self.edges.append(Edge(previous, node_id, pending_label))
            pending_label = None

            previous = node_id
            if classified.kind is TokenKind.DECISION:
                self.last_decision = node_id

    def build(self) -> Graph:
        return Graph(nodes=list(self.nodes), edges=list(self.edges))

    def _record(
        self,
        branch_index: int,
        index: int,
        classified: ClassifiedToken,
        node_id: Optional[str] = None,
    ) -> None:
        if self.trace is not None:
            self.trace.add_decision(
                branch_index,
                index,
                classified.raw,
                classified.kind.value,
                classified.reason,
                node_id,
            )


class Parser:
    """Parses workflow text into a graph of nodes and labeled edges."""

    def parse(self, input_text: str, trace: Optional[PipelineTrace] = None) -> Graph:
        """
        Parse workflow text.

        Args:
            input_text: Text in the arrow / decision / branch syntax.
            trace: Optional trace that receives tokenize/classify/build
                stages and one decision record per token.

        Returns:
            A new Graph. Parsing the same text twice yields equal graphs.

        Raises:
            ParseError: If ``input_text`` is not a string.
        """
        if input_text is None:
            input_text = ""
        if not isinstance(input_text, str):
            raise ParseError(
                f"Expected workflow text, got {type(input_text).__name__}"
            )

        branches = tokenize(input_text)
        expanded = [expand_tokens(tokens) for tokens in branches]

        builder = GraphBuilder(trace=trace)
        for branch_index, tokens in enumerate(expanded):
            builder.add_branch(branch_index, tokens)
        graph = builder.build()

        if trace is not None:
            trace.add_stage("tokenize", {"branches": branches})
            trace.add_stage(
                "classify",
                {"branches": [[step.text for step in steps] for steps in expanded]},
            )
            trace.add_stage(
                "build",
                {
                    "nodes": [f"{n.id}={n.label!r}" for n in graph.nodes],
                    "edges": [
                        f"{e.source}->{e.target}"
                        + (f" [{e.label}]" if e.label else "")
                        for e in graph.edges
                    ],
                },
            )

        return graph


def parse_workflow(input_text: str) -> Graph:
    """
    Convenience function to parse workflow text.

    Args:
        input_text: Text in the arrow / decision / branch syntax

    Returns:
        Graph with nodes and edges
    """
    parser = Parser()
    return parser.parse(input_text)
