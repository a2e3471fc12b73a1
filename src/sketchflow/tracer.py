"""
Debug tracing for the parse-and-layout pipeline.

A :class:`PipelineTrace` collects one snapshot per pipeline stage plus one
record per classified token. The generator fills it when called with
``debug=True``; nothing is recorded otherwise.

Typical questions a trace answers:
1. Why did ``yes`` become a node instead of an edge label here?
2. Which edges were set aside to break a cycle?
3. What did the ranks and orders look like before geometry was added?

Usage:
    >>> generator = FlowchartGenerator()
    >>> layout = generator.generate("A? yes -> B; no -> C", debug=True)
    >>> trace = generator.get_trace()
    >>> print(trace.summary())
    >>> trace.dump_to_file("sketchflow_trace.txt")
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

MAX_VALUE_LENGTH = 100
RULE = "=" * 60


def _shorten(value: Any, limit: int = MAX_VALUE_LENGTH) -> str:
    text = str(value)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


@dataclass
class TokenDecision:
    """
    How one token was classified.

    Attributes:
        branch: Index of the branch the token belongs to.
        index: Index of the token within the expanded branch.
        token: The token text after fusion splitting.
        kind: The token kind that was chosen (e.g. "decision").
        reason: The rule that fired (e.g. "keyword after a node").
        node_id: Id of the node the token resolved to, if any.
    """

    branch: int
    index: int
    token: str
    kind: str
    reason: str
    node_id: Optional[str] = None

    def __str__(self) -> str:
        text = f"[{self.branch}:{self.index}] {self.token!r}: "
        text += f"{self.kind} ({self.reason})"
        if self.node_id:
            text += f" -> {self.node_id}"
        return text


@dataclass
class PipelineStage:
    """
    Data captured after one pipeline step.

    Stages, in the order they run:

    ========== ==================================================
    tokenize   branches and their step tokens
    classify   branch tokens after fused tokens were split
    build      nodes and edges produced by the graph builder
    validate   size of an externally supplied graph
    rank       rank of every node and the back edges set aside
    order      nodes (virtual ones as ``*``) of each rank, in order
    positions  canvas geometry of every node
    routes     polyline of every edge
    ========== ==================================================

    Text input skips ``validate``; payload input skips the first three.
    """

    name: str
    data: Dict[str, Any]

    def __str__(self) -> str:
        body = [f"  {key}: {_shorten(value)}" for key, value in self.data.items()]
        return "\n".join([f"=== Stage: {self.name} ==="] + body)


@dataclass
class PipelineTrace:
    """
    Everything recorded during one debug run.

    Attributes:
        stages: Stage snapshots in execution order.
        decisions: Classification record of every token.
        input_text: The workflow text that was parsed (empty for payloads).
        direction: Flow direction of the layout, "TB" or "LR".
    """

    stages: List[PipelineStage] = field(default_factory=list)
    decisions: List[TokenDecision] = field(default_factory=list)
    input_text: str = ""
    direction: str = "TB"

    def add_stage(self, name: str, data: Dict[str, Any]) -> None:
        """Record a shallow copy of ``data`` under the stage ``name``."""
        self.stages.append(PipelineStage(name, dict(data)))

    def add_decision(
        self,
        branch: int,
        index: int,
        token: str,
        kind: str,
        reason: str,
        node_id: Optional[str] = None,
    ) -> None:
        self.decisions.append(
            TokenDecision(branch, index, token, kind, reason, node_id)
        )

    def get_stage(self, name: str) -> Optional[PipelineStage]:
        """Return the first stage called ``name``, or None."""
        return next((stage for stage in self.stages if stage.name == name), None)

    def get_decisions_for_branch(self, branch: int) -> List[TokenDecision]:
        return [d for d in self.decisions if d.branch == branch]

    def get_decisions_by_kind(self, kind: str) -> List[TokenDecision]:
        return [d for d in self.decisions if d.kind == kind]

    def summary(self) -> str:
        """
        Short overview: input, stages that ran, and token counts per kind.
        """
        counts = Counter(decision.kind for decision in self.decisions)

        lines = [RULE, "PIPELINE TRACE SUMMARY", RULE, ""]
        lines.append(f"Direction: {self.direction}")
        lines.append(f"Input: {_shorten(repr(self.input_text))}")
        lines.append("")
        lines.append(f"Pipeline stages: {len(self.stages)}")
        lines.extend(f"  - {stage.name}" for stage in self.stages)
        lines.append("")
        lines.append(f"Classified tokens: {len(self.decisions)}")
        lines.append("")
        lines.append("Tokens by kind:")
        # Most frequent first, ties by name
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        for kind, count in ranked:
            lines.append(f"  {kind}: {count}")
        return "\n".join(lines)

    def dump(self) -> str:
        """Summary followed by every stage and every token decision."""
        sections = [self.summary(), "", RULE, "DETAILED TRACE", RULE, ""]

        sections += ["PIPELINE STAGES:", "-" * 40]
        for stage in self.stages:
            sections += [str(stage), ""]

        sections += ["TOKEN DECISIONS:", "-" * 40]
        sections += [str(decision) for decision in self.decisions]
        return "\n".join(sections)

    def dump_to_file(self, filename: str) -> None:
        with open(filename, "w", encoding="utf-8") as handle:
            handle.write(self.dump())
