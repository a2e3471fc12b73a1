"""
SketchFlow - Workflow text to laid-out flowcharts

A Python library that parses a small arrow / decision / branch notation into
a graph and computes a hierarchical layout ready for rendering.

Example:
    >>> from sketchflow import FlowchartGenerator
    >>> generator = FlowchartGenerator()
    >>> layout = generator.generate(
    ...     "Start -> Qualify lead? yes -> Book call; no -> Send email -> End"
    ... )
    >>> layout.to_dict()["width"] > 0
    True

Debug Mode Example:
    >>> generator = FlowchartGenerator()
    >>> layout = generator.generate("A? yes -> B; no -> C", debug=True)
    >>> trace = generator.get_trace()
    >>> print(trace.summary())
"""

from .classifier import EDGE_LABEL_KEYWORDS, ClassifiedToken, TokenKind
from .generator import FlowchartGenerator, generate_layout
from .layout import HierarchicalLayout, LayoutError, RankingResult
from .models import (
    Edge,
    Graph,
    LayoutResult,
    Node,
    NodeType,
    PositionedNode,
    RoutedEdge,
)
from .parser import GraphBuilder, ParseError, Parser, parse_workflow
from .positioning import PositionCalculator
from .router import EdgeRouter
from .sizing import NodeSizer, TextMeasurer
from .tokenizer import tokenize
from .tracer import PipelineStage, PipelineTrace, TokenDecision
from .validation import GraphValidationError, validate_graph_payload

__version__ = "0.3.0"

__all__ = [
    # Main API
    "FlowchartGenerator",
    "generate_layout",
    # Models
    "Node",
    "NodeType",
    "Edge",
    "Graph",
    "PositionedNode",
    "RoutedEdge",
    "LayoutResult",
    # Parser
    "Parser",
    "GraphBuilder",
    "ParseError",
    "parse_workflow",
    "tokenize",
    "TokenKind",
    "ClassifiedToken",
    "EDGE_LABEL_KEYWORDS",
    # Validation
    "GraphValidationError",
    "validate_graph_payload",
    # Layout
    "HierarchicalLayout",
    "RankingResult",
    "LayoutError",
    "PositionCalculator",
    "EdgeRouter",
    "NodeSizer",
    "TextMeasurer",
    # Debug/Tracing (for development and debugging)
    "PipelineTrace",
    "PipelineStage",
    "TokenDecision",
]
