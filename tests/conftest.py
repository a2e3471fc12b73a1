"""Pytest configuration and shared fixtures for SketchFlow tests."""

import pytest

from sketchflow import FlowchartGenerator, HierarchicalLayout, Parser, parse_workflow


@pytest.fixture
def simple_input():
    """Simple linear workflow input."""
    return "A -> B -> C -> D"


@pytest.fixture
def lead_input():
    """Decision with a continuation branch that merges nothing."""
    return "Start -> Qualify lead? yes -> Book call; no -> Send email -> End"


@pytest.fixture
def merging_input():
    """Two decision branches converging on the same node."""
    return "Start -> Check? yes -> Approve -> Done; no -> Reject -> Done"


@pytest.fixture
def cyclic_input():
    """Workflow that loops back to an earlier step."""
    return "Draft -> Review? no -> Draft; yes -> Publish"


@pytest.fixture
def parser():
    """Default Parser instance."""
    return Parser()


@pytest.fixture
def layout_engine():
    """Default HierarchicalLayout instance."""
    return HierarchicalLayout()


@pytest.fixture
def generator():
    """Default FlowchartGenerator instance."""
    return FlowchartGenerator()


@pytest.fixture
def simple_graph(simple_input):
    """Pre-built linear graph."""
    return parse_workflow(simple_input)


@pytest.fixture
def merging_graph(merging_input):
    """Pre-built graph with a merge point."""
    return parse_workflow(merging_input)


@pytest.fixture
def cyclic_graph(cyclic_input):
    """Pre-built graph with a cycle."""
    return parse_workflow(cyclic_input)
