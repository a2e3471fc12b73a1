"""
Tokenizer for workflow text.

Splits raw input into ``;``-separated branches and each branch into
``->``-separated step tokens. Both ``->`` and the unicode arrow ``→`` are
accepted; the unicode form is normalized first.
"""

import re
from typing import List

ARROW = "->"
UNICODE_ARROW = "→"
BRANCH_SEPARATOR = ";"

ARROW_PATTERN = re.compile(r"\s*->\s*")


def normalize_arrows(text: str) -> str:
    """Replace every unicode arrow with the canonical ``->``."""
    return text.replace(UNICODE_ARROW, ARROW)


def split_branches(text: str) -> List[str]:
    """Split on ``;``, trimming whitespace and dropping empty branches."""
    branches = (part.strip() for part in text.split(BRANCH_SEPARATOR))
    return [branch for branch in branches if branch]


def split_steps(branch: str) -> List[str]:
    """Split a branch on ``->`` into trimmed, non-empty step tokens."""
    steps = (part.strip() for part in ARROW_PATTERN.split(branch))
    return [step for step in steps if step]


def tokenize(text: str) -> List[List[str]]:
    """
    Turn workflow text into a list of branches, each a list of step tokens.

    Args:
        text: Workflow text such as ``"A -> B? yes -> C; no -> D"``.

    Returns:
        One list of tokens per non-empty branch, in input order. A branch
        made only of arrows keeps its slot as an empty list so later
        branches keep their index. Empty or whitespace-only text yields an
        empty list.
    """
    if not text or not text.strip():
        return []

    normalized = normalize_arrows(text)
    return [split_steps(branch) for branch in split_branches(normalized)]
