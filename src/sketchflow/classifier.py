"""
Token classification for workflow text.

Each step token produced by the tokenizer is one of:

- a bracketed edge label, ``[approved]``
- a keyword edge label, ``yes`` / ``no`` / ``true`` / ``false`` / ``ok`` /
  ``cancel`` (case-insensitive)
- a decision node, ``Qualify lead?``
- a process node, anything else

Two fused forms are split before classification so that a decision does not
swallow the label of its own outgoing edge and a bracket prefix does not end
up inside a node label:

- ``Check? yes`` / ``Check? [approved]`` -> ``Check?`` + label
- ``[approved] Ship it`` -> label + ``Ship it``, where ``Ship it`` always
  names a node (so ``[x] yes`` is a node called ``yes``)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Optional

EDGE_LABEL_KEYWORDS = ("yes", "no", "true", "false", "ok", "cancel")

_KEYWORDS = "|".join(EDGE_LABEL_KEYWORDS)

BRACKET_LABEL_PATTERN = re.compile(r"^\[([^\]]+)\]$")
BRACKET_PREFIX_PATTERN = re.compile(r"^\[([^\]]+)\]\s+(.+)$")
DECISION_BRACKET_PATTERN = re.compile(r"^(.+\?)\s+\[([^\]]+)\]$")
DECISION_KEYWORD_PATTERN = re.compile(
    rf"^(.+\?)\s+({_KEYWORDS})$", re.IGNORECASE
)


class TokenKind(str, Enum):
    """What a step token turned out to be."""

    BRACKET_LABEL = "bracket_label"
    KEYWORD_LABEL = "keyword_label"
    DECISION = "decision"
    PROCESS = "process"


@dataclass(frozen=True)
class ClassifiedToken:
    """
    A step token after classification.

    Attributes:
        raw: The token as it appeared after fusion splitting.
        kind: Classification result.
        text: Edge label text for label kinds, cleaned node label otherwise.
        reason: Short description of the rule that fired (used in traces).
    """

    raw: str
    kind: TokenKind
    text: str
    reason: str

    @property
    def is_label(self) -> bool:
        return self.kind in (TokenKind.BRACKET_LABEL, TokenKind.KEYWORD_LABEL)

    @property
    def is_node(self) -> bool:
        return not self.is_label

    @property
    def label(self) -> Optional[str]:
        """Edge label carried by a label token; empty text counts as none."""
        if self.is_label and self.text:
            return self.text
        return None


def is_keyword(token: str) -> bool:
    return token.lower() in EDGE_LABEL_KEYWORDS


class StepToken(NamedTuple):
    """
    One step token after fusion splitting.

    ``force_node`` marks the content half of ``[label] content``: it names the
    node the label points at, so it is never read as a keyword label.
    """

    text: str
    force_node: bool = False


def expand_token(token: str) -> List[StepToken]:
    """
    Split a fused token into its parts.

    Args:
        token: A single trimmed step token.

    Returns:
        ``[StepToken(token)]`` when nothing is fused, otherwise the parts in
        order: decision + label, bracketed label + node content, or all three.
    """
    # The decision part may itself carry a bracket prefix: "[a] Check? yes".
    match = DECISION_BRACKET_PATTERN.match(token)
    if match:
        label = StepToken(f"[{match.group(2).strip()}]")
        return expand_token(match.group(1).strip()) + [label]

    match = DECISION_KEYWORD_PATTERN.match(token)
    if match:
        keyword = StepToken(match.group(2).strip())
        return expand_token(match.group(1).strip()) + [keyword]

    match = BRACKET_PREFIX_PATTERN.match(token)
    if match:
        return [
            StepToken(f"[{match.group(1).strip()}]"),
            StepToken(match.group(2).strip(), force_node=True),
        ]

    return [StepToken(token)]


def expand_tokens(tokens: List[str]) -> List[StepToken]:
    """Apply :func:`expand_token` to every token of a branch, in order."""
    expanded: List[StepToken] = []
    for token in tokens:
        expanded.extend(expand_token(token))
    return expanded


def classify_token(
    token: str, label_allowed: bool, force_node: bool = False
) -> ClassifiedToken:
    """
    Classify a single expanded token.

    Args:
        token: The token to classify.
        label_allowed: Whether a bare keyword may act as an edge label here,
            i.e. a node precedes it in the branch or it opens a continuation
            branch.
        force_node: The token is the content of a bracket prefix and must
            name a node even when it is a bare keyword.

    Returns:
        The classified token. Never raises; anything unrecognized is a
        process node.
    """
    match = BRACKET_LABEL_PATTERN.match(token)
    if match:
        return ClassifiedToken(
            raw=token,
            kind=TokenKind.BRACKET_LABEL,
            text=match.group(1).strip(),
            reason="bracketed label",
        )

    if is_keyword(token) and label_allowed and not force_node:
        return ClassifiedToken(
            raw=token,
            kind=TokenKind.KEYWORD_LABEL,
            text=token,
            reason="keyword after a node",
        )

    if token.endswith("?"):
        return ClassifiedToken(
            raw=token,
            kind=TokenKind.DECISION,
            text=token[:-1].strip(),
            reason="trailing question mark",
        )

    if not is_keyword(token):
        reason = "default"
    elif force_node:
        reason = "keyword after a bracket label"
    else:
        reason = "keyword without predecessor"
    return ClassifiedToken(
        raw=token, kind=TokenKind.PROCESS, text=token, reason=reason
    )
