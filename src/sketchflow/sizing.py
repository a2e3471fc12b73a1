"""
Node sizing for workflow layout.

Labels are wrapped on word boundaries and every node gets a bounding box
large enough for its wrapped text. Text width is estimated with a fixed
per-character width unless a font is supplied, in which case Pillow measures
the real advance width of each line.

Process nodes are drawn as rectangles. Decision nodes are drawn as diamonds,
so their text must fit inside the rhombus: a ``w x h`` text block fits into a
``W x H`` diamond when ``w / W + h / H <= 1``.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from PIL import ImageFont

from .models import Node

DEFAULT_PROCESS_SIZE = (180.0, 60.0)
DEFAULT_DECISION_SIZE = (150.0, 100.0)


@dataclass(frozen=True)
class NodeBox:
    """Size of a node's bounding box and its wrapped label."""

    width: float
    height: float
    lines: Tuple[str, ...]


class TextMeasurer:
    """
    Measures rendered text width.

    Attributes:
        char_width: Estimated width of one character, used without a font.
        line_height: Height of one line of text.
        font: Pillow font used for measurement, if any.
    """

    def __init__(
        self,
        char_width: float = 8.0,
        line_height: float = 16.0,
        font_path: Optional[str] = None,
        font_size: int = 14,
        font=None,
    ):
        """
        Initialize the measurer.

        Args:
            char_width: Estimated character width for the fixed-width mode.
            line_height: Height of one text line.
            font_path: Path to a TrueType/OpenType font to measure with.
            font_size: Point size used when loading ``font_path``.
            font: An already loaded Pillow font; takes precedence over
                ``font_path``.
        """
        if char_width <= 0:
            raise ValueError("char_width must be positive")
        if line_height <= 0:
            raise ValueError("line_height must be positive")

        self.char_width = char_width
        self.line_height = line_height

        if font is None and font_path is not None:
            try:
                font = ImageFont.truetype(font_path, font_size)
            except OSError as exc:
                raise ValueError(f"Cannot load font '{font_path}': {exc}") from exc
        self.font = font

    def measure(self, text: str) -> float:
        """Return the width of ``text`` on a single line."""
        if self.font is not None:
            return float(self.font.getlength(text))
        return len(text) * self.char_width


def wrap_label(
    label: str, max_width: float, measure: Callable[[str], float]
) -> List[str]:
    """
    Greedy word wrap.

    Words are never split; a word wider than ``max_width`` gets a line of
    its own.

    Args:
        label: Text to wrap.
        max_width: Maximum line width.
        measure: Function returning the width of a string.

    Returns:
        Wrapped lines; empty for a blank label.
    """
    lines: List[str] = []
    current = ""

    for word in label.split():
        candidate = f"{current} {word}" if current else word
        if current and measure(candidate) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate

    if current:
        lines.append(current)

    return lines


class NodeSizer:
    """
    Calculates node bounding boxes from their labels.

    Attributes:
        measurer: Text measurer used for wrapping and sizing.
        process_size: Minimum (width, height) of a process node.
        decision_size: Minimum (width, height) of a decision node.
        padding: Space between the text block and the node outline.
    """

    def __init__(
        self,
        measurer: Optional[TextMeasurer] = None,
        process_size: Tuple[float, float] = DEFAULT_PROCESS_SIZE,
        decision_size: Tuple[float, float] = DEFAULT_DECISION_SIZE,
        padding: float = 10.0,
    ):
        for name, (width, height) in (
            ("process_size", process_size),
            ("decision_size", decision_size),
        ):
            if width <= 0 or height <= 0:
                raise ValueError(f"{name} must be positive, got {(width, height)}")
        if padding < 0:
            raise ValueError("padding must not be negative")

        self.measurer = measurer or TextMeasurer()
        self.process_size = process_size
        self.decision_size = decision_size
        self.padding = padding

    def size(self, node: Node) -> NodeBox:
        if node.is_decision:
            return self._size_decision(node.label)
        return self._size_process(node.label)

    def _text_block(
        self, label: str, wrap_width: float
    ) -> Tuple[List[str], float, float]:
        wrap_width = max(wrap_width, self.measurer.char_width)
        lines = wrap_label(label, wrap_width, self.measurer.measure)
        if not lines:
            return lines, 0.0, 0.0
        width = max(self.measurer.measure(line) for line in lines)
        height = len(lines) * self.measurer.line_height
        return lines, width, height

    def _size_process(self, label: str) -> NodeBox:
        min_width, min_height = self.process_size
        lines, text_width, text_height = self._text_block(
            label, min_width - 2 * self.padding
        )
        width = max(min_width, text_width + 2 * self.padding)
        height = max(min_height, text_height + 2 * self.padding)
        return NodeBox(width, height, tuple(lines))

    def _size_decision(self, label: str) -> NodeBox:
        min_width, min_height = self.decision_size
        # The widest rectangle inscribed in a diamond is half as wide.
        lines, text_width, text_height = self._text_block(
            label, min_width / 2 - self.padding
        )
        if not lines:
            return NodeBox(min_width, min_height, ())

        block_width = text_width + 2 * self.padding
        block_height = text_height + 2 * self.padding
        scale = max(1.0, block_width / min_width + block_height / min_height)
        return NodeBox(min_width * scale, min_height * scale, tuple(lines))
