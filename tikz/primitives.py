"""
tikz/primitives.py

Extract the geometric primitives from a TikZ picture produced by the
editor's LaTeX exporter.

This is **step 1** of the import pipeline:

    1. Primitive extraction → circles, labeled points, arcs, polylines
    2. Reconstruction       → nodes and edges (see ``tikz/importer.py``)

Only the statement shapes the exporter writes are recognised:

    \\draw [style] (x,y) circle (r);
    \\draw (x,y) node [hint] {$text$};
    \\draw [style] (x,y) arc (start:end:r);
    \\draw [style] (x1,y1) -- (x2,y2);
    \\fill [style] (x1,y1) -- (x2,y2) -- (x3,y3);

Anything else inside the picture is ignored.  All coordinates here are
still in markup space (y grows upwards, exporter scale applied).
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from geometry import Point


class StructuralParseError(ValueError):
    """Raised when the input holds no ``tikzpicture`` environment."""


# ═══════════════════════════════════════════════════════════
# Data classes
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CirclePrimitive:
    """``(x,y) circle (r)``: a node outline or an accept ring."""
    x: float
    y: float
    radius: float


@dataclass(frozen=True)
class LabeledPoint:
    """``(x,y) node [hint] {text}``: a caption.

    Attributes:
        x, y: Anchor of the text.
        text: Cleaned label text.
        position_hint: Placement option such as ``above`` or ``below``;
            empty for text centred on its point (node labels).
    """
    x: float
    y: float
    text: str
    position_hint: str = ""

    @property
    def is_caption(self) -> bool:
        """True for text offset from its anchor, i.e. an edge label."""
        return bool(self.position_hint.strip())


@dataclass(frozen=True)
class ArcPrimitive:
    """``(x,y) arc (start:end:r)`` with angles converted to radians.

    The markup gives the arc's start point, not its centre; the centre
    is derived from the start point and start angle.
    """
    start_x: float
    start_y: float
    start_angle: float
    end_angle: float
    radius: float

    @property
    def center(self) -> Point:
        return (self.start_x - self.radius * math.cos(self.start_angle),
                self.start_y - self.radius * math.sin(self.start_angle))

    @property
    def end_point(self) -> Point:
        cx, cy = self.center
        return (cx + self.radius * math.cos(self.end_angle),
                cy + self.radius * math.sin(self.end_angle))

    @property
    def midpoint(self) -> Point:
        """Point on the arc halfway between its start and end angles."""
        cx, cy = self.center
        mid = (self.start_angle + self.end_angle) / 2
        return cx + self.radius * math.cos(mid), cy + self.radius * math.sin(mid)


@dataclass(frozen=True)
class StrokePolyline:
    """``\\draw`` path of two or more points joined by ``--`` (an edge shaft)."""
    points: Tuple[Point, ...]


@dataclass(frozen=True)
class FillPolyline:
    """``\\fill`` path of three or more points (an arrowhead)."""
    points: Tuple[Point, ...]


Primitive = Union[CirclePrimitive, LabeledPoint, ArcPrimitive, StrokePolyline, FillPolyline]


@dataclass
class PrimitiveSet:
    """All primitives found in one picture, in document order per kind."""
    circles: List[CirclePrimitive] = field(default_factory=list)
    labels: List[LabeledPoint] = field(default_factory=list)
    arcs: List[ArcPrimitive] = field(default_factory=list)
    strokes: List[StrokePolyline] = field(default_factory=list)
    fills: List[FillPolyline] = field(default_factory=list)

    def add(self, primitive: Primitive) -> None:
        if isinstance(primitive, CirclePrimitive):
            self.circles.append(primitive)
        elif isinstance(primitive, LabeledPoint):
            self.labels.append(primitive)
        elif isinstance(primitive, ArcPrimitive):
            self.arcs.append(primitive)
        elif isinstance(primitive, StrokePolyline):
            self.strokes.append(primitive)
        elif isinstance(primitive, FillPolyline):
            self.fills.append(primitive)
        else:
            raise TypeError(f"Unknown primitive type: {type(primitive).__name__}")


# ═══════════════════════════════════════════════════════════
# Patterns
# ═══════════════════════════════════════════════════════════

_NUM = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_COORD = rf"\(\s*({_NUM})\s*,\s*({_NUM})\s*\)"
_STYLE = r"(?:\[[^\]]*\])?"

_BLOCK_RE = re.compile(
    r"\\begin\{tikzpicture\}(?:\s*\[[^\]]*\])?(.*?)\\end\{tikzpicture\}",
    re.DOTALL,
)

_VERB_RE = re.compile(r"\\(draw|fill)(?![A-Za-z])")

_CIRCLE_RE = re.compile(
    rf"^\\draw\s*{_STYLE}\s*{_COORD}\s*circle\s*\(\s*({_NUM})\s*\)\s*$"
)

_LABEL_RE = re.compile(
    rf"^\\draw\s*{_COORD}\s*node\s*(?:\[([^\]]*)\])?\s*\{{(.*)\}}\s*$",
    re.DOTALL,
)

_ARC_RE = re.compile(
    rf"^\\draw\s*{_STYLE}\s*{_COORD}\s*arc\s*"
    rf"\(\s*({_NUM})\s*:\s*({_NUM})\s*:\s*({_NUM})\s*\)\s*$"
)

_POLYLINE_RE = re.compile(
    rf"^\\(draw|fill)\s*{_STYLE}\s*({_COORD}(?:\s*--\s*{_COORD})+)\s*$"
)

_POINT_RE = re.compile(_COORD)


# ═══════════════════════════════════════════════════════════
# Block extraction and statement splitting
# ═══════════════════════════════════════════════════════════

def extract_block(text: str) -> str:
    """Return the body of the first ``tikzpicture`` environment.

    Surrounding document text (preamble, ``center`` wrapper) is
    discarded.  The environment's own ``[scale=...]`` option is skipped.

    Raises:
        StructuralParseError: If no complete environment is present.
    """
    m = _BLOCK_RE.search(text or "")
    if not m:
        raise StructuralParseError(
            "No tikzpicture environment found. Please paste valid TikZ LaTeX code."
        )
    return m.group(1)


def _statement_end(text: str, start: int) -> int:
    """Index of the first ``;`` at brace depth zero at or after *start*, or ``len(text)``."""
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(depth - 1, 0)
        elif ch == ";" and depth == 0:
            return i
        i += 1
    return len(text)


def split_statements(body: str) -> List[str]:
    """Split a picture body into ``\\draw`` / ``\\fill`` statements.

    Statements may span lines or share one; each ends at its first
    top-level semicolon, which is not included.  Text between
    statements (``\\tikzstyle`` and friends) is dropped.
    """
    statements: List[str] = []
    pos = 0
    while True:
        m = _VERB_RE.search(body, pos)
        if not m:
            break
        end = _statement_end(body, m.end())
        statements.append(" ".join(body[m.start():end].split()))
        pos = end + 1
    return statements


# ═══════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════

def clean_label_text(raw: str) -> str:
    """Strip math-mode dollars and turn ``\\mbox{ }`` back into spaces.

    Other backslash commands (``\\epsilon``, ``\\beta``) are kept as
    written, because the editor renders them itself.
    """
    text = raw.strip()
    if len(text) >= 2 and text.startswith("$") and text.endswith("$"):
        text = text[1:-1]
    return re.sub(r"\\mbox\{\s*\}", " ", text)


def _points(path: str) -> Tuple[Point, ...]:
    return tuple((float(x), float(y)) for x, y in _POINT_RE.findall(path))


def classify_statement(statement: str) -> Optional[Primitive]:
    """Match one statement against the primitive patterns.

    Patterns are tried in priority order: circle, labeled point, arc,
    polyline.  ``\\fill`` statements can only be arrowheads.

    Args:
        statement: A single statement without its trailing semicolon.

    Returns:
        The primitive, or ``None`` for anything unrecognised.
    """
    stmt = statement.strip()

    if stmt.startswith("\\draw"):
        m = _CIRCLE_RE.match(stmt)
        if m:
            return CirclePrimitive(float(m.group(1)), float(m.group(2)), float(m.group(3)))

        m = _LABEL_RE.match(stmt)
        if m:
            return LabeledPoint(
                x=float(m.group(1)),
                y=float(m.group(2)),
                text=clean_label_text(m.group(4)),
                position_hint=(m.group(3) or "").strip(),
            )

        m = _ARC_RE.match(stmt)
        if m:
            return ArcPrimitive(
                start_x=float(m.group(1)),
                start_y=float(m.group(2)),
                start_angle=math.radians(float(m.group(3))),
                end_angle=math.radians(float(m.group(4))),
                radius=float(m.group(5)),
            )

    m = _POLYLINE_RE.match(stmt)
    if m:
        points = _points(m.group(2))
        if m.group(1) == "fill":
            return FillPolyline(points) if len(points) >= 3 else None
        return StrokePolyline(points) if len(points) >= 2 else None

    return None


def parse_primitives(text: str) -> PrimitiveSet:
    """Extract every recognised primitive from a LaTeX fragment.

    Args:
        text: Raw pasted text containing one ``tikzpicture``.

    Returns:
        The primitives grouped by kind.

    Raises:
        StructuralParseError: If the ``tikzpicture`` environment is missing.
    """
    primitives = PrimitiveSet()
    for statement in split_statements(extract_block(text)):
        primitive = classify_statement(statement)
        if primitive is not None:
            primitives.add(primitive)
    return primitives
