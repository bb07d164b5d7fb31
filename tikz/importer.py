"""
tikz/importer.py

Rebuild a state-machine graph from the primitives of an exported TikZ
picture.

This is **step 2** of the import pipeline.  The markup carries no
semantic tags, so every entity is recovered by geometry:

    1. Circles         → nodes (outer ring) and accept flags (inner ring)
    2. Centred text    → node labels
    3. Small arcs      → self-loops (satellite circle at 1.5 × radius)
    4. Two-point lines → straight transitions and the start arrow
    5. Remaining arcs  → curved transitions, direction from arrowheads
    6. Offset text     → edge labels

Stages run in this order; self-loops must claim their arcs before the
curved-edge stage sees them.  A primitive no stage accepts is dropped
without error.
"""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from debug_trace import trace
from geometry import Point, distance, map_point, nearest_index
from models import Edge, Graph, Node, SelfLoop, StartArrow, Transition
from settings import ImporterSettings, get_settings
from tikz.primitives import (
    ArcPrimitive,
    CirclePrimitive,
    FillPolyline,
    LabeledPoint,
    PrimitiveSet,
    StrokePolyline,
    parse_primitives,
)


# ═══════════════════════════════════════════════════════════
# Thresholds
# ═══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ReconstructionThresholds:
    """Every matching threshold, derived from the node radius in force.

    Radii are in markup units, distances in canvas pixels.
    """
    node_radius: float
    scale: float
    outer_ring_radius: float
    inner_ring_radius: float
    self_loop_radius: float
    radius_tolerance: float
    dedupe_distance: float
    node_label_distance: float
    self_loop_distance: float
    self_loop_distance_tolerance: float
    straight_edge_distance: float
    curved_edge_distance: float
    arrowhead_distance: float
    edge_label_distance: float
    collinear_epsilon: float

    @classmethod
    def for_node_radius(cls, node_radius: float, settings: ImporterSettings) -> "ReconstructionThresholds":
        geo = settings.geometry
        mat = settings.matching
        scale = geo.coordinate_scale
        return cls(
            node_radius=node_radius,
            scale=scale,
            outer_ring_radius=node_radius / scale,
            inner_ring_radius=(node_radius - geo.accept_ring_inset) / scale,
            self_loop_radius=geo.self_loop_radius_factor * node_radius / scale,
            radius_tolerance=mat.radius_tolerance,
            dedupe_distance=mat.dedupe_distance,
            node_label_distance=mat.node_label_factor * node_radius,
            self_loop_distance=geo.self_loop_distance_factor * node_radius,
            self_loop_distance_tolerance=mat.self_loop_distance_tolerance,
            straight_edge_distance=node_radius + mat.straight_edge_padding,
            curved_edge_distance=node_radius + mat.curved_edge_padding,
            arrowhead_distance=mat.arrowhead_distance,
            edge_label_distance=mat.edge_label_distance,
            collinear_epsilon=mat.collinear_epsilon,
        )


def infer_node_radius(circles: List[CirclePrimitive], scale: float) -> Optional[float]:
    """Guess the node radius from the most common circle radius.

    Every node draws an outer ring, accept states add a smaller inner
    ring, so the outer radius is never the less frequent of the two.
    Ties go to the larger radius.

    Returns:
        Node radius in canvas pixels, or ``None`` without circles.
    """
    counts = Counter(round(c.radius, 3) for c in circles if c.radius > 0)
    if not counts:
        return None
    radius, _ = max(counts.items(), key=lambda kv: (kv[1], kv[0]))
    return radius * scale


# ═══════════════════════════════════════════════════════════
# Per-call state
# ═══════════════════════════════════════════════════════════

@dataclass
class _ReconstructionState:
    """Worklists for one import.  Matched items are removed, never flagged."""
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    remaining_labels: List[LabeledPoint] = field(default_factory=list)
    remaining_arcs: List[ArcPrimitive] = field(default_factory=list)
    remaining_fills: List[FillPolyline] = field(default_factory=list)
    labeled_edge_ids: Set[int] = field(default_factory=set)

    def node_positions(self) -> List[Point]:
        return [n.position for n in self.nodes]

    def nearest_node(self, x: float, y: float, threshold: float) -> Optional[Node]:
        idx = nearest_index(self.node_positions(), x, y, threshold)
        return self.nodes[idx] if idx is not None else None


# ═══════════════════════════════════════════════════════════
# Importer
# ═══════════════════════════════════════════════════════════

class TikzImporter:
    """Reconstructs a :class:`Graph` from TikZ text.

    The importer holds configuration only; each :meth:`parse` call works
    on its own state, so one instance can be shared between threads.

    Args:
        settings: Importer settings; defaults to the user's settings.
        node_radius: Node radius the diagram was drawn with; defaults
            to the settings value (or an inferred one when enabled).
        trace: Switch for stage tracing. Left as ``None`` it follows the
            user's ``[debug]`` settings, unless explicit *settings* were
            given, in which case tracing is off. With explicit settings
            :meth:`parse` never touches the settings file or trace log.
    """

    def __init__(self, settings: Optional[ImporterSettings] = None,
                 node_radius: Optional[float] = None,
                 trace: Optional[bool] = None):
        if settings is None:
            settings = get_settings().settings.importer
        elif trace is None:
            trace = False
        self.settings = settings
        self.node_radius = node_radius
        self.trace = trace

    def _trace(self, msg: str, category: str) -> None:
        trace(msg, category, enabled=self.trace)

    def parse(self, text: str) -> Graph:
        """Parse LaTeX text into a graph.

        Raises:
            StructuralParseError: If no ``tikzpicture`` environment is found.
        """
        self._trace("Parsing TikZ picture", "IMPORT")
        return self.reconstruct(parse_primitives(text))

    def reconstruct(self, primitives: PrimitiveSet) -> Graph:
        """Run every reconstruction stage over already-extracted primitives."""
        limits = ReconstructionThresholds.for_node_radius(
            self._resolve_node_radius(primitives), self.settings
        )
        state = _ReconstructionState(
            remaining_labels=list(primitives.labels),
            remaining_arcs=list(primitives.arcs),
            remaining_fills=list(primitives.fills),
        )

        self._resolve_nodes(state, primitives.circles, limits)
        self._assign_node_labels(state, limits)
        self._detect_self_loops(state, limits)
        self._resolve_straight_edges(state, primitives.strokes, limits)
        self._resolve_curved_edges(state, limits)
        self._assign_edge_labels(state, limits)

        self._trace(
            f"Reconstructed {len(state.nodes)} node(s), {len(state.edges)} edge(s); "
            f"{len(state.remaining_labels)} label(s) and {len(state.remaining_arcs)} arc(s) unused",
            "IMPORT",
        )
        return Graph(nodes=state.nodes, edges=state.edges, is_directed=bool(primitives.fills))

    def _resolve_node_radius(self, primitives: PrimitiveSet) -> float:
        if self.node_radius is not None:
            return self.node_radius
        geo = self.settings.geometry
        if geo.infer_node_radius:
            inferred = infer_node_radius(primitives.circles, geo.coordinate_scale)
            if inferred is not None:
                self._trace(f"Inferred node radius {inferred:g}", "IMPORT")
                return inferred
        return geo.node_radius

    # ── Stage 1: nodes ──

    def _find_node_at(self, state: _ReconstructionState, x: float, y: float,
                      limits: ReconstructionThresholds) -> Optional[Node]:
        for node in state.nodes:
            if abs(node.x - x) < limits.dedupe_distance and abs(node.y - y) < limits.dedupe_distance:
                return node
        return None

    def _resolve_nodes(self, state: _ReconstructionState, circles: List[CirclePrimitive],
                       limits: ReconstructionThresholds) -> None:
        for circle in circles:
            x, y = map_point(circle.x, circle.y, limits.scale)
            if abs(circle.radius - limits.outer_ring_radius) < limits.radius_tolerance:
                if self._find_node_at(state, x, y, limits) is None:
                    state.nodes.append(Node(x, y))
            elif abs(circle.radius - limits.inner_ring_radius) < limits.radius_tolerance:
                node = self._find_node_at(state, x, y, limits)
                if node is not None:
                    node.is_accept_state = True
                else:
                    self._trace(f"Accept ring at ({x:g}, {y:g}) has no node", "GAP")
            else:
                self._trace(f"Circle of radius {circle.radius:g} matches no ring class", "GAP")

    # ── Stage 2: node labels ──

    def _assign_node_labels(self, state: _ReconstructionState,
                            limits: ReconstructionThresholds) -> None:
        for label in list(state.remaining_labels):
            if label.is_caption:
                continue
            x, y = map_point(label.x, label.y, limits.scale)
            node = state.nearest_node(x, y, limits.node_label_distance)
            if node is not None:
                node.text = label.text
                state.remaining_labels.remove(label)

    # ── Stage 3: self-loops ──

    def _detect_self_loops(self, state: _ReconstructionState,
                           limits: ReconstructionThresholds) -> None:
        for arc in list(state.remaining_arcs):
            if abs(arc.radius - limits.self_loop_radius) >= limits.radius_tolerance:
                continue
            cx, cy = map_point(*arc.center, limits.scale)
            for node in state.nodes:
                dist = distance(node.x, node.y, cx, cy)
                if abs(dist - limits.self_loop_distance) < limits.self_loop_distance_tolerance:
                    state.edges.append(SelfLoop(node, anchor_angle=math.atan2(cy - node.y, cx - node.x)))
                    state.remaining_arcs.remove(arc)
                    break

    # ── Stage 4: straight edges and the start arrow ──

    def _resolve_straight_edges(self, state: _ReconstructionState, strokes: List[StrokePolyline],
                                limits: ReconstructionThresholds) -> None:
        for stroke in strokes:
            if len(stroke.points) != 2:
                self._trace(f"Polyline with {len(stroke.points)} points skipped", "GAP")
                continue
            start = map_point(*stroke.points[0], limits.scale)
            end = map_point(*stroke.points[1], limits.scale)
            start_node = state.nearest_node(*start, limits.straight_edge_distance)
            end_node = state.nearest_node(*end, limits.straight_edge_distance)

            if start_node is not None and end_node is not None:
                if start_node is end_node:
                    self._trace(f"Line from {start} to {end} starts and ends on one node", "GAP")
                    continue
                state.edges.append(Transition(start_node, end_node))
            elif end_node is not None:
                state.edges.append(StartArrow(end_node, start[0] - end_node.x, start[1] - end_node.y))
            elif start_node is not None:
                state.edges.append(StartArrow(start_node, end[0] - start_node.x, end[1] - start_node.y))
            else:
                self._trace(f"Line from {start} to {end} touches no node", "GAP")

    # ── Stage 5: curved edges ──

    def _take_arrowhead(self, state: _ReconstructionState, start: Point, end: Point,
                        limits: ReconstructionThresholds) -> Optional[bool]:
        """Claim the arrowhead nearest either arc end.

        Returns:
            True if it sits at the arc's start, False if at its end,
            ``None`` when no unclaimed arrowhead is close enough.
        """
        best: Optional[Tuple[float, FillPolyline, bool]] = None
        for fill in state.remaining_fills:
            tip_x, tip_y = map_point(*fill.points[0], limits.scale)
            to_start = distance(tip_x, tip_y, *start)
            to_end = distance(tip_x, tip_y, *end)
            if to_start < limits.arrowhead_distance or to_end < limits.arrowhead_distance:
                nearest = min(to_start, to_end)
                if best is None or nearest < best[0]:
                    best = (nearest, fill, to_start < to_end)
        if best is None:
            return None
        state.remaining_fills.remove(best[1])
        return best[2]

    def _resolve_curved_edges(self, state: _ReconstructionState,
                              limits: ReconstructionThresholds) -> None:
        for arc in list(state.remaining_arcs):
            start = map_point(arc.start_x, arc.start_y, limits.scale)
            end = map_point(*arc.end_point, limits.scale)
            start_node = state.nearest_node(*start, limits.curved_edge_distance)
            end_node = state.nearest_node(*end, limits.curved_edge_distance)
            if start_node is None or end_node is None or start_node is end_node:
                self._trace(f"Arc from {start} to {end} does not join two nodes", "GAP")
                continue

            arrow_at_start = self._take_arrowhead(state, start, end, limits)
            if arrow_at_start:
                node_a, node_b = end_node, start_node
            else:
                node_a, node_b = start_node, end_node

            mid_x, mid_y = map_point(*arc.midpoint, limits.scale)
            dx = node_b.x - node_a.x
            dy = node_b.y - node_a.y
            length = math.hypot(dx, dy)
            perpendicular = 0.0
            if length > 0:
                perpendicular = (dx * (mid_y - node_a.y) - dy * (mid_x - node_a.x)) / length

            state.edges.append(Transition(node_a, node_b, parallel_part=0.5,
                                          perpendicular_part=perpendicular))
            state.remaining_arcs.remove(arc)

    # ── Stage 6: edge labels ──

    def _edge_label_anchor(self, edge: Edge, limits: ReconstructionThresholds) -> Point:
        if isinstance(edge, SelfLoop):
            return edge.label_point(limits.node_radius)
        if isinstance(edge, StartArrow):
            return edge.start_point()
        if isinstance(edge, Transition):
            return edge.midpoint(limits.node_radius, limits.collinear_epsilon)
        raise TypeError(f"Unknown edge type: {type(edge).__name__}")

    def _assign_edge_labels(self, state: _ReconstructionState,
                            limits: ReconstructionThresholds) -> None:
        anchors = [(edge, self._edge_label_anchor(edge, limits)) for edge in state.edges]
        for label in list(state.remaining_labels):
            x, y = map_point(label.x, label.y, limits.scale)
            candidates = [
                (edge, anchor) for edge, anchor in anchors
                if id(edge) not in state.labeled_edge_ids
            ]
            idx = nearest_index([anchor for _, anchor in candidates], x, y,
                                limits.edge_label_distance)
            if idx is None:
                self._trace(f"Label {label.text!r} at ({x:g}, {y:g}) matches no edge", "GAP")
                continue
            edge = candidates[idx][0]
            edge.text = label.text
            state.labeled_edge_ids.add(id(edge))
            state.remaining_labels.remove(label)


def import_from_latex(text: str, node_radius: Optional[float] = None) -> Graph:
    """Parse exported TikZ text into a graph using the user's settings.

    Args:
        text: Pasted LaTeX containing one ``tikzpicture``.
        node_radius: Override for the node radius the diagram uses.

    Raises:
        StructuralParseError: If no ``tikzpicture`` environment is found.
    """
    return TikzImporter(node_radius=node_radius).parse(text)
