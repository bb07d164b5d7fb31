"""
models.py

Graph entities shared by the editor, the simulator and the TikZ importer.

Nodes and edges are field-for-field the shapes the interactive editor
creates, so a reconstructed diagram can replace a hand-drawn one.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Union

from geometry import Circle, Point, circle_from_three_points, point_on_circle


# ----------------------------
# Edge kind constants
# ----------------------------

class EdgeKind:
    """Tags for the three edge variants."""
    TRANSITION = "transition"
    SELF_LOOP = "self_loop"
    START = "start"


# ----------------------------
# Nodes
# ----------------------------

@dataclass(eq=False)
class Node:
    """A state. Compared by identity so edges can reference it safely."""
    x: float
    y: float
    is_accept_state: bool = False
    text: str = ""

    @property
    def position(self) -> Point:
        return self.x, self.y

    def closest_point_on_circle(self, x: float, y: float, node_radius: float) -> Point:
        """Point on this node's outline nearest to ``(x, y)``."""
        dx = x - self.x
        dy = y - self.y
        scale = math.hypot(dx, dy)
        if scale == 0.0:
            return self.x + node_radius, self.y
        return self.x + dx * node_radius / scale, self.y + dy * node_radius / scale


# ----------------------------
# Edges
# ----------------------------

@dataclass(eq=False)
class Transition:
    """A transition between two distinct nodes.

    The curve is anchored at a point expressed relative to the
    ``node_a`` → ``node_b`` segment: ``parallel_part`` is the fraction
    along the segment and ``perpendicular_part`` the signed pixel
    offset from it.  A zero perpendicular part draws a straight line.
    """
    kind: ClassVar[str] = EdgeKind.TRANSITION

    node_a: Node
    node_b: Node
    text: str = ""
    parallel_part: float = 0.5
    perpendicular_part: float = 0.0
    line_angle_adjust: float = 0.0

    @property
    def is_curved(self) -> bool:
        return self.perpendicular_part != 0

    def anchor_point(self) -> Point:
        """The point the curve is constrained to pass through."""
        dx = self.node_b.x - self.node_a.x
        dy = self.node_b.y - self.node_a.y
        scale = math.hypot(dx, dy)
        if scale == 0.0:
            return self.node_a.position
        return (
            self.node_a.x + dx * self.parallel_part - dy * self.perpendicular_part / scale,
            self.node_a.y + dy * self.parallel_part + dx * self.perpendicular_part / scale,
        )

    def curve_circle(self, epsilon: float = 1e-9) -> Optional[Circle]:
        """Circle through both node centres and the anchor, or ``None`` when straight."""
        if not self.is_curved:
            return None
        ax, ay = self.anchor_point()
        return circle_from_three_points(
            self.node_a.x, self.node_a.y, self.node_b.x, self.node_b.y, ax, ay, epsilon
        )

    def end_points_and_circle(self, node_radius: float, epsilon: float = 1e-9) -> Dict[str, Any]:
        """Drawn end points and, for curved transitions, the arc they lie on.

        Mirrors the editor's drawing routine: the arc is trimmed by the
        node radius at both ends.  Degenerate curves fall back to the
        straight rendering.
        """
        circle = self.curve_circle(epsilon)
        if circle is None:
            mid_x = (self.node_a.x + self.node_b.x) / 2
            mid_y = (self.node_a.y + self.node_b.y) / 2
            start = self.node_a.closest_point_on_circle(mid_x, mid_y, node_radius)
            end = self.node_b.closest_point_on_circle(mid_x, mid_y, node_radius)
            return {
                "has_circle": False,
                "start_x": start[0], "start_y": start[1],
                "end_x": end[0], "end_y": end[1],
            }

        is_reversed = self.perpendicular_part > 0
        reverse_scale = 1 if is_reversed else -1
        start_angle = (math.atan2(self.node_a.y - circle.y, self.node_a.x - circle.x)
                       - reverse_scale * node_radius / circle.radius)
        end_angle = (math.atan2(self.node_b.y - circle.y, self.node_b.x - circle.x)
                     + reverse_scale * node_radius / circle.radius)
        start = point_on_circle(circle.x, circle.y, circle.radius, start_angle)
        end = point_on_circle(circle.x, circle.y, circle.radius, end_angle)
        return {
            "has_circle": True,
            "start_x": start[0], "start_y": start[1],
            "end_x": end[0], "end_y": end[1],
            "start_angle": start_angle,
            "end_angle": end_angle,
            "circle": circle,
            "reverse_scale": reverse_scale,
            "is_reversed": is_reversed,
        }

    def midpoint(self, node_radius: float, epsilon: float = 1e-9) -> Point:
        """Middle of the drawn edge: the chord midpoint, or the arc's angular midpoint."""
        stuff = self.end_points_and_circle(node_radius, epsilon)
        if not stuff["has_circle"]:
            return ((self.node_a.x + self.node_b.x) / 2,
                    (self.node_a.y + self.node_b.y) / 2)

        start_angle = stuff["start_angle"]
        end_angle = stuff["end_angle"]
        if stuff["is_reversed"]:
            start_angle, end_angle = end_angle, start_angle
        if end_angle < start_angle:
            end_angle += math.pi * 2
        circle = stuff["circle"]
        return point_on_circle(circle.x, circle.y, circle.radius, (start_angle + end_angle) / 2)


@dataclass(eq=False)
class SelfLoop:
    """A transition from a node back to itself, drawn as a satellite arc."""
    kind: ClassVar[str] = EdgeKind.SELF_LOOP

    node: Node
    anchor_angle: float = 0.0
    text: str = ""

    def loop_circle(self, node_radius: float) -> Circle:
        """The satellite circle the loop is drawn on."""
        cx, cy = point_on_circle(self.node.x, self.node.y, 1.5 * node_radius, self.anchor_angle)
        return Circle(cx, cy, 0.75 * node_radius)

    def label_point(self, node_radius: float) -> Point:
        """Point on the loop farthest from the node, where its text sits."""
        c = self.loop_circle(node_radius)
        return point_on_circle(c.x, c.y, c.radius, self.anchor_angle)


@dataclass(eq=False)
class StartArrow:
    """The arrow marking the initial state; it has no source node."""
    kind: ClassVar[str] = EdgeKind.START

    node: Node
    delta_x: float = 0.0
    delta_y: float = 0.0
    text: str = ""

    def start_point(self) -> Point:
        """Free end of the arrow."""
        return self.node.x + self.delta_x, self.node.y + self.delta_y


Edge = Union[Transition, SelfLoop, StartArrow]


def edge_nodes(edge: Edge) -> List[Node]:
    """Nodes an edge refers to, in ``from``/``to`` order."""
    if isinstance(edge, Transition):
        return [edge.node_a, edge.node_b]
    if isinstance(edge, (SelfLoop, StartArrow)):
        return [edge.node]
    raise TypeError(f"Unknown edge type: {type(edge).__name__}")


# ----------------------------
# Graph
# ----------------------------

@dataclass
class Graph:
    """A complete state machine: nodes, edges and whether arrows were drawn.

    Attributes:
        nodes: All states.
        edges: Transitions, self-loops and the start arrow. Every node
            referenced here is an element of ``nodes``.
        is_directed: True when the source diagram carried arrowheads.
    """
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    is_directed: bool = False

    @property
    def start_node(self) -> Optional[Node]:
        for edge in self.edges:
            if isinstance(edge, StartArrow):
                return edge.node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a plain dict; edges refer to nodes by index.

        Returns:
            Dict with ``nodes``, ``edges`` and ``directed`` keys.

        Raises:
            ValueError: If an edge refers to a node not in ``nodes``.
        """
        index = {id(n): i for i, n in enumerate(self.nodes)}
        edges: List[Dict[str, Any]] = []
        for edge in self.edges:
            if any(id(n) not in index for n in edge_nodes(edge)):
                raise ValueError(f"{type(edge).__name__} refers to a node outside the graph")
            if isinstance(edge, Transition):
                edges.append({
                    "kind": edge.kind,
                    "from": index[id(edge.node_a)],
                    "to": index[id(edge.node_b)],
                    "text": edge.text,
                    "parallel_part": edge.parallel_part,
                    "perpendicular_part": edge.perpendicular_part,
                    "line_angle_adjust": edge.line_angle_adjust,
                })
            elif isinstance(edge, SelfLoop):
                edges.append({
                    "kind": edge.kind,
                    "node": index[id(edge.node)],
                    "text": edge.text,
                    "anchor_angle": edge.anchor_angle,
                })
            elif isinstance(edge, StartArrow):
                edges.append({
                    "kind": edge.kind,
                    "node": index[id(edge.node)],
                    "text": edge.text,
                    "delta_x": edge.delta_x,
                    "delta_y": edge.delta_y,
                })
        return {
            "nodes": [
                {"x": n.x, "y": n.y, "text": n.text, "is_accept_state": n.is_accept_state}
                for n in self.nodes
            ],
            "edges": edges,
            "directed": self.is_directed,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Graph":
        """Rebuild a graph from :meth:`to_dict` output.

        Raises:
            ValueError: On an unknown edge kind or a node index that does
                not exist.
        """
        nodes = [
            Node(
                x=float(n.get("x", 0.0)),
                y=float(n.get("y", 0.0)),
                is_accept_state=bool(n.get("is_accept_state", False)),
                text=str(n.get("text", "")),
            )
            for n in d.get("nodes", [])
        ]

        def _node(i: Any) -> Node:
            if not isinstance(i, int) or not 0 <= i < len(nodes):
                raise ValueError(f"Edge refers to missing node index {i!r}")
            return nodes[i]

        edges: List[Edge] = []
        for e in d.get("edges", []):
            kind = e.get("kind")
            if kind == EdgeKind.TRANSITION:
                edges.append(Transition(
                    _node(e.get("from")), _node(e.get("to")),
                    text=str(e.get("text", "")),
                    parallel_part=float(e.get("parallel_part", 0.5)),
                    perpendicular_part=float(e.get("perpendicular_part", 0.0)),
                    line_angle_adjust=float(e.get("line_angle_adjust", 0.0)),
                ))
            elif kind == EdgeKind.SELF_LOOP:
                edges.append(SelfLoop(
                    _node(e.get("node")),
                    anchor_angle=float(e.get("anchor_angle", 0.0)),
                    text=str(e.get("text", "")),
                ))
            elif kind == EdgeKind.START:
                edges.append(StartArrow(
                    _node(e.get("node")),
                    delta_x=float(e.get("delta_x", 0.0)),
                    delta_y=float(e.get("delta_y", 0.0)),
                    text=str(e.get("text", "")),
                ))
            else:
                raise ValueError(f"Unknown edge kind: {kind!r}")
        return cls(nodes=nodes, edges=edges, is_directed=bool(d.get("directed", False)))
