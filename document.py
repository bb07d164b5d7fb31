"""
document.py

The editor's working diagram and its "Import LaTeX" action.

The import either replaces the whole diagram or leaves it untouched and
returns a message for the user.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from debug_trace import trace, trace_call, trace_exception
from models import Edge, Graph, Node
from tikz import StructuralParseError, TikzImporter


@dataclass
class FsmDocument:
    """Nodes and edges currently on the canvas."""
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)
    directed: bool = True

    def clear(self) -> None:
        self.nodes = []
        self.edges = []

    def replace(self, graph: Graph) -> None:
        """Swap in a reconstructed graph wholesale."""
        self.nodes = list(graph.nodes)
        self.edges = list(graph.edges)
        self.directed = graph.is_directed

    def to_graph(self) -> Graph:
        return Graph(nodes=list(self.nodes), edges=list(self.edges), is_directed=self.directed)

    @trace_call("IMPORT")
    def import_latex(self, text: str, importer: Optional[TikzImporter] = None) -> Optional[str]:
        """Replace the diagram with one parsed from pasted TikZ.

        Args:
            text: The pasted LaTeX.
            importer: Importer to use; a default one is created if omitted.

        Returns:
            ``None`` on success, otherwise the message to show the user.
        """
        latex = (text or "").strip()
        if not latex:
            return "Please paste some LaTeX code."

        importer = importer or TikzImporter()
        try:
            graph = importer.parse(latex)
        except StructuralParseError as e:
            trace_exception("LaTeX import failed")
            return f"Error: {e}"

        if not graph.nodes:
            return "Error: No nodes found in the LaTeX code. Make sure it contains valid TikZ circles."

        self.replace(graph)
        trace(f"Imported {len(self.nodes)} node(s) and {len(self.edges)} edge(s)", "IMPORT")
        return None
