"""Tests for the "Import LaTeX" action on FsmDocument."""
from __future__ import annotations

from document import FsmDocument
from models import Node, SelfLoop


def _document_with_one_node() -> FsmDocument:
    node = Node(10.0, 10.0, text="old")
    return FsmDocument(nodes=[node], edges=[SelfLoop(node)])


class TestImportLatex:
    def test_success_replaces_diagram(self, load_fixture):
        doc = _document_with_one_node()
        assert doc.import_latex(load_fixture("directed.tex")) is None
        assert [n.text for n in doc.nodes] == ["S", "A", "B"]
        assert len(doc.edges) == 7
        assert doc.directed is True

    def test_undirected_import_clears_directed_flag(self, load_fixture):
        doc = FsmDocument()
        assert doc.import_latex(load_fixture("undirected.tex")) is None
        assert doc.directed is False

    def test_empty_input(self):
        doc = _document_with_one_node()
        assert doc.import_latex("   \n") == "Please paste some LaTeX code."
        assert doc.nodes[0].text == "old"

    def test_structural_error(self):
        doc = _document_with_one_node()
        message = doc.import_latex("\\draw [black] (30,-30) circle (3);")
        assert message.startswith("Error: No tikzpicture environment found")
        assert doc.nodes[0].text == "old"
        assert len(doc.edges) == 1

    def test_no_nodes(self):
        doc = _document_with_one_node()
        message = doc.import_latex("\\begin{tikzpicture}\n\\draw (0,0) node {$x$};\n\\end{tikzpicture}")
        assert message == (
            "Error: No nodes found in the LaTeX code. Make sure it contains valid TikZ circles."
        )
        assert doc.nodes[0].text == "old"


class TestFsmDocument:
    def test_clear(self):
        doc = _document_with_one_node()
        doc.clear()
        assert doc.nodes == [] and doc.edges == []

    def test_to_graph_round_trip(self, load_fixture):
        doc = FsmDocument()
        doc.import_latex(load_fixture("directed.tex"))
        graph = doc.to_graph()
        assert graph.nodes == doc.nodes
        assert graph.is_directed is True
        assert graph.start_node.text == "S"
