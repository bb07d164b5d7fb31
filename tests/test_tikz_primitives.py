"""Tests for tikz/primitives.py: step 1 of the TikZ import pipeline.

Validates block extraction, statement splitting and classification of
every statement shape the LaTeX exporter writes.
"""
from __future__ import annotations

import math

import pytest

from tikz.primitives import (
    ArcPrimitive,
    CirclePrimitive,
    FillPolyline,
    LabeledPoint,
    StrokePolyline,
    StructuralParseError,
    classify_statement,
    clean_label_text,
    extract_block,
    parse_primitives,
    split_statements,
)


# ═══════════════════════════════════════════════════════════
# Block extraction
# ═══════════════════════════════════════════════════════════

class TestExtractBlock:
    """Locating the tikzpicture environment."""

    def test_full_document(self):
        text = (
            "\\documentclass[12pt]{article}\n\\usepackage{tikz}\n"
            "\\begin{document}\n\\begin{center}\n"
            "\\begin{tikzpicture}[scale=0.2]\n"
            "\\draw [black] (1,2) circle (3);\n"
            "\\end{tikzpicture}\n\\end{center}\n\\end{document}\n"
        )
        body = extract_block(text)
        assert "circle (3)" in body
        assert "documentclass" not in body
        assert "scale=0.2" not in body

    def test_bare_environment(self):
        body = extract_block("\\begin{tikzpicture}\\draw (0,0) node {$x$};\\end{tikzpicture}")
        assert body == "\\draw (0,0) node {$x$};"

    def test_missing_environment_raises(self):
        with pytest.raises(StructuralParseError, match="No tikzpicture environment found"):
            extract_block("\\draw [black] (30,-30) circle (3);")

    def test_unterminated_environment_raises(self):
        with pytest.raises(StructuralParseError):
            extract_block("\\begin{tikzpicture}\n\\draw [black] (30,-30) circle (3);\n")

    def test_empty_input_raises(self):
        with pytest.raises(StructuralParseError):
            extract_block("")

    def test_structural_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_primitives("no picture here")


# ═══════════════════════════════════════════════════════════
# Statement splitting
# ═══════════════════════════════════════════════════════════

class TestSplitStatements:
    """Splitting a picture body into draw/fill statements."""

    def test_one_per_line(self):
        body = "\\draw [black] (1,2) circle (3);\n\\fill [black] (0,0) -- (1,0) -- (0,1);\n"
        assert split_statements(body) == [
            "\\draw [black] (1,2) circle (3)",
            "\\fill [black] (0,0) -- (1,0) -- (0,1)",
        ]

    def test_several_on_one_line(self):
        body = "\\draw (0,0) node {$a$}; \\draw (1,1) node {$b$};"
        assert len(split_statements(body)) == 2

    def test_statement_across_lines(self):
        body = "\\draw [black] (1,2)\n   -- (3,4);"
        assert split_statements(body) == ["\\draw [black] (1,2) -- (3,4)"]

    def test_semicolon_inside_braces(self):
        body = "\\draw (0,0) node {$a;b$};"
        assert split_statements(body) == ["\\draw (0,0) node {$a;b$}"]

    def test_other_commands_dropped(self):
        body = "\\tikzstyle{every node}+=[inner sep=0pt]\n\\draw [black] (1,2) circle (3);"
        assert split_statements(body) == ["\\draw [black] (1,2) circle (3)"]

    def test_filldraw_not_a_verb(self):
        assert split_statements("\\filldraw (0,0) circle (1);") == []


# ═══════════════════════════════════════════════════════════
# Classification
# ═══════════════════════════════════════════════════════════

class TestClassifyStatement:
    """Pattern matching of single statements."""

    def test_circle(self):
        p = classify_statement("\\draw [black] (30,-30) circle (3)")
        assert p == CirclePrimitive(30.0, -30.0, 3.0)

    def test_circle_without_style(self):
        p = classify_statement("\\draw (1.5,-2.25) circle (2.4)")
        assert p == CirclePrimitive(1.5, -2.25, 2.4)

    def test_label_without_hint(self):
        p = classify_statement("\\draw (30,-30) node {$q_0$}")
        assert isinstance(p, LabeledPoint)
        assert (p.x, p.y, p.text) == (30.0, -30.0, "q_0")
        assert p.position_hint == ""
        assert not p.is_caption

    def test_label_with_hint(self):
        p = classify_statement("\\draw (47.62,-32.37) node [above] {$1$}")
        assert isinstance(p, LabeledPoint)
        assert p.position_hint == "above"
        assert p.is_caption
        assert p.text == "1"

    def test_label_plain_braces(self):
        p = classify_statement("\\draw (0,0) node {start}")
        assert isinstance(p, LabeledPoint)
        assert p.text == "start"

    def test_label_with_mbox_spaces(self):
        p = classify_statement("\\draw (0,0) node {$a\\mbox{ }b$}")
        assert p.text == "a b"

    def test_arc(self):
        p = classify_statement("\\draw [black] (32.68,-28.68) arc (144:-144:2.25)")
        assert isinstance(p, ArcPrimitive)
        assert p.radius == 2.25
        assert p.start_angle == pytest.approx(math.radians(144))
        assert p.end_angle == pytest.approx(math.radians(-144))

    def test_arc_center_from_start_point(self):
        p = classify_statement("\\draw [black] (5,0) arc (0:90:5)")
        assert p.center == pytest.approx((0.0, 0.0))
        assert p.end_point == pytest.approx((0.0, 5.0), abs=1e-9)
        assert p.midpoint == pytest.approx((5 * math.cos(math.pi / 4), 5 * math.sin(math.pi / 4)))

    def test_stroke_polyline(self):
        p = classify_statement("\\draw [black] (53.2,-32.71) -- (42.1,-33.09)")
        assert p == StrokePolyline(((53.2, -32.71), (42.1, -33.09)))

    def test_stroke_polyline_many_points(self):
        p = classify_statement("\\draw [black] (0,0) -- (1,0) -- (1,1)")
        assert isinstance(p, StrokePolyline)
        assert len(p.points) == 3

    def test_fill_polyline(self):
        p = classify_statement("\\fill [black] (42.1,-33.09) -- (42.92,-33.57) -- (42.88,-32.57)")
        assert isinstance(p, FillPolyline)
        assert p.points[0] == (42.1, -33.09)

    def test_fill_needs_three_points(self):
        assert classify_statement("\\fill [black] (0,0) -- (1,1)") is None

    def test_fill_never_circle(self):
        assert classify_statement("\\fill [black] (0,0) circle (3)") is None

    def test_exponent_numbers(self):
        p = classify_statement("\\draw [black] (1e1,-2.5E0) circle (3)")
        assert p == CirclePrimitive(10.0, -2.5, 3.0)

    def test_unrecognised_statement(self):
        assert classify_statement("\\draw [black] (0,0) rectangle (1,1)") is None
        assert classify_statement("\\draw [->] (0,0) to[bend left] (1,1)") is None


class TestCleanLabelText:
    """Label text normalisation."""

    def test_mbox(self):
        assert clean_label_text("$\\mbox{ }$") == " "

    def test_plain(self):
        assert clean_label_text("$q_0$") == "q_0"

    def test_greek_kept(self):
        assert clean_label_text("$\\beta$") == "\\beta"

    def test_no_dollars(self):
        assert clean_label_text("abc") == "abc"


# ═══════════════════════════════════════════════════════════
# Whole-picture extraction
# ═══════════════════════════════════════════════════════════

class TestParsePrimitives:
    """Grouping of a full exported picture."""

    def test_directed_fixture_counts(self, load_fixture):
        prims = parse_primitives(load_fixture("directed.tex"))
        assert len(prims.circles) == 4
        assert len(prims.labels) == 9
        assert len(prims.arcs) == 5
        assert len(prims.strokes) == 2
        assert len(prims.fills) == 7

    def test_undirected_fixture_has_no_fills(self, load_fixture):
        prims = parse_primitives(load_fixture("undirected.tex"))
        assert prims.fills == []
        assert len(prims.arcs) == 5

    def test_unknown_statements_ignored(self):
        prims = parse_primitives(
            "\\begin{tikzpicture}\n"
            "\\draw [black] (0,0) rectangle (1,1);\n"
            "\\draw [black] (30,-30) circle (3);\n"
            "\\end{tikzpicture}"
        )
        assert len(prims.circles) == 1
        assert prims.labels == [] and prims.arcs == [] and prims.strokes == []
