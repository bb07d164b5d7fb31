"""
tikz package

Import of TikZ pictures written by the editor's LaTeX exporter.
"""

from tikz.primitives import StructuralParseError, parse_primitives
from tikz.importer import TikzImporter, import_from_latex

__all__ = [
    "StructuralParseError",
    "parse_primitives",
    "TikzImporter",
    "import_from_latex",
]
