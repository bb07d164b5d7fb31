"""
main.py

Command-line entry point: reconstruct a state machine from an exported
TikZ picture and print it as JSON.
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from typing import List, Optional

from debug_trace import close_log, trace
from settings import get_settings
from tikz import StructuralParseError, TikzImporter


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rebuild a finite-state-machine graph from exported TikZ code."
    )
    parser.add_argument(
        "file",
        help="Path to a .tex file containing a tikzpicture, or '-' for stdin.",
    )
    parser.add_argument(
        "--node-radius",
        type=float,
        metavar="PX",
        help="Node radius the diagram was drawn with (default: from settings).",
    )
    parser.add_argument(
        "--infer-radius",
        action="store_true",
        help="Guess the node radius from the circles in the picture.",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        metavar="N",
        help="JSON indentation (default: 2).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point.

    Returns:
        Process exit status.
    """
    args = build_arg_parser().parse_args(argv)

    try:
        if args.file == "-":
            text = sys.stdin.read()
        else:
            with open(args.file, "r", encoding="utf-8") as f:
                text = f.read()
    except OSError as e:
        print(f"Could not read {args.file}: {e}", file=sys.stderr)
        return 1

    # Load settings (use singleton to ensure single instance)
    settings_manager = get_settings()

    # Ensure settings file has all sections
    settings_manager.ensure_file_complete()

    importer_settings = settings_manager.settings.importer
    if args.infer_radius:
        importer_settings = replace(
            importer_settings,
            geometry=replace(importer_settings.geometry, infer_node_radius=True),
        )

    trace(f"Importing {args.file}", "MAIN")
    importer = TikzImporter(importer_settings, node_radius=args.node_radius,
                            trace=settings_manager.settings.debug.trace)
    try:
        graph = importer.parse(text)
    except StructuralParseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        close_log()

    print(json.dumps(graph.to_dict(), indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
