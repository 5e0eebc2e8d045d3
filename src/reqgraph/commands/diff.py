"""
reqgraph.commands.diff - Report requirement changes since a snapshot.
"""

import argparse
import json
from pathlib import Path

from reqgraph.commands.common import build_current_graph
from reqgraph.graph.serialize import load_graphs
from reqgraph.trace_view.diff import changed_since
from reqgraph.trace_view.generators import generate_changes_markdown


def run(args: argparse.Namespace) -> int:
    """Run the diff command.

    Returns:
        0 whether or not requirements changed
    """
    previous = load_graphs([Path(p) for p in args.previous])
    current = build_current_graph(args)

    diffs = changed_since(current, previous)
    if args.json:
        print(json.dumps(diffs or {}, indent=2))
    else:
        print(generate_changes_markdown(diffs), end="")
    return 0
