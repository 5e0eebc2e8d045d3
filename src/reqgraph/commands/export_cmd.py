"""
reqgraph.commands.export_cmd - Export the requirement graph as JSON.
"""

import argparse
import sys

from reqgraph.commands.common import build_current_graph
from reqgraph.graph.serialize import dump_graph


def run(args: argparse.Namespace) -> int:
    """Run the export command."""
    graph = build_current_graph(args)
    dump_graph(graph, args.output)
    if not args.quiet:
        print(
            f"Exported {len(graph.reqs)} requirements and {len(graph.issues)} issues to {args.output}",
            file=sys.stderr,
        )
    return 0
