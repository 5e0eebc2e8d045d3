"""
reqgraph.commands.matrix - Generate trace matrices command.
"""

import argparse
from datetime import datetime

from reqgraph.commands.common import load_graph_for, write_output
from reqgraph.trace_view.generators import generate_matrix_csv, generate_matrix_markdown
from reqgraph.trace_view.matrix import build_matrix, parse_matrix_side


def run(args: argparse.Namespace) -> int:
    """Run the matrix command."""
    source = parse_matrix_side(args.source)
    target = parse_matrix_side(args.target)
    graph = load_graph_for(args)

    matrix = build_matrix(graph, source, target)
    if args.format == "csv":
        content = generate_matrix_csv(matrix)
    else:
        content = generate_matrix_markdown(matrix, timestamp=datetime.now())

    write_output(content, args.output, args.quiet)
    return 0
