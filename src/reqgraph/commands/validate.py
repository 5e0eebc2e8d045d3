"""
reqgraph.commands.validate - Validate requirements command.

Builds the graph of every configured repository and reports all issues.
"""

import argparse
import json
import sys
from collections import Counter

from reqgraph.commands.common import build_current_graph
from reqgraph.graph.models import IssueSeverity
from reqgraph.graph.resolver import ResolveOptions
from reqgraph.graph.serialize import serialize_issue


def run(args: argparse.Namespace) -> int:
    """
    Run the validate command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (1 only in strict mode when major issues exist)
    """
    options = ResolveOptions(
        report_coverage=args.coverage_notes,
        check_wording=args.lint_wording,
    )
    graph = build_current_graph(args, options=options, scan_code=not args.no_code)

    if args.json:
        print(json.dumps([serialize_issue(i) for i in graph.issues], indent=2))
    elif graph.issues:
        for issue in graph.issues:
            print(issue, file=sys.stderr)

    major = graph.major_issues()
    if not args.quiet and not args.json:
        counts = Counter(i.severity for i in graph.issues)
        code_count = sum(len(tags) for tags in graph.code_tags.values())
        print("-" * 60)
        print(f"{len(graph.reqs)} requirements, {code_count} code tags")
        for severity in IssueSeverity:
            if counts[severity]:
                print(f"{counts[severity]} {severity.value} issues")
        if not graph.issues:
            print("No issues found")

    if major and args.strict:
        return 1
    if major and not args.quiet and not args.json:
        print("Warning: issues found (use --strict to fail)", file=sys.stderr)
    return 0
