"""
reqgraph.cli - Command-line interface.

Main entry point for the reqgraph CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from reqgraph import __version__
from reqgraph.commands import diff, export_cmd, list_cmd, matrix, nextid, validate


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="reqgraph",
        description="Requirement tracing across documents, code and repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  reqgraph validate                     # Report every issue, exit 0
  reqgraph validate --strict            # Exit 1 when major issues exist
  reqgraph matrix TEST-SYS TEST-SWH     # Trace matrices between two levels
  reqgraph matrix TEST-SWL code         # Low level requirements against code
  reqgraph export graph.json            # Snapshot of the current graph
  reqgraph diff graph.json              # Changes since a snapshot
  reqgraph nextid TEST-100-ORD.md       # Next free requirement ID
  reqgraph list TEST-100-ORD.md --filter TITLE=parser

Configuration is read from .reqgraph.toml, searched from the current
directory upwards.

For detailed command help: reqgraph <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"reqgraph {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "--direct-only",
        action="store_true",
        help="Do not load children repositories",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Build the requirement graph and report issues",
    )
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 when major issues are found",
    )
    validate_parser.add_argument(
        "--coverage-notes",
        action="store_true",
        help="Add notes for requirements that are not implemented or not tested",
    )
    validate_parser.add_argument(
        "--lint-wording",
        action="store_true",
        help="Check for exactly one 'shall' per requirement body",
    )
    validate_parser.add_argument(
        "--no-code",
        action="store_true",
        help="Skip tagging of implementation and test files",
    )
    validate_parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output issues as JSON",
    )
    _add_jobs_argument(validate_parser)

    # matrix command
    matrix_parser = subparsers.add_parser(
        "matrix",
        help="Generate trace matrices between two levels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Levels:
  TEST-SYS                  Requirements of the TEST-SYS document(s)
  REQ-TEST-SWL:ASIL=B       Only requirements whose ASIL attribute matches B
  code / tests              Implementation or test code
""",
    )
    matrix_parser.add_argument("source", metavar="FROM", help="Level of the first column")
    matrix_parser.add_argument("target", metavar="TO", help="Level of the second column")
    matrix_parser.add_argument(
        "--format",
        choices=["markdown", "csv"],
        default="markdown",
        help="Output format (default: markdown)",
    )
    matrix_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output file path (default: stdout)",
        metavar="PATH",
    )
    _add_graph_argument(matrix_parser)
    _add_jobs_argument(matrix_parser)

    # diff command
    diff_parser = subparsers.add_parser(
        "diff",
        help="Report requirement changes since exported snapshot(s)",
    )
    diff_parser.add_argument(
        "previous",
        nargs="+",
        type=Path,
        metavar="PREVIOUS",
        help="Graph snapshot(s) written by 'reqgraph export'",
    )
    diff_parser.add_argument(
        "--json",
        action="store_true",
        help="Output changes as JSON",
    )
    _add_jobs_argument(diff_parser)

    # nextid command
    nextid_parser = subparsers.add_parser(
        "nextid",
        help="Print the next requirement ID of a document",
    )
    nextid_parser.add_argument("document", metavar="DOCUMENT", help="Document path or file name")

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List the requirements of a document",
    )
    list_parser.add_argument("document", metavar="DOCUMENT", help="Document path or file name")
    list_parser.add_argument(
        "--filter",
        action="append",
        help="Filter as KEY=REGEX, KEY is ID, TITLE, BODY, ANY or an attribute (repeatable)",
        metavar="KEY=REGEX",
    )
    list_parser.add_argument(
        "--csv",
        action="store_true",
        help="Output CSV with all attributes",
    )
    _add_graph_argument(list_parser)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export the requirement graph as JSON",
    )
    export_parser.add_argument("output", type=Path, metavar="OUTPUT", help="JSON file to write")
    _add_jobs_argument(export_parser)

    return parser


def _add_jobs_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of documents parsed in parallel (default: 1)",
        metavar="N",
    )


def _add_graph_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--graph",
        action="append",
        type=Path,
        help="Use an exported graph snapshot instead of the repositories (repeatable)",
        metavar="SNAPSHOT",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Enable shell tab-completion if argcomplete is installed
    # Install with: pip install reqgraph[completion]
    # Then activate: eval "$(register-python-argcomplete reqgraph)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    # Handle no command
    if not args.command:
        parser.print_help()
        return 0

    try:
        # Dispatch to command handlers
        if args.command == "validate":
            return validate.run(args)
        elif args.command == "matrix":
            return matrix.run(args)
        elif args.command == "diff":
            return diff.run(args)
        elif args.command == "nextid":
            return nextid.run(args)
        elif args.command == "list":
            return list_cmd.run(args)
        elif args.command == "export":
            return export_cmd.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
