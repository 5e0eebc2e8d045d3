"""
reqgraph.commands.common - Helpers shared by the CLI commands.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from reqgraph.config import CONFIG_FILENAME, Config, ConfigError, Document, find_config_file, load_config
from reqgraph.graph.builder import GraphBuilder
from reqgraph.graph.models import ReqGraph
from reqgraph.graph.resolver import ResolveOptions
from reqgraph.graph.serialize import load_graphs


def load_configuration(args: argparse.Namespace) -> Config:
    """Load the configuration given by --config or found from the working directory.

    Raises:
        ConfigError: If no configuration file exists or it cannot be loaded.
    """
    if args.config:
        config_path = Path(args.config)
    else:
        config_path = find_config_file(Path.cwd())

    if config_path is None or not config_path.is_file():
        raise ConfigError(f"No {CONFIG_FILENAME} found (use --config PATH)")
    return load_config(
        config_path.resolve().parent,
        direct_dependencies_only=getattr(args, "direct_only", False),
    )


def progress_printer(args: argparse.Namespace):
    """Return a builder progress callback honouring --verbose/--quiet."""
    if not args.verbose or args.quiet:
        return None

    def report(repo_name: str, document: Document) -> None:
        print(f"Parsing {document.path} in repo {repo_name}", file=sys.stderr)

    return report


def build_current_graph(
    args: argparse.Namespace,
    options: Optional[ResolveOptions] = None,
    scan_code: bool = True,
) -> ReqGraph:
    """Build and resolve the graph of the configured repositories."""
    config = load_configuration(args)
    builder = GraphBuilder(config.repositories, jobs=getattr(args, "jobs", 1) or 1)
    builder.build_from_config(config, scan_code=scan_code, progress=progress_printer(args))
    return builder.build(options=options)


def load_graph_for(args: argparse.Namespace) -> ReqGraph:
    """Use --graph snapshots when given, otherwise build from the repositories."""
    snapshots: Optional[List[Path]] = getattr(args, "graph", None)
    if snapshots:
        return load_graphs([Path(p) for p in snapshots])
    return build_current_graph(args)


def write_output(content: str, output: Optional[Path], quiet: bool) -> None:
    if output is None:
        print(content, end="")
        return
    output.write_text(content, encoding="utf-8")
    if not quiet:
        print(f"Wrote {output}", file=sys.stderr)
