"""
reqgraph.commands.list_cmd - List the requirements of a document.
"""

import argparse
import csv
import sys
from pathlib import PurePosixPath
from typing import List

from reqgraph.commands.common import load_configuration, load_graph_for
from reqgraph.config import ConfigError
from reqgraph.graph.builder import GraphBuilder
from reqgraph.graph.filters import create_filter
from reqgraph.graph.models import Req


def print_concise(reqs: List[Req]) -> None:
    """Print ID, title and the first body line of each requirement."""
    for req in reqs:
        print(f"Requirement {req.id} {req.title}")
        body = [line for line in req.body.split("\n") if line]
        # Deleted requirements have no body
        if body:
            print(f"{body[0]}…")
        print()


def print_csv(reqs: List[Req], attributes: List[str]) -> None:
    """Print requirements as CSV with one column per attribute."""
    writer = csv.writer(sys.stdout)
    writer.writerow(["Id", "Title", "Body"] + [a.title() for a in attributes])
    for req in reqs:
        writer.writerow([req.id, req.title, req.body] + [req.attributes.get(a, "") for a in attributes])


def run(args: argparse.Namespace) -> int:
    """Run the list command."""
    req_filter = create_filter(args.filter or [])

    if args.graph:
        graph = load_graph_for(args)
        reqs = [
            r
            for r in sorted(graph.reqs.values(), key=lambda r: (r.repo_name, r.path, r.position))
            if r.document is not None and r.document.name == PurePosixPath(args.document).name
        ]
        attributes = sorted({key for r in reqs for key in r.attributes if key != "PARENTS"})
    else:
        config = load_configuration(args)
        found = config.find_document(args.document)
        if found is None:
            raise ConfigError(f"Could not find document `{args.document}` in the list of documents")
        repo_name, document = found
        reqs = GraphBuilder(config.repositories).parse_document(repo_name, document)
        attributes = sorted(document.schema.attributes) if document.schema is not None else []

    selected = req_filter.apply(reqs)
    if args.csv:
        print_csv(selected, attributes)
    else:
        print_concise(selected)
    return 0
