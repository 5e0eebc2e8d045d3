"""
reqgraph.commands.nextid - Print the next free requirement IDs of a document.
"""

import argparse

from reqgraph.commands.common import load_configuration
from reqgraph.config import ConfigError
from reqgraph.graph.builder import GraphBuilder
from reqgraph.graph.models import ReqVariant


def run(args: argparse.Namespace) -> int:
    """Run the nextid command.

    The next assumption ID is only shown once the document has assumptions.
    """
    config = load_configuration(args)
    found = config.find_document(args.document)
    if found is None:
        raise ConfigError(f"Could not find document `{args.document}` in the list of documents")
    repo_name, document = found

    reqs = GraphBuilder(config.repositories).parse_document(repo_name, document)
    greatest = {variant: 0 for variant in ReqVariant}
    for req in reqs:
        greatest[req.variant] = max(greatest[req.variant], req.id_number)

    spec = document.req_spec
    print(f"REQ-{spec.prefix}-{spec.level}-{greatest[ReqVariant.REQUIREMENT] + 1}")
    if greatest[ReqVariant.ASSUMPTION] > 0:
        print(f"ASM-{spec.prefix}-{spec.level}-{greatest[ReqVariant.ASSUMPTION] + 1}")
    return 0
