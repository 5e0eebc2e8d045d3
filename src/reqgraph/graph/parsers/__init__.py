"""Parsers - turn document and source text into graph records.

Exports:
- ParseError: Raised for malformed document structure or IDs
- RequirementParser / parse_markdown: Requirement documents (headings and tables)
- parse_flow_table: Data and control flow tables
- parse_code_annotations: @llr comments above tagged symbols
"""

from __future__ import annotations


class ParseError(ValueError):
    """Raised when a document or source file cannot be parsed.

    A ParseError aborts processing of the single file it came from.
    """


from reqgraph.graph.parsers.code import parse_code_annotations  # noqa: E402
from reqgraph.graph.parsers.requirement import (  # noqa: E402
    RequirementParser,
    parse_flow_table,
    parse_markdown,
)

__all__ = [
    "ParseError",
    "RequirementParser",
    "parse_code_annotations",
    "parse_flow_table",
    "parse_markdown",
]
