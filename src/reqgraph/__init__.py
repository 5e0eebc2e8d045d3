"""
reqgraph - Requirement graph engine

Extracts requirements from markdown documents, links them to the source
code implementing and testing them, across a tree of repositories, and
reports every inconsistency in a single pass.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("reqgraph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from reqgraph.config import Config, Document, RepositorySet, ReqSpec, Schema, load_config
from reqgraph.graph import (
    Code,
    CodeFile,
    CodeType,
    GraphBuilder,
    Issue,
    IssueType,
    ParseError,
    Req,
    ReqGraph,
    build_graph,
)
from reqgraph.trace_view import build_matrix, changed_since

__all__ = [
    "__version__",
    "Code",
    "CodeFile",
    "CodeType",
    "Config",
    "Document",
    "GraphBuilder",
    "Issue",
    "IssueType",
    "ParseError",
    "Req",
    "ReqGraph",
    "RepositorySet",
    "ReqSpec",
    "Schema",
    "build_graph",
    "build_matrix",
    "changed_since",
    "load_config",
]
