"""Graph module - Requirement graph data structures and construction.

Exports:
- Req, Code, CodeFile, Flow, Issue: Graph records
- ReqVariant, CodeType, FlowKind, IssueType, IssueSeverity: Record classifications
- ReqGraph: Requirements, code tags, flow tags and issues of one build
- GraphBuilder / build_graph: Assemble a graph from a Config
- ResolveOptions / resolve_graph: Link and validate a merged graph
- ParseError: Raised for malformed documents

Note: use graph.builder.build_graph() to construct a resolved ReqGraph
"""

from reqgraph.graph.builder import GraphBuilder, build_graph
from reqgraph.graph.models import (
    Code,
    CodeFile,
    CodeType,
    Flow,
    FlowKind,
    Issue,
    IssueSeverity,
    IssueType,
    Req,
    ReqGraph,
    ReqVariant,
)
from reqgraph.graph.parsers import ParseError
from reqgraph.graph.resolver import ResolveOptions, resolve_graph

__all__ = [
    "Code",
    "CodeFile",
    "CodeType",
    "Flow",
    "FlowKind",
    "GraphBuilder",
    "Issue",
    "IssueSeverity",
    "IssueType",
    "ParseError",
    "Req",
    "ReqGraph",
    "ReqVariant",
    "ResolveOptions",
    "build_graph",
    "resolve_graph",
]
