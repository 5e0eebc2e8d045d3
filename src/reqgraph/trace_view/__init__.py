"""Derived views over a resolved graph: change reports and trace matrices."""

from reqgraph.trace_view.diff import changed_since
from reqgraph.trace_view.matrix import (
    TableCell,
    TableRow,
    TraceMatrix,
    build_matrix,
    parse_matrix_side,
)

__all__ = [
    "changed_since",
    "TableCell",
    "TableRow",
    "TraceMatrix",
    "build_matrix",
    "parse_matrix_side",
]
