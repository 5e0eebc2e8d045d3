"""Output generators for trace matrices and change reports."""

from reqgraph.trace_view.generators.csv import generate_matrix_csv
from reqgraph.trace_view.generators.markdown import (
    generate_changes_markdown,
    generate_matrix_markdown,
)

__all__ = [
    "generate_matrix_csv",
    "generate_matrix_markdown",
    "generate_changes_markdown",
]
