"""
reqgraph.trace_view.generators.csv - CSV generation.

Provides functions to render trace matrices as CSV.
"""

import csv
from io import StringIO

from reqgraph.trace_view.matrix import TableRow, TraceMatrix

HOLE = "-"


def _write_rows(writer, direction: str, rows: list[TableRow]) -> None:
    for first, second in rows:
        writer.writerow([direction, first.name, second.name if second is not None else HOLE])


def generate_matrix_csv(matrix: TraceMatrix) -> str:
    """Generate a CSV trace matrix.

    Args:
        matrix: The sorted matrix to render

    Returns:
        CSV string with columns: Direction, From, To. Downstream rows come
        first; holes are written as "-".
    """
    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(["Direction", "From", "To"])
    _write_rows(writer, f"{matrix.source} -> {matrix.target}", matrix.downstream)
    _write_rows(writer, f"{matrix.target} -> {matrix.source}", matrix.upstream)

    return output.getvalue()
