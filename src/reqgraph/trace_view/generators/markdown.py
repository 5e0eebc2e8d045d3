"""
reqgraph.trace_view.generators.markdown - Markdown generation.

Provides functions to render trace matrices and change reports as markdown.
"""

from datetime import datetime
from typing import Dict, List, Optional

from reqgraph.trace_view.matrix import TableRow, TraceMatrix

HOLE = "*(missing)*"


def _escape(text: str) -> str:
    return text.replace("|", "\\|")


def _format_table(header: List[str], rows: List[TableRow]) -> List[str]:
    lines = [f"| {header[0]} | {header[1]} |", "|---|---|"]
    for first, second in rows:
        to_name = _escape(second.name) if second is not None else HOLE
        lines.append(f"| {_escape(first.name)} | {to_name} |")
    return lines


def generate_matrix_markdown(matrix: TraceMatrix, timestamp: Optional[datetime] = None) -> str:
    """Generate a markdown trace matrix.

    Args:
        matrix: The sorted matrix to render
        timestamp: Generation time shown in the header; omitted when None

    Returns:
        Markdown with one table per direction
    """
    lines = [f"# Trace Matrices {matrix.source} - {matrix.target}"]
    if timestamp is not None:
        lines.append(f"\n**Generated**: {timestamp.strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append(f"\n**Missing links**: {matrix.holes()}\n")

    lines.append(f"## {matrix.source} -> {matrix.target}\n")
    lines.extend(_format_table([matrix.source, matrix.target], matrix.downstream))
    lines.append("")
    lines.append(f"## {matrix.target} -> {matrix.source}\n")
    lines.extend(_format_table([matrix.target, matrix.source], matrix.upstream))

    return "\n".join(lines) + "\n"


def generate_changes_markdown(diffs: Optional[Dict[str, List[str]]]) -> str:
    """Generate a markdown change report from ``changed_since`` output."""
    lines = ["# Requirement Changes", ""]
    if not diffs:
        lines.append("No requirement changed.")
        return "\n".join(lines) + "\n"

    for req_id, changes in diffs.items():
        lines.append(f"## {req_id}")
        lines.append("")
        for change in changes:
            lines.append(f"- {change}")
        lines.append("")
    return "\n".join(lines)
