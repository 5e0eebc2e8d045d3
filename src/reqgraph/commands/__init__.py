"""
reqgraph.commands - CLI command implementations
"""

__all__ = [
    "diff",
    "export_cmd",
    "list_cmd",
    "matrix",
    "nextid",
    "validate",
]
