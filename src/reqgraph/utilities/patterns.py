"""
reqgraph.utilities.patterns - Requirement ID grammar.

Requirement IDs have the shape ``(REQ|ASM)-<Prefix>-<Level>-<Number>``.
Prefix and level are word characters, the number is one or more digits.
Leading zeros are accepted here; rejecting them is the linter's job.

Flow tags of data and control flow tables have the shape
``(DF|CF)-<Prefix>-<Number>``, with an optional ``-DELETED`` suffix.
"""

from __future__ import annotations

import re

# Matches a requirement or assumption ID anywhere in a string
REQ_ID = re.compile(r"(REQ|ASM)-(\w+)-(\w+)-(\d+)", re.ASCII)

# Matches things that look like an ID but are missing a component
REQ_ID_BAD = re.compile(r"(?i)(REQ|ASM)-((\d+)|((\w+)-(\d+)))", re.ASCII)

# An ID must appear within this many characters at the start of a title
ID_SEARCH_WINDOW = 40

DELETED_MARKER = "DELETED"


def requirement_regex(prefix: str, level: str) -> re.Pattern[str]:
    """Schema regex for the requirements of one document."""
    return re.compile(rf"(REQ|ASM)-{prefix}-{level}-(\d+)")


def parent_regex(prefix: str, level: str) -> re.Pattern[str]:
    """Regex matching plain requirement IDs (no assumptions) of one level."""
    return re.compile(rf"REQ-{prefix}-{level}-(\d+)")


def is_deleted_title(title: str) -> bool:
    """Check the tombstone convention on a requirement title."""
    return title.startswith(DELETED_MARKER)


# Data and control flow tags, e.g. DF-TEST-3 or CF-TEST-1-DELETED
DATA_FLOW_ID = re.compile(r"^DF-(\w+)-(\d+)(-DELETED)?$", re.ASCII)
CONTROL_FLOW_ID = re.compile(r"^CF-(\w+)-(\d+)(-DELETED)?$", re.ASCII)

FLOW_DELETED_SUFFIX = "-DELETED"

DATA_FLOW_DIRECTIONS = ("In", "Out", "In/Out")
