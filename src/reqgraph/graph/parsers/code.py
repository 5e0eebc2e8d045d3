"""Code annotations - requirement links in comments above tagged symbols.

A symbol implements the requirements listed on an ``@llr`` comment line in
the comment block directly above it::

    // @llr REQ-TEST-SWL-12, REQ-TEST-SWL-13
    int compute(int a);

The legacy ``\\llr`` spelling is accepted as well.
"""

from __future__ import annotations

import re

from reqgraph.graph.models import Code

LLR_REFERENCE_LINE = re.compile(
    r"^[ \t*/#]*(?:@|\\)llr +(?:REQ-\w+-\w+-\d+[, ]*)+$", re.ASCII
)
LLR_REFERENCE = re.compile(r"REQ-\w+-\w+-\d+", re.ASCII)
BLANK_LINE = re.compile(r"^\s*$")


def llr_references(line: str) -> list[str] | None:
    """Requirement IDs of an @llr comment line.

    Returns:
        The IDs in order, or None if the line is not an @llr reference line.
    """
    if not LLR_REFERENCE_LINE.match(line):
        return None
    return LLR_REFERENCE.findall(line)


def parse_code_annotations(tags: list[Code], source: str, is_test_file: bool = False) -> list[Code]:
    """Fill in the parent IDs of the tags of one source file.

    Tags are processed by ascending line. For each tag the lines above it are
    scanned upwards, never past the previous tag, until an @llr line (whose
    IDs become the tag's parent IDs) or a blank line is reached. Tags sharing
    a line receive a copy of the first one's parent IDs.

    Args:
        tags: Tags found in the file by a symbol tagger.
        source: Raw text of the file.
        is_test_file: Tags in test files are optional.

    Returns:
        The same tags, sorted by line.
    """
    # CRLF line endings
    lines = [line.rstrip("\r") for line in source.split("\n")]
    ordered = sorted(tags, key=lambda c: c.line)

    previous_line = 0
    previous: Code | None = None
    for code in ordered:
        if is_test_file:
            code.optional = True
        if previous is not None and code.line == previous_line:
            code.parent_ids = list(previous.parent_ids)
            continue

        code.parent_ids = []
        # 1-based line numbers; lines[n - 1] is line n
        for line_no in range(code.line - 1, previous_line, -1):
            if line_no > len(lines):
                continue
            text = lines[line_no - 1]
            ids = llr_references(text)
            if ids is not None:
                code.parent_ids = ids
                break
            if BLANK_LINE.match(text):
                break

        previous_line = code.line
        previous = code

    return ordered
