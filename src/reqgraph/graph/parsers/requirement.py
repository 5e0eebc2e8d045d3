"""RequirementParser - requirement records from markdown documents.

Two notations are recognised and may be mixed within one document:

Heading style::

    #### REQ-TEST-SYS-5 My First Requirement
    Body text.

    ##### Attributes:
    - Rationale: Why.
    - Parents: REQ-TEST-SYS-1

Table style::

    | ID | Title | Body | Parents |
    | --- | --- | --- | --- |
    | REQ-TEST-SYS-6 | Title | Body | REQ-TEST-SYS-1 |

Data and control flow tables list flow tags that requirements refer to
through their ``Flow`` attribute::

    | Caller | Flow Tag | Callee | Direction | Description |
    | --- | --- | --- | --- | --- |
    | Parser | DF-TEST-1 | Store | Out | Parsed records |
"""

from __future__ import annotations

import re
import unicodedata
from enum import Enum

from reqgraph.graph.models import Flow, FlowKind, Req, ReqVariant
from reqgraph.graph.parsers import ParseError
from reqgraph.utilities.patterns import (
    CONTROL_FLOW_ID,
    DATA_FLOW_ID,
    FLOW_DELETED_SUFFIX,
    ID_SEARCH_WINDOW,
    REQ_ID,
    REQ_ID_BAD,
)

# ATX headings, see http://spec.commonmark.org/0.27/#atx-headings
ATX_HEADING = re.compile(r"^ {0,3}(#{1,6})( +(.*)( #* *)?)?$")

TABLE_HEADER = re.compile(r"^\| *ID *\|(?:[^\|]*\|)+$")
TABLE_DELIMITER = re.compile(r"^\|(?: *-+ *\|)+$")

DATA_FLOW_TABLE_HEADER = re.compile(
    r"^\| *Caller *\| *Flow Tag *\| *Callee *\| *Direction *\| *Description *\|$"
)
CONTROL_FLOW_TABLE_HEADER = re.compile(r"^\| *Caller *\| *Flow Tag *\| *Callee *\| *Description *\|$")

ATTRIBUTES_HEADING = re.compile(r"\n#{2,6} Attributes:$", re.MULTILINE)
ATTRIBUTE_KEY = re.compile(r"^- (.+?):", re.MULTILINE)


class _Fragment(Enum):
    NONE = 0
    HEADING = 1
    TABLE = 2
    DATA_FLOW = 3
    CONTROL_FLOW = 4


def _table_fragment(line: str) -> _Fragment:
    if TABLE_HEADER.match(line):
        return _Fragment.TABLE
    if DATA_FLOW_TABLE_HEADER.match(line):
        return _Fragment.DATA_FLOW
    if CONTROL_FLOW_TABLE_HEADER.match(line):
        return _Fragment.CONTROL_FLOW
    return _Fragment.NONE


def _is_punct_or_space(ch: str) -> bool:
    return ch.isspace() or unicodedata.category(ch).startswith("P")


def _strip_punct_or_space(text: str) -> str:
    start, end = 0, len(text)
    while start < end and _is_punct_or_space(text[start]):
        start += 1
    while end > start and _is_punct_or_space(text[end - 1]):
        end -= 1
    return text[start:end]


def _normalize_key(key: str) -> str:
    key = key.strip().upper()
    # Both spellings are accepted, only PARENTS is stored
    return "PARENTS" if key == "PARENT" else key


def extract_id_parts(text: str) -> tuple[str, ReqVariant, int]:
    """Read the requirement ID at the very start of a title or table cell.

    Args:
        text: Title text beginning with the ID.

    Returns:
        (id, variant, id_number).

    Raises:
        ParseError: If no ID is found, only a malformed one is found, or the
            ID is not at position 0.
    """
    head = text[:ID_SEARCH_WINDOW]
    match = REQ_ID.search(text)
    if match is None:
        if REQ_ID_BAD.search(text):
            raise ParseError(
                f'malformed requirement: found only malformed ID: "{head}" '
                f'(doesn\'t match "{REQ_ID.pattern}")'
            )
        raise ParseError(f'malformed requirement: missing ID in first 40 characters: "{head}"')
    if match.start() > 0:
        raise ParseError(f'malformed requirement: ID must be at the start of the title: "{head}"')

    variant = ReqVariant(match.group(1))
    return match.group(0), variant, int(match.group(4))


def parse_parents(req: Req) -> list[str]:
    """Parse the PARENTS attribute of a requirement into a list of IDs.

    IDs may be separated by punctuation and whitespace only.

    Raises:
        ParseError: If anything else separates two IDs or follows the last one.
    """
    parents = req.attributes.get("PARENTS", "")
    matches = list(REQ_ID.finditer(parents))

    if not matches:
        if parents.strip():
            raise ParseError(
                f'requirement {req.id} parents: unparseable as list of requirement ids: "{parents}"'
            )
        return []

    for previous, current in zip(matches, matches[1:]):
        separator = parents[previous.end() : current.start()]
        if _strip_punct_or_space(separator):
            raise ParseError(
                f"requirement {req.id} parents: unparseable as list of requirement ids: "
                f'"{separator}" in "{parents}"'
            )

    trailing = parents[matches[-1].end() :]
    if _strip_punct_or_space(trailing):
        raise ParseError(
            f"requirement {req.id} parents: unparseable as list of requirement ids: "
            f'"{trailing}" in "{parents}"'
        )

    return [m.group(0) for m in matches]


def parse_req(text: str) -> Req:
    """Parse a heading-style requirement.

    Args:
        text: The heading title (without the ``#`` marks) followed by the
            lines of the requirement block.

    Returns:
        The parsed Req (position is set by the caller).

    Raises:
        ParseError: For malformed IDs, empty requirements, empty bodies and
            malformed attribute sections.
    """
    req_id, variant, id_number = extract_id_parts(text)
    rest = text[len(req_id) :]
    i = 0
    while i < len(rest) and _is_punct_or_space(rest[i]):
        i += 1
    parts = rest[i:].strip().split("\n", 1)
    req = Req(id=req_id, variant=variant, id_number=id_number, title=parts[0])

    if len(parts) < 2:
        if req.deleted:
            return req
        raise ParseError(f"Requirement must not be empty: {req.id}")

    body_and_attributes = parts[1]
    attributes_start = len(body_and_attributes)
    heading = ATTRIBUTES_HEADING.search(body_and_attributes)
    if heading is not None:
        attributes_start = heading.start()
        section = body_and_attributes[attributes_start:]
        keys = list(ATTRIBUTE_KEY.finditer(section))
        if not keys:
            raise ParseError(f"Requirement {req.id} contains an attribute section but no attributes")
        for index, key_match in enumerate(keys):
            key = _normalize_key(key_match.group(1))
            end = keys[index + 1].start() if index + 1 < len(keys) else len(section)
            if key in req.attributes:
                raise ParseError(f'requirement {req.id} contains duplicate attribute: "{key}"')
            req.attributes[key] = section[key_match.end() : end].strip()

    req.body = body_and_attributes[:attributes_start].strip("\n")
    if not req.body.strip():
        raise ParseError(f"Requirement body must not be empty: {req.id}")

    req.parent_ids = parse_parents(req)
    return req


def split_table_line(line: str) -> list[str]:
    """Split a table row into trimmed cells.

    Returns:
        The cells, or an empty list if the line is not a table row.
    """
    if not line.startswith("|"):
        return []
    cells = line.split("|")
    if cells and cells[0] == "":
        cells = cells[1:]
    if cells and cells[-1] == "":
        cells = cells[:-1]
    return [cell.strip() for cell in cells]


def parse_req_table(text: str, start_line: int) -> list[Req]:
    """Parse a requirement table, one requirement per row.

    Args:
        text: The table text starting with its header row.
        start_line: Line number of the header row.

    Returns:
        Requirements in row order.

    Raises:
        ParseError: For a header without a leading ID column, short rows and
            malformed IDs.
    """
    reqs: list[Req] = []
    columns: list[str] = []

    for index, row in enumerate(text.split("\n")):
        if index == 0:
            if not TABLE_HEADER.match(row):
                raise ParseError(
                    'requirement table must have at least 2 columns, first column head must be "ID"'
                )
            columns = [_normalize_key(cell) for cell in split_table_line(row)]
            continue

        if TABLE_DELIMITER.match(row):
            continue

        values = split_table_line(row)
        if not values:
            break
        if len(values) < len(columns):
            raise ParseError(f"too few cells on row {index + 1} of requirement table")

        req_id, variant, id_number, title, body = "", ReqVariant.REQUIREMENT, 0, "", ""
        attributes: dict[str, str] = {}
        for column, value in zip(columns, values):
            if column == "ID":
                req_id, variant, id_number = extract_id_parts(value)
            elif column == "TITLE":
                title = value
            elif column == "BODY":
                body = value
            elif value:
                attributes[column] = value

        req = Req(
            id=req_id,
            variant=variant,
            id_number=id_number,
            title=title,
            body=body,
            attributes=attributes,
            position=start_line + index,
        )
        req.parent_ids = parse_parents(req)
        reqs.append(req)

    return reqs


def parse_flow_table(text: str, start_line: int, kind: FlowKind) -> list[Flow]:
    """Parse a data or control flow table, one flow tag per row.

    Data flow tables have the columns Caller, Flow Tag, Callee, Direction and
    Description; control flow tables lack the Direction column. A tag ending
    in ``-DELETED`` is stored without the suffix and marked deleted.

    Raises:
        ParseError: For a wrong header, short rows and malformed tags.
    """
    if kind is FlowKind.DATA:
        header, tag_pattern, name = DATA_FLOW_TABLE_HEADER, DATA_FLOW_ID, "data flow"
    else:
        header, tag_pattern, name = CONTROL_FLOW_TABLE_HEADER, CONTROL_FLOW_ID, "control flow"

    flows: list[Flow] = []
    columns: list[str] = []

    for index, row in enumerate(text.split("\n")):
        if index == 0:
            if not header.match(row):
                raise ParseError(
                    'flow table must have at least 4 columns, second column head must be "Flow Tag"'
                )
            columns = [cell.upper() for cell in split_table_line(row)]
            continue

        if TABLE_DELIMITER.match(row):
            continue

        values = split_table_line(row)
        if not values:
            break
        if len(values) < len(columns):
            raise ParseError(f"too few cells on row {index + 1} of {name} table")

        cells = dict(zip(columns, values))
        tag = cells["FLOW TAG"]
        if not tag_pattern.match(tag):
            raise ParseError(f"Invalid tag '{tag}' on row {index + 1} of {name} table")
        deleted = tag.endswith(FLOW_DELETED_SUFFIX)
        if deleted:
            tag = tag[: -len(FLOW_DELETED_SUFFIX)]

        flows.append(
            Flow(
                id=tag,
                kind=kind,
                caller=cells["CALLER"],
                callee=cells["CALLEE"],
                direction=cells.get("DIRECTION", ""),
                description=cells["DESCRIPTION"],
                deleted=deleted,
                position=start_line + index,
            )
        )

    return flows


class RequirementParser:
    """Scans a document line by line collecting requirement fragments.

    A heading whose title carries exactly one requirement ID opens a
    requirement block at that heading's level. The block closes at the next
    ID heading or at a shallower heading. A table whose header's first
    column is ``ID`` opens a requirement table, which ends at the first line
    that is not a table row. Data and control flow tables are recognised by
    their headers and collected into ``flows``.
    """

    def __init__(self) -> None:
        self.flows: list[Flow] = []

    def parse(self, text: str) -> list[Req]:
        """Parse all requirements of a document.

        Flow tags found on the way are left in ``self.flows``.

        Args:
            text: Full document text.

        Returns:
            Requirements in document order.

        Raises:
            ParseError: On the first structural or requirement error.
        """
        self.flows = []
        reqs: list[Req] = []
        state = _Fragment.NONE
        buffer: list[str] = []
        last_heading_level = 0
        last_heading_line = 0
        req_level = 0
        req_line = 0

        def flush() -> None:
            fragment = "".join(buffer)
            if state is _Fragment.HEADING:
                req = parse_req(fragment)
                req.position = req_line
                reqs.append(req)
            elif state is _Fragment.TABLE:
                reqs.extend(parse_req_table(fragment, req_line))
            elif state is _Fragment.DATA_FLOW:
                self.flows.extend(parse_flow_table(fragment, req_line, FlowKind.DATA))
            elif state is _Fragment.CONTROL_FLOW:
                self.flows.extend(parse_flow_table(fragment, req_line, FlowKind.CONTROL))

        for line_no, line in enumerate(text.splitlines(), start=1):
            heading = ATX_HEADING.match(line)
            if heading:
                level = len(heading.group(1))
                title = heading.group(3) or ""
                ids = REQ_ID.findall(title)
                if len(ids) > 1:
                    raise ParseError(
                        f'malformed requirement title: too many IDs on line {line_no}: "{line}"'
                    )
                has_id = len(ids) == 1

                if state is _Fragment.HEADING:
                    if has_id and level != req_level:
                        raise ParseError(
                            f"requirement heading on line {line_no} must be at same level as "
                            f"requirement heading on line {req_line} ({level} != {req_level}): "
                            f'"{line}"'
                        )
                    if not has_id and level == req_level:
                        raise ParseError(
                            f"non-requirement heading on line {line_no} at same level as "
                            f'requirement heading on line {req_line} ({level}): "{line}"'
                        )
                elif has_id and level == last_heading_level:
                    raise ParseError(
                        f"requirement heading on line {line_no} at same level as previous "
                        f'heading on line {last_heading_line} ({level}): "{line}"'
                    )

                if state is not _Fragment.NONE and (has_id or level < req_level):
                    flush()
                    state = _Fragment.NONE

                if has_id:
                    state = _Fragment.HEADING
                    req_level = level
                    req_line = line_no
                    buffer = []
                    line = title
                last_heading_level = level
                last_heading_line = line_no
            else:
                table = _table_fragment(line)
                if table is not _Fragment.NONE:
                    if state is not _Fragment.NONE:
                        flush()
                    state = table
                    req_line = line_no
                    buffer = []

            if state is not _Fragment.NONE:
                buffer.append(line + "\n")

        if state is not _Fragment.NONE:
            flush()

        return reqs


def parse_markdown(text: str) -> list[Req]:
    """Parse requirement records out of document text."""
    return RequirementParser().parse(text)
