"""
reqgraph.trace_view.matrix - Trace matrices between requirement levels and code.

A trace matrix pairs every item of one level with the items it is linked to
at another level. Items without any link get a row whose second cell is None
(a "hole"), which is what reviewers look for.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from reqgraph.config.models import ReqSpec
from reqgraph.graph.models import Code, CodeFile, CodeType, Req, ReqGraph


@dataclass
class TableCell:
    """One side of a matrix row: a requirement or a code tag.

    Attributes:
        name: How the item is shown in the matrix.
        order_number: Ascending sort position within its column.
        req: The requirement, for requirement cells.
        code: The code tag, for code cells.
    """

    name: str
    order_number: int = 0
    req: Req | None = field(default=None, repr=False)
    code: Code | None = field(default=None, repr=False)

    @classmethod
    def for_req(cls, req: Req) -> TableCell:
        return cls(name=req.id, req=req)

    @classmethod
    def for_code(cls, code: Code) -> TableCell:
        return cls(name=f"{code.repo_name}: {code.path} - {code.tag}", code=code)


TableRow = tuple[TableCell, TableCell | None]


@dataclass
class TraceMatrix:
    """Both directions of a trace between two levels."""

    source: str
    target: str
    downstream: list[TableRow] = field(default_factory=list)
    upstream: list[TableRow] = field(default_factory=list)

    def holes(self) -> int:
        return sum(1 for row in self.downstream + self.upstream if row[1] is None)


def spec_name(spec: ReqSpec | CodeType) -> str:
    if isinstance(spec, CodeType):
        return "Implementation" if spec is CodeType.IMPLEMENTATION else "Tests"
    return str(spec)


def _in_spec(req: Req, spec: ReqSpec) -> bool:
    return req.matches_spec(spec) and spec.pattern.search(req.id) is not None


def create_downstream_matrix(graph: ReqGraph, source: ReqSpec, target: ReqSpec) -> list[TableRow]:
    """Pair requirements of ``source`` with their children in ``target``."""
    rows: list[TableRow] = []
    for req in graph.reqs_with_spec(source):
        linked = [child for child in req.children if _in_spec(child, target)]
        for child in linked:
            rows.append((TableCell.for_req(req), TableCell.for_req(child)))
        if not linked:
            rows.append((TableCell.for_req(req), None))
    return rows


def create_upstream_matrix(graph: ReqGraph, source: ReqSpec, target: ReqSpec) -> list[TableRow]:
    """Pair requirements of ``source`` with their parents in ``target``."""
    rows: list[TableRow] = []
    for req in graph.reqs_with_spec(source):
        linked = [parent for parent in req.parents if _in_spec(parent, target)]
        for parent in linked:
            rows.append((TableCell.for_req(req), TableCell.for_req(parent)))
        if not linked:
            rows.append((TableCell.for_req(req), None))
    return rows


def create_req_code_matrix(graph: ReqGraph, spec: ReqSpec, code_type: CodeType) -> list[TableRow]:
    """Pair requirements with the code tags of the given type that reference them."""
    rows: list[TableRow] = []
    for req in graph.reqs_with_spec(spec):
        linked = [code for code in req.tags if code.code_file.type is code_type]
        for code in linked:
            rows.append((TableCell.for_req(req), TableCell.for_code(code)))
        if not linked:
            rows.append((TableCell.for_req(req), None))
    return rows


def create_code_req_matrix(graph: ReqGraph, spec: ReqSpec, code_type: CodeType) -> list[TableRow]:
    """Pair code tags of the given type with the requirements of ``spec`` they reference.

    Optional tags (e.g. test helpers) without a matching requirement are left
    out instead of producing a hole.
    """
    rows: list[TableRow] = []
    for code in graph.iter_code():
        if code.code_file.type is not code_type:
            continue
        linked = [parent for parent in code.parents if parent.matches_spec(spec)]
        for parent in linked:
            rows.append((TableCell.for_code(code), TableCell.for_req(parent)))
        if not linked and not code.optional:
            rows.append((TableCell.for_code(code), None))
    return rows


@dataclass
class CodeOrderInfo:
    """What is needed to order code cells by file, then by line.

    Attributes:
        file_index: Rank of every tagged file, ordered by repository and path.
        file_index_factor: Highest line number of any relevant tag, plus one.
    """

    file_index: dict[CodeFile, int]
    file_index_factor: int

    def order_number(self, code: Code) -> int:
        return self.file_index[code.code_file] * self.file_index_factor + code.line


def code_order_info(graph: ReqGraph) -> CodeOrderInfo:
    max_line = 0
    for code in graph.iter_code():
        if code.optional and not code.parents:
            continue
        max_line = max(max_line, code.line)
    files = sorted(graph.code_tags, key=lambda f: (f.repo_name, f.path))
    return CodeOrderInfo({f: i for i, f in enumerate(files)}, max_line + 1)


def _row_key(row: TableRow) -> tuple[int, int, int, str, str]:
    first, second = row
    if second is None:
        return (first.order_number, 0, 0, "", first.name)
    return (first.order_number, 1, second.order_number, second.name, first.name)


def sort_matrices(graph: ReqGraph, *matrices: list[TableRow]) -> None:
    """Number every cell and sort the rows of each matrix in place.

    Requirement cells are numbered by ID number, code cells by file and
    line. Rows are ordered by their first cell, then by their second one,
    holes first.

    Raises:
        ValueError: If a cell refers to code that is not part of the graph.
    """
    info = code_order_info(graph)
    for matrix in matrices:
        for row in matrix:
            for cell in row:
                if cell is None:
                    continue
                if cell.req is not None:
                    cell.order_number = cell.req.id_number
                elif cell.code is not None:
                    if cell.code.code_file not in info.file_index:
                        raise ValueError(f"Code file {cell.code.code_file} is not part of the graph")
                    cell.order_number = info.order_number(cell.code)
                else:
                    raise ValueError(f"Matrix cell `{cell.name}` has neither requirement nor code")
        matrix.sort(key=_row_key)


def build_matrix(graph: ReqGraph, source: ReqSpec | CodeType, target: ReqSpec | CodeType) -> TraceMatrix:
    """Build the sorted trace matrices between two levels.

    Args:
        graph: A resolved graph.
        source: Requirement spec (or code type) of the first column.
        target: Requirement spec (or code type) of the second column.

    Raises:
        ValueError: If both sides are code types.
    """
    matrix = TraceMatrix(spec_name(source), spec_name(target))
    if isinstance(source, ReqSpec) and isinstance(target, ReqSpec):
        matrix.downstream = create_downstream_matrix(graph, source, target)
        matrix.upstream = create_upstream_matrix(graph, target, source)
    elif isinstance(source, ReqSpec) and isinstance(target, CodeType):
        matrix.downstream = create_req_code_matrix(graph, source, target)
        matrix.upstream = create_code_req_matrix(graph, source, target)
    elif isinstance(source, CodeType) and isinstance(target, ReqSpec):
        matrix.downstream = create_code_req_matrix(graph, target, source)
        matrix.upstream = create_req_code_matrix(graph, target, source)
    else:
        raise ValueError("A trace matrix needs at least one requirement level")
    sort_matrices(graph, matrix.downstream, matrix.upstream)
    return matrix


_CODE_NAMES = {
    "code": CodeType.IMPLEMENTATION,
    "impl": CodeType.IMPLEMENTATION,
    "implementation": CodeType.IMPLEMENTATION,
    "test": CodeType.TESTS,
    "tests": CodeType.TESTS,
}

_SPEC_TEXT = re.compile(r"^(?:REQ-)?(\w+)-(\w+)(?::(\w+)=(.+))?$", re.ASCII)


def parse_matrix_side(text: str) -> ReqSpec | CodeType:
    """Parse one side of a matrix request.

    Accepts ``code``/``implementation``, ``tests``, or a requirement level as
    ``[REQ-]PREFIX-LEVEL`` optionally followed by ``:ATTRIBUTE=REGEX``.

    Raises:
        ValueError: If the text is neither.
    """
    code_type = _CODE_NAMES.get(text.strip().lower())
    if code_type is not None:
        return code_type
    match = _SPEC_TEXT.match(text.strip())
    if match is None:
        raise ValueError(
            f"Invalid matrix level `{text}`, expected PREFIX-LEVEL[:ATTRIBUTE=REGEX], code or tests"
        )
    prefix, level, attr_key, attr_value = match.groups()
    if attr_key is None:
        return ReqSpec(prefix, level)
    try:
        value_re = re.compile(f"^{attr_value}$")
    except re.error as e:
        raise ValueError(f"Invalid regular expression in `{text}`: {e}") from e
    return ReqSpec(prefix, level, attr_key.upper(), value_re)
