"""
reqgraph.graph.models - Requirement graph data model.

Provides the values held by a ReqGraph:
- Req: a requirement or assumption parsed from a document
- CodeFile / Code: a tagged source symbol and the file it lives in
- Flow: a data or control flow tag from a flow table
- Issue: a validation finding
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from reqgraph.utilities.patterns import is_deleted_title

if TYPE_CHECKING:
    from reqgraph.config.models import Document, ReqSpec


class ReqVariant(Enum):
    """Kind of requirement record, taken from the ID prefix."""

    REQUIREMENT = "REQ"
    ASSUMPTION = "ASM"


class CodeType(Enum):
    """Classification of a tagged source file."""

    IMPLEMENTATION = "implementation"
    TESTS = "tests"


class FlowKind(Enum):
    """Kind of flow table a flow tag comes from, taken from the tag prefix."""

    DATA = "DF"
    CONTROL = "CF"


class IssueSeverity(Enum):
    """Severity level of an issue."""

    MAJOR = "major"
    MINOR = "minor"
    NOTE = "note"


class IssueType(Enum):
    """Kinds of validation issue."""

    INVALID_REQUIREMENT_ID = "invalid_requirement_id"
    INVALID_PARENT = "invalid_parent"
    INVALID_REQUIREMENT_REFERENCE = "invalid_requirement_reference"
    INVALID_REQUIREMENT_IN_CODE = "invalid_requirement_in_code"
    MISSING_REQUIREMENT_IN_CODE = "missing_requirement_in_code"
    MISSING_ATTRIBUTE = "missing_attribute"
    UNKNOWN_ATTRIBUTE = "unknown_attribute"
    INVALID_ATTRIBUTE_VALUE = "invalid_attribute_value"
    REQ_TESTED_BUT_NOT_IMPLEMENTED = "req_tested_but_not_implemented"
    # Flow tables
    DUPLICATE_FLOW_ID = "duplicate_flow_id"
    INVALID_FLOW_ID = "invalid_flow_id"
    MISSING_FLOW_ID = "missing_flow_id"
    FLOW_ID_OF_DIFFERENT_ITEM = "flow_id_of_different_item"
    INVALID_FLOW_DIRECTION = "invalid_flow_direction"
    FLOW_NOT_IMPLEMENTED = "flow_not_implemented"
    # Coverage notes
    REQ_NOT_IMPLEMENTED = "req_not_implemented"
    REQ_NOT_TESTED = "req_not_tested"
    # Wording checks
    NO_SHALL_IN_BODY = "no_shall_in_body"
    MANY_SHALL_IN_BODY = "many_shall_in_body"
    SHALL_IN_RATIONALE = "shall_in_rationale"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


@dataclass(frozen=True)
class Issue:
    """A validation finding.

    Attributes:
        repo_name: Repository the finding belongs to.
        path: Document or source file path inside the repository.
        line: Line (or table row) the finding points at.
        description: Human-readable message.
        type: Issue kind, for machine filtering.
        severity: How serious the finding is.
    """

    repo_name: str
    path: str
    line: int
    description: str
    type: IssueType
    severity: IssueSeverity = IssueSeverity.MAJOR

    def sort_key(self) -> tuple[str, str, int, str, str]:
        return (self.repo_name, self.path, self.line, self.type.value, self.description)

    def __str__(self) -> str:
        return f"{self.repo_name}:{self.path}:{self.line}: [{self.severity.value}] {self.description}"


@dataclass(eq=False)
class Req:
    """A requirement or assumption.

    Parents, children and tags are filled in by the resolver; the remaining
    fields come from the document parser. ``deleted`` is derived from the
    ``DELETED`` title prefix when the record is created.
    """

    id: str
    variant: ReqVariant = ReqVariant.REQUIREMENT
    id_number: int = 0
    title: str = ""
    body: str = ""
    parent_ids: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    position: int = 0
    repo_name: str = ""
    deleted: bool = False
    document: Document | None = field(default=None, repr=False)
    parents: list[Req] = field(default_factory=list, repr=False)
    children: list[Req] = field(default_factory=list, repr=False)
    tags: list[Code] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self.deleted = self.deleted or is_deleted_title(self.title)

    @property
    def path(self) -> str:
        return self.document.path if self.document is not None else ""

    def is_deleted(self) -> bool:
        return self.deleted

    def matches_spec(self, spec: ReqSpec) -> bool:
        """Check whether the requirement belongs to a spec, honouring its attribute filter."""
        if self.document is None or not self.document.matches_spec(spec):
            return False
        if spec.attr_key and spec.attr_value is not None:
            value = self.attributes.get(spec.attr_key)
            return value is not None and spec.attr_value.search(value) is not None
        return True

    def implemented(self) -> bool:
        return any(tag.code_file.type is CodeType.IMPLEMENTATION for tag in self.tags)

    def tested(self) -> bool:
        return any(tag.code_file.type is CodeType.TESTS for tag in self.tags)


@dataclass(frozen=True, order=True)
class CodeFile:
    """A source file of a repository, classified as implementation or tests."""

    repo_name: str
    path: str
    type: CodeType = field(default=CodeType.IMPLEMENTATION, compare=False)

    def __str__(self) -> str:
        return f"{self.repo_name}: {self.path}"


@dataclass(eq=False)
class Code:
    """A tagged source symbol.

    Attributes:
        code_file: File the symbol is declared or defined in.
        tag: Symbol name as reported by the tagger.
        line: 1-based line of the symbol.
        parent_ids: Requirement IDs from the comment above the symbol.
        optional: Tags without parents are acceptable (e.g. test helpers).
        symbol: Identity used to merge declarations; defaults to the tag.
        document: Document whose implementation the file belongs to.
        parents: Requirements resolved from parent_ids.
    """

    code_file: CodeFile
    tag: str
    line: int
    parent_ids: list[str] = field(default_factory=list)
    optional: bool = False
    symbol: str = ""
    document: Document | None = field(default=None, repr=False)
    parents: list[Req] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self.symbol:
            self.symbol = self.tag

    @property
    def path(self) -> str:
        return self.code_file.path

    @property
    def repo_name(self) -> str:
        return self.code_file.repo_name

    def location(self) -> str:
        return f"{self.tag}@{self.code_file.path}:{self.line}"


@dataclass(eq=False)
class Flow:
    """A data or control flow tag.

    ``reqs`` is filled in by the resolver from the ``FLOW`` attribute of
    requirements; the remaining fields come from the flow table row.
    """

    id: str
    kind: FlowKind = FlowKind.DATA
    caller: str = ""
    callee: str = ""
    direction: str = ""
    description: str = ""
    deleted: bool = False
    position: int = 0
    repo_name: str = ""
    document: Document | None = field(default=None, repr=False)
    reqs: list[Req] = field(default_factory=list, repr=False)

    @property
    def path(self) -> str:
        return self.document.path if self.document is not None else ""

    @property
    def prefix(self) -> str:
        return self.id.split("-")[1]

    @property
    def number(self) -> int:
        return int(self.id.split("-")[2])


@dataclass
class ReqGraph:
    """Requirements, code tags and issues of one build.

    Attributes:
        reqs: Requirements keyed by ID.
        code_tags: Tagged symbols keyed by the file holding them.
        flow_tags: Data and control flow tags keyed by ID.
        issues: Findings accumulated by the linter and resolver.
        resolved: Set once links have been resolved.
    """

    reqs: dict[str, Req] = field(default_factory=dict)
    code_tags: dict[CodeFile, list[Code]] = field(default_factory=dict)
    flow_tags: dict[str, Flow] = field(default_factory=dict)
    issues: list[Issue] = field(default_factory=list)
    resolved: bool = False

    def find_by_id(self, req_id: str) -> Req | None:
        return self.reqs.get(req_id)

    def iter_code(self) -> Iterator[Code]:
        """Iterate code tags ordered by file and line."""
        for code_file in sorted(self.code_tags):
            yield from sorted(self.code_tags[code_file], key=lambda c: c.line)

    def reqs_with_spec(self, spec: ReqSpec) -> list[Req]:
        """Non-deleted requirements (not assumptions) of a spec, ordered by ID number."""
        found = [
            r
            for r in self.reqs.values()
            if not r.deleted and r.matches_spec(spec) and spec.pattern.search(r.id)
        ]
        return sorted(found, key=lambda r: r.id_number)

    def top_level(self) -> list[Req]:
        """Requirements without resolved parents, ordered by document and position."""
        roots = [r for r in self.reqs.values() if not r.parents]
        return sorted(roots, key=lambda r: (r.repo_name, r.path, r.position))

    def sort_issues(self) -> None:
        self.issues.sort(key=Issue.sort_key)

    def major_issues(self) -> list[Issue]:
        return [i for i in self.issues if i.severity is IssueSeverity.MAJOR]
