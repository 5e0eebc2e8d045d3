"""
reqgraph.config.models - Document and schema descriptions.

These are the ready-made values the graph engine consumes. They are built
by the loader from ``.reqgraph.toml`` but can equally be constructed in code.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath

from reqgraph.config.repos import RepositorySet
from reqgraph.utilities.patterns import parent_regex, requirement_regex

MATCH_ANYTHING = ".*"


class AttributeType(Enum):
    """How an attribute rule applies to a requirement."""

    REQUIRED = "required"
    OPTIONAL = "optional"
    # At least one attribute of this type must be present
    ANY = "any"


@dataclass
class Attribute:
    """Attribute rule: presence type plus a regex the value must match."""

    type: AttributeType = AttributeType.REQUIRED
    value: re.Pattern[str] = field(default_factory=lambda: re.compile(MATCH_ANYTHING))


@dataclass
class ReqSpec:
    """Identifies the requirements of one document.

    Attributes:
        prefix: Project abbreviation, e.g. "TEST".
        level: Requirement level, e.g. "SYS".
        attr_key: Optional attribute a requirement must carry to match.
        attr_value: Regex the attribute value must match.
    """

    prefix: str
    level: str
    attr_key: str = ""
    attr_value: re.Pattern[str] | None = None

    @property
    def pattern(self) -> re.Pattern[str]:
        return parent_regex(self.prefix, self.level)

    def __str__(self) -> str:
        if not self.attr_key or self.attr_value is None:
            return f"REQ-{self.prefix}-{self.level}"
        return f"REQ-{self.prefix}-{self.level} ({self.attr_key} == {self.attr_value.pattern.strip('^$')})"


@dataclass
class LinkSpec:
    """A permitted child -> parent link between two requirement specs."""

    child: ReqSpec
    parent: ReqSpec


@dataclass
class Schema:
    """Validation rules for the requirements of a document.

    Attributes:
        requirements: Regex every requirement ID must match.
        attributes: Attribute rules for requirements, keyed by upper-cased name.
        asm_attributes: Attribute rules for assumptions.
    """

    requirements: re.Pattern[str]
    attributes: dict[str, Attribute] = field(default_factory=dict)
    asm_attributes: dict[str, Attribute] = field(default_factory=dict)


@dataclass
class Implementation:
    """Source files implementing and testing a document's requirements."""

    code_files: list[str] = field(default_factory=list)
    test_files: list[str] = field(default_factory=list)
    code_parser: str = "ctags"


@dataclass
class Document:
    """A requirements document with its spec, schema and implementation.

    Attributes:
        path: Path of the document relative to its repository root.
        req_spec: Prefix and level of the requirements it holds.
        schema: Attribute rules and ID regex.
        link_specs: Permitted parent links (empty for top-level documents).
        implementation: Code and test files linked to the document.
    """

    path: str
    req_spec: ReqSpec
    schema: Schema | None = None
    link_specs: list[LinkSpec] = field(default_factory=list)
    implementation: Implementation = field(default_factory=Implementation)

    def __post_init__(self) -> None:
        if self.schema is None:
            self.schema = default_schema(self.req_spec, has_parents=bool(self.link_specs))

    @property
    def parent_req_specs(self) -> list[ReqSpec]:
        return [link.parent for link in self.link_specs]

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    def has_implementation(self) -> bool:
        return len(self.implementation.code_files) != 0

    def matches_spec(self, spec: ReqSpec) -> bool:
        return spec.prefix == self.req_spec.prefix and spec.level == self.req_spec.level


def default_schema(req_spec: ReqSpec, has_parents: bool = False) -> Schema:
    """Build the schema a document gets when none is configured.

    Assumptions always require a PARENTS attribute pointing at requirements
    of the same document. Documents with parent links also accept PARENTS on
    requirements.
    """
    attributes = {}
    if has_parents:
        attributes["PARENTS"] = Attribute(AttributeType.ANY, re.compile(MATCH_ANYTHING))
    return Schema(
        requirements=requirement_regex(req_spec.prefix, req_spec.level),
        attributes=attributes,
        asm_attributes={
            "PARENTS": Attribute(
                AttributeType.REQUIRED, parent_regex(req_spec.prefix, req_spec.level)
            )
        },
    )


@dataclass
class RepoConfig:
    """Documents declared by one repository."""

    documents: list[Document] = field(default_factory=list)


@dataclass
class Config:
    """All repositories composing the system, keyed by repository name."""

    repos: dict[str, RepoConfig] = field(default_factory=dict)
    target_repo: str = ""
    repositories: RepositorySet = field(default_factory=RepositorySet, repr=False)

    def iter_documents(self) -> Iterator[tuple[str, Document]]:
        """Yield (repo_name, document) pairs in a stable order."""
        for repo_name in sorted(self.repos):
            for document in self.repos[repo_name].documents:
                yield repo_name, document

    def find_document(self, path: str) -> tuple[str, Document] | None:
        """Find a document by file name.

        Args:
            path: Path (or bare file name) of the document.

        Returns:
            (repo_name, document) or None when no document has that name.
        """
        wanted = PurePosixPath(path).name
        for repo_name, document in self.iter_documents():
            if document.name == wanted:
                return repo_name, document
        return None

    def linked_specs(self) -> list[LinkSpec]:
        """All child -> parent spec links declared across the repositories."""
        return [
            link
            for _, document in self.iter_documents()
            for link in document.link_specs
            if link.child.prefix and link.child.level
        ]
