"""
reqgraph.graph.resolver - Link and validate a merged requirement graph.

One pass over a fully built ReqGraph that:
- checks IDs against the document schema
- checks attributes against the attribute rules
- links requirements to their parents (and parents to their children)
- checks ID references in requirement bodies
- merges the @llr links of repeated symbols and links code to requirements
- flags requirements that are tested but not implemented
- links requirements to the flow tags named in their FLOW attribute and
  checks the flow tags themselves

Problems never stop the pass; every one is returned as an Issue.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from reqgraph.config.models import AttributeType
from reqgraph.graph.models import (
    Code,
    CodeType,
    Flow,
    FlowKind,
    Issue,
    IssueSeverity,
    IssueType,
    Req,
    ReqGraph,
    ReqVariant,
)
from reqgraph.utilities.patterns import DATA_FLOW_DIRECTIONS, REQ_ID

SHALL = re.compile(r"\bshall\b", re.IGNORECASE)


@dataclass
class ResolveOptions:
    """Optional checks on top of the standard resolution.

    Attributes:
        report_coverage: Add notes for requirements that are not implemented
            or not tested (documents with implementation files only).
        check_wording: Require exactly one "shall" in requirement bodies and
            none in the rationale.
    """

    report_coverage: bool = False
    check_wording: bool = False


class Resolver:
    """Resolves one graph; a graph can only be resolved once."""

    def __init__(self, graph: ReqGraph, options: ResolveOptions | None = None) -> None:
        self.graph = graph
        self.options = options or ResolveOptions()
        self.issues: list[Issue] = []

    def _req_issue(
        self,
        req: Req,
        description: str,
        issue_type: IssueType,
        severity: IssueSeverity = IssueSeverity.MAJOR,
    ) -> None:
        self.issues.append(
            Issue(
                repo_name=req.repo_name,
                path=req.path,
                line=req.position,
                description=description,
                type=issue_type,
                severity=severity,
            )
        )

    def _code_issue(self, code: Code, description: str, issue_type: IssueType) -> None:
        self.issues.append(
            Issue(
                repo_name=code.repo_name,
                path=code.path,
                line=code.line,
                description=description,
                type=issue_type,
            )
        )

    def _flow_issue(
        self,
        flow: Flow,
        description: str,
        issue_type: IssueType,
        severity: IssueSeverity = IssueSeverity.MAJOR,
    ) -> None:
        self.issues.append(
            Issue(
                repo_name=flow.repo_name,
                path=flow.path,
                line=flow.position,
                description=description,
                type=issue_type,
                severity=severity,
            )
        )

    def resolve(self) -> list[Issue]:
        """Run the full pass.

        Returns:
            Issues found, sorted by location.

        Raises:
            ValueError: If the graph was already resolved.
        """
        if self.graph.resolved:
            raise ValueError("graph is already resolved")

        ordered = sorted(self.graph.reqs.values(), key=lambda r: (r.repo_name, r.path, r.position, r.id))
        for req in ordered:
            if req.deleted:
                continue
            self._check_id(req)
            self._check_attributes(req)
            if self.options.check_wording:
                self._check_wording(req)
            self._link_parents(req)
            self._check_body_references(req)
            self._link_flows(req)

        self._resolve_code()
        self._check_implementation(ordered)
        self._check_flows()

        for req in self.graph.reqs.values():
            req.parents.sort(key=lambda r: (r.position, r.id))
            req.children.sort(key=lambda r: (r.position, r.id))
            req.tags.sort(key=lambda c: (c.repo_name, c.path, c.line))
        for flow in self.graph.flow_tags.values():
            flow.reqs.sort(key=lambda r: (r.repo_name, r.path, r.position))

        self.graph.resolved = True
        self.issues.sort(key=Issue.sort_key)
        return self.issues

    def _check_id(self, req: Req) -> None:
        document = req.document
        if document is None or document.schema is None:
            return
        if not document.schema.requirements.search(req.id):
            self._req_issue(
                req,
                f"Requirement `{req.id}` in document `{document.path}` does not match required "
                f"regexp `{document.schema.requirements.pattern}`",
                IssueType.INVALID_REQUIREMENT_ID,
            )

    def _check_attributes(self, req: Req) -> None:
        document = req.document
        if document is None or document.schema is None:
            return
        if req.variant is ReqVariant.ASSUMPTION:
            rules = document.schema.asm_attributes
        else:
            rules = document.schema.attributes

        any_names = []
        any_present = 0
        for name in sorted(rules):
            rule = rules[name]
            if rule.type is AttributeType.ANY:
                any_names.append(name)

            value = req.attributes.get(name.upper(), "")
            if not value:
                if rule.type is AttributeType.REQUIRED:
                    self._req_issue(
                        req,
                        f"Requirement '{req.id}' is missing attribute '{name}'.",
                        IssueType.MISSING_ATTRIBUTE,
                    )
                continue

            if rule.type is AttributeType.ANY:
                any_present += 1
            if not rule.value.search(value):
                self._req_issue(
                    req,
                    f"Requirement '{req.id}' has invalid value '{value}' in attribute '{name}'.",
                    IssueType.INVALID_ATTRIBUTE_VALUE,
                )

        if any_names and any_present == 0:
            self._req_issue(
                req,
                f"Requirement '{req.id}' is missing at least one of the attributes "
                f"'{','.join(any_names)}'.",
                IssueType.MISSING_ATTRIBUTE,
            )

        for name in sorted(req.attributes):
            if name.upper() not in rules:
                self._req_issue(
                    req,
                    f"Requirement '{req.id}' has unknown attribute '{name}'.",
                    IssueType.UNKNOWN_ATTRIBUTE,
                )

    def _check_wording(self, req: Req) -> None:
        path = req.path
        shall_count = len(SHALL.findall(req.body))
        if shall_count == 0 and req.variant is ReqVariant.REQUIREMENT:
            self._req_issue(
                req,
                f"Requirement `{req.id}` in document `{path}` does not contain a SHALL "
                "statement in its body",
                IssueType.NO_SHALL_IN_BODY,
            )
        elif shall_count > 1:
            self._req_issue(
                req,
                f"Requirement `{req.id}` in document `{path}` contains multiple SHALL "
                "statements in its body",
                IssueType.MANY_SHALL_IN_BODY,
            )

        if SHALL.search(req.attributes.get("RATIONALE", "")):
            self._req_issue(
                req,
                f"Requirement `{req.id}` in document `{path}` contains SHALL statements in its rationale",
                IssueType.SHALL_IN_RATIONALE,
            )

    def _link_parents(self, req: Req) -> None:
        for parent_id in req.parent_ids:
            parent = self.graph.reqs.get(parent_id)
            if parent is None:
                self._req_issue(
                    req,
                    f"Invalid parent of requirement {req.id}: {parent_id} does not exist.",
                    IssueType.INVALID_PARENT,
                )
                continue

            if parent not in req.parents:
                req.parents.append(parent)
                parent.children.append(req)

            if parent.deleted:
                self._req_issue(
                    req,
                    f"Invalid parent of requirement {req.id}: {parent_id} is deleted.",
                    IssueType.INVALID_PARENT,
                )
            if req.variant is ReqVariant.REQUIREMENT:
                description = validate_link(req, parent)
                if description:
                    self._req_issue(req, description, IssueType.INVALID_PARENT)

    def _check_body_references(self, req: Req) -> None:
        for match in REQ_ID.finditer(req.body):
            ref_id = match.group(0)
            referenced = self.graph.reqs.get(ref_id)
            if referenced is None:
                self._req_issue(
                    req,
                    f"Invalid reference to non existent requirement {ref_id} in body of {req.id}.",
                    IssueType.INVALID_REQUIREMENT_REFERENCE,
                )
            elif referenced.deleted:
                self._req_issue(
                    req,
                    f"Invalid reference to deleted requirement {ref_id} in body of {req.id}.",
                    IssueType.INVALID_REQUIREMENT_REFERENCE,
                )

    def _link_flows(self, req: Req) -> None:
        prefix = req.document.req_spec.prefix if req.document is not None else ""
        for tag in req.attributes.get("FLOW", "").split(","):
            tag = tag.strip()
            if not tag:
                continue
            flow = self.graph.flow_tags.get(tag)
            if flow is None:
                self._req_issue(
                    req,
                    f"Unknown data/control flow tag '{tag}' in requirement '{req.id}'",
                    IssueType.INVALID_FLOW_ID,
                )
                continue
            if flow.prefix != prefix:
                self._req_issue(
                    req,
                    f"Link to existing flow tag '{tag}' that belongs to a different item in "
                    f"requirement '{req.id}'",
                    IssueType.FLOW_ID_OF_DIFFERENT_ITEM,
                )
                continue
            if req not in flow.reqs:
                flow.reqs.append(req)

    def _check_flows(self) -> None:
        for flow in sorted(self.graph.flow_tags.values(), key=lambda f: (f.repo_name, f.path, f.position)):
            if flow.deleted:
                continue
            if not flow.reqs:
                self._flow_issue(
                    flow,
                    f"Data/control flow tag '{flow.id}' has no linked requirements",
                    IssueType.FLOW_NOT_IMPLEMENTED,
                    IssueSeverity.NOTE,
                )
            if flow.kind is FlowKind.DATA and flow.direction.strip("`") not in DATA_FLOW_DIRECTIONS:
                self._flow_issue(
                    flow,
                    f"Invalid direction '{flow.direction}' for data flow tag '{flow.id}'. "
                    "Allowed values are 'In', 'Out' and 'In/Out'",
                    IssueType.INVALID_FLOW_DIRECTION,
                )

    @staticmethod
    def _symbol_key(code: Code) -> tuple[str, CodeType, str]:
        document_path = code.document.path if code.document is not None else ""
        return (document_path, code.code_file.type, code.symbol)

    def _merge_symbol_links(self) -> dict[tuple[str, CodeType, str], list[str]]:
        """Collect the parent IDs of every symbol.

        A symbol may be declared and defined in several places; the @llr
        comment only needs to appear on one of them. Symbols are grouped per
        document and per code type. Differing ID sets for one symbol are
        reported, and the first one (in file and line order) wins.
        """
        links: dict[tuple[str, CodeType, str], list[str]] = {}
        first_seen: dict[tuple[str, CodeType, str], Code] = {}

        for code in self.graph.iter_code():
            if not code.parent_ids:
                continue
            key = self._symbol_key(code)
            if key not in links:
                links[key] = code.parent_ids
                first_seen[key] = code
                continue
            if Counter(links[key]) != Counter(code.parent_ids):
                previous = first_seen[key]
                self._code_issue(
                    code,
                    f"LLR declarations differ in {previous.location()} and {code.location()}.",
                    IssueType.INVALID_REQUIREMENT_IN_CODE,
                )
        return links

    def _resolve_code(self) -> None:
        links = self._merge_symbol_links()

        for code in self.graph.iter_code():
            parent_ids = links.get(self._symbol_key(code), [])
            where = f"function {code.location()} in repo `{code.repo_name}`"

            if not parent_ids and not code.optional:
                self._code_issue(
                    code,
                    f"Function {code.tag}@{code.code_file}:{code.line} has no parents.",
                    IssueType.MISSING_REQUIREMENT_IN_CODE,
                )

            document = code.document
            for parent_id in parent_ids:
                if document is not None and document.schema is not None:
                    if not document.schema.requirements.search(parent_id):
                        self._code_issue(
                            code,
                            f"Invalid reference in {where}, `{parent_id}` does not match "
                            f"requirement format in document `{document.path}`.",
                            IssueType.INVALID_REQUIREMENT_IN_CODE,
                        )

                parent = self.graph.reqs.get(parent_id)
                if parent is None:
                    self._code_issue(
                        code,
                        f"Invalid reference in {where}, {parent_id} does not exist.",
                        IssueType.INVALID_REQUIREMENT_IN_CODE,
                    )
                    continue
                if parent.deleted:
                    self._code_issue(
                        code,
                        f"Invalid reference in {where}, {parent_id} is deleted.",
                        IssueType.INVALID_REQUIREMENT_IN_CODE,
                    )
                if code not in parent.tags:
                    parent.tags.append(code)
                    code.parents.append(parent)

    def _check_implementation(self, ordered: list[Req]) -> None:
        for req in ordered:
            if req.deleted:
                continue
            implemented = req.implemented()
            tested = req.tested()

            if tested and not implemented:
                self._req_issue(
                    req,
                    f"Requirement {req.id} is tested, but it is not implemented.",
                    IssueType.REQ_TESTED_BUT_NOT_IMPLEMENTED,
                )
                continue

            has_code = req.document is not None and req.document.has_implementation()
            if not self.options.report_coverage or not has_code:
                continue
            if not implemented:
                self._req_issue(
                    req,
                    f"Requirement {req.id} is not implemented.",
                    IssueType.REQ_NOT_IMPLEMENTED,
                    IssueSeverity.NOTE,
                )
            elif not tested:
                self._req_issue(
                    req,
                    f"Requirement {req.id} is not tested.",
                    IssueType.REQ_NOT_TESTED,
                    IssueSeverity.NOTE,
                )


def validate_link(req: Req, parent: Req) -> str:
    """Check a child -> parent link against the document's link specs.

    Documents without link specs accept any parent.

    Returns:
        An issue description, or "" if the link is permitted.
    """
    document = req.document
    if document is None or not document.link_specs:
        return ""

    for link in document.link_specs:
        if not link.child.pattern.search(req.id):
            continue
        if link.child.attr_key and link.child.attr_value is not None:
            value = req.attributes.get(link.child.attr_key)
            if value is None or not link.child.attr_value.search(value):
                continue
        if not link.parent.pattern.search(parent.id):
            continue
        if link.parent.attr_key and link.parent.attr_value is not None:
            value = parent.attributes.get(link.parent.attr_key)
            if value is None or not link.parent.attr_value.search(value):
                return (
                    f"Requirement '{req.id}' has invalid parent link ID '{parent.id}' with "
                    f"attribute value '{link.parent.attr_key}'=='{value or ''}'."
                )
        return ""

    return f"Requirement '{req.id}' has invalid parent link ID '{parent.id}'."


def resolve_graph(graph: ReqGraph, options: ResolveOptions | None = None) -> list[Issue]:
    """Resolve a graph, adding the issues found to ``graph.issues``.

    Returns:
        The issues found by this pass.
    """
    issues = Resolver(graph, options).resolve()
    graph.issues.extend(issues)
    graph.sort_issues()
    return issues
