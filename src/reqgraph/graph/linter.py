"""
reqgraph.graph.linter - Requirement ID sequence checks.

Validates the IDs of one document before its requirements enter the graph:
the prefix and level must match the document, numbers must not start with
a zero, and requirements and assumptions must each be numbered 1, 2, 3...
without gaps or repeats.

Flow tags must be unique across the graph and carry the document prefix.
Their numbering sequences must not have gaps.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field

from reqgraph.config.models import Document
from reqgraph.graph.models import Flow, Issue, IssueType, Req, ReqVariant


@dataclass
class LintResult:
    """Outcome of linting one document.

    Attributes:
        accepted: Requirements that passed every check, in ID-number order.
        issues: One issue per failed check.
    """

    accepted: list[Req] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)


class IdSequenceLinter:
    """Checks the IDs of a document's requirements."""

    def __init__(self, document: Document, repo_name: str = "") -> None:
        self.document = document
        self.repo_name = repo_name

    def _issue(self, req: Req, description: str) -> Issue:
        return Issue(
            repo_name=self.repo_name,
            path=self.document.path,
            line=req.position,
            description=description,
            type=IssueType.INVALID_REQUIREMENT_ID,
        )

    def check_id(self, req: Req, expected: int, present: set[int]) -> list[Issue]:
        """Check one requirement against the document spec and the sequence.

        Args:
            req: Requirement to check.
            expected: Number the sequence expects next for this variant.
            present: Numbers already seen for this variant (updated in place).

        Returns:
            Issues found for this requirement.
        """
        issues = []
        _, prefix, level, number = req.id.split("-", 3)
        spec = self.document.req_spec

        if prefix != spec.prefix:
            issues.append(
                self._issue(
                    req,
                    f"Incorrect project abbreviation for requirement {req.id}. "
                    f"Expected {spec.prefix}, got {prefix}.",
                )
            )
        if level != spec.level:
            issues.append(
                self._issue(
                    req,
                    f"Incorrect requirement type for requirement {req.id}. "
                    f"Expected {spec.level}, got {level}.",
                )
            )
        if number.startswith("0"):
            issues.append(
                self._issue(req, f"Requirement number cannot begin with a 0: {req.id}. Got {number}.")
            )

        current = int(number)
        if current < 1:
            issues.append(
                self._issue(
                    req,
                    f"Invalid requirement sequence number for {req.id}: "
                    "first requirement has to start with 001.",
                )
            )
        elif current in present:
            issues.append(
                self._issue(req, f"Invalid requirement sequence number for {req.id}, is duplicate.")
            )
        else:
            if current != expected:
                issues.append(
                    self._issue(
                        req,
                        f"Invalid requirement sequence number for {req.id}: missing requirements "
                        f"in between. Expected ID Number {expected}.",
                    )
                )
            present.add(current)

        return issues

    def lint(self, reqs: list[Req]) -> LintResult:
        """Lint all requirements of the document.

        Requirements are processed in ascending ID-number order, separately
        per variant. A requirement with any issue is left out of the result.
        """
        result = LintResult()
        expected = {ReqVariant.REQUIREMENT: 1, ReqVariant.ASSUMPTION: 1}
        present: dict[ReqVariant, set[int]] = {
            ReqVariant.REQUIREMENT: set(),
            ReqVariant.ASSUMPTION: set(),
        }

        for req in sorted(reqs, key=lambda r: r.id_number):
            issues = self.check_id(req, expected[req.variant], present[req.variant])
            expected[req.variant] = req.id_number + 1
            if issues:
                result.issues.extend(issues)
                continue
            result.accepted.append(req)

        return result


def lint_document(reqs: list[Req], document: Document, repo_name: str = "") -> LintResult:
    """Lint the requirements parsed from one document."""
    return IdSequenceLinter(document, repo_name).lint(reqs)


@dataclass
class FlowLintResult:
    """Outcome of linting the flow tags of one document.

    Attributes:
        accepted: Flow tags to add to the graph, in table order.
        issues: One issue per failed check.
    """

    accepted: list[Flow] = field(default_factory=list)
    issues: list[Issue] = field(default_factory=list)


class FlowTagLinter:
    """Checks the flow tags of a document.

    A tag already known to the graph, or repeated within the document, is a
    duplicate. The tag prefix must match the document prefix. Within each
    ``DF-<Prefix>`` and ``CF-<Prefix>`` sequence, numbers skipped below the
    highest one are reported as missing.
    """

    def __init__(self, document: Document, repo_name: str = "") -> None:
        self.document = document
        self.repo_name = repo_name

    def _issue(self, line: int, description: str, issue_type: IssueType) -> Issue:
        return Issue(
            repo_name=self.repo_name,
            path=self.document.path,
            line=line,
            description=description,
            type=issue_type,
        )

    def lint(self, flows: list[Flow], known: Collection[str] = ()) -> FlowLintResult:
        result = FlowLintResult()
        seen = set(known)
        numbers: dict[str, list[int]] = {}

        for flow in flows:
            if flow.id in seen:
                result.issues.append(
                    self._issue(
                        flow.position,
                        f"Duplicate data/control flow tag '{flow.id}'",
                        IssueType.DUPLICATE_FLOW_ID,
                    )
                )
                continue
            if flow.prefix != self.document.req_spec.prefix:
                result.issues.append(
                    self._issue(
                        flow.position,
                        f"Invalid data/control flow tag prefix in '{flow.id}'",
                        IssueType.INVALID_FLOW_ID,
                    )
                )
                continue
            seen.add(flow.id)
            result.accepted.append(flow)
            numbers.setdefault(f"{flow.kind.value}-{flow.prefix}", []).append(flow.number)

        for sequence in sorted(numbers):
            expected = 1
            for number in sorted(numbers[sequence]):
                for missing in range(expected, number):
                    result.issues.append(
                        self._issue(0, f"Missing flow tag '{sequence}-{missing}'", IssueType.MISSING_FLOW_ID)
                    )
                expected = number + 1

        return result


def lint_flows(
    flows: list[Flow], document: Document, repo_name: str = "", known: Collection[str] = ()
) -> FlowLintResult:
    """Lint the flow tags parsed from one document against the tags already known."""
    return FlowTagLinter(document, repo_name).lint(flows, known)
