"""Tests for requirement ID sequence linting."""

import pytest

from reqgraph.config.models import Document, ReqSpec
from reqgraph.graph.linter import lint_document, lint_flows
from reqgraph.graph.models import Flow, FlowKind, IssueType, Req, ReqVariant


@pytest.fixture
def document():
    return Document(path="certdocs/TEST-100-ORD.md", req_spec=ReqSpec("TEST", "SYS"))


def make_reqs(*ids):
    reqs = []
    for position, req_id in enumerate(ids, start=1):
        variant = ReqVariant(req_id.split("-", 1)[0])
        number = int(req_id.rsplit("-", 1)[1])
        reqs.append(Req(id=req_id, variant=variant, id_number=number, title="T", position=position))
    return reqs


def ids(reqs):
    return [r.id for r in reqs]


class TestSequence:
    """Tests for gaps and repeats in ID numbers."""

    def test_consecutive_numbers(self, document):
        result = lint_document(make_reqs("REQ-TEST-SYS-1", "REQ-TEST-SYS-2", "REQ-TEST-SYS-3"), document)

        assert result.issues == []
        assert ids(result.accepted) == ["REQ-TEST-SYS-1", "REQ-TEST-SYS-2", "REQ-TEST-SYS-3"]

    def test_processed_in_number_order(self, document):
        result = lint_document(make_reqs("REQ-TEST-SYS-2", "REQ-TEST-SYS-1"), document)

        assert result.issues == []
        assert ids(result.accepted) == ["REQ-TEST-SYS-1", "REQ-TEST-SYS-2"]

    def test_gap(self, document):
        reqs = make_reqs(
            "REQ-TEST-SYS-1", "REQ-TEST-SYS-2", "REQ-TEST-SYS-3", "REQ-TEST-SYS-5", "REQ-TEST-SYS-6"
        )

        result = lint_document(reqs, document, "projectA")

        assert len(result.issues) == 1
        issue = result.issues[0]
        assert "REQ-TEST-SYS-5" in issue.description
        assert "Expected ID Number 4" in issue.description
        assert issue.type is IssueType.INVALID_REQUIREMENT_ID
        assert issue.repo_name == "projectA"
        assert issue.path == "certdocs/TEST-100-ORD.md"
        assert issue.line == 4
        assert ids(result.accepted) == ["REQ-TEST-SYS-1", "REQ-TEST-SYS-2", "REQ-TEST-SYS-3", "REQ-TEST-SYS-6"]

    def test_duplicate(self, document):
        result = lint_document(make_reqs("REQ-TEST-SYS-1", "REQ-TEST-SYS-1", "REQ-TEST-SYS-2"), document)

        assert len(result.issues) == 1
        assert "is duplicate" in result.issues[0].description
        assert result.issues[0].line == 2
        assert ids(result.accepted) == ["REQ-TEST-SYS-1", "REQ-TEST-SYS-2"]

    def test_requirements_and_assumptions_numbered_separately(self, document):
        reqs = make_reqs("REQ-TEST-SYS-1", "ASM-TEST-SYS-1", "REQ-TEST-SYS-2", "ASM-TEST-SYS-2")

        result = lint_document(reqs, document)

        assert result.issues == []
        assert len(result.accepted) == 4

    def test_assumption_gap(self, document):
        result = lint_document(make_reqs("REQ-TEST-SYS-1", "ASM-TEST-SYS-2"), document)

        assert len(result.issues) == 1
        assert "Expected ID Number 1" in result.issues[0].description


class TestIdComponents:
    """Tests for prefix, level and number format."""

    def test_wrong_prefix(self, document):
        result = lint_document(make_reqs("REQ-OTHER-SYS-1"), document)

        assert [i.description for i in result.issues] == [
            "Incorrect project abbreviation for requirement REQ-OTHER-SYS-1. Expected TEST, got OTHER."
        ]
        assert result.accepted == []

    def test_wrong_level(self, document):
        result = lint_document(make_reqs("REQ-TEST-SWH-1"), document)

        assert [i.description for i in result.issues] == [
            "Incorrect requirement type for requirement REQ-TEST-SWH-1. Expected SYS, got SWH."
        ]

    def test_leading_zero(self, document):
        result = lint_document(make_reqs("REQ-TEST-SYS-01", "REQ-TEST-SYS-2"), document)

        assert len(result.issues) == 1
        assert "cannot begin with a 0" in result.issues[0].description
        assert ids(result.accepted) == ["REQ-TEST-SYS-2"]

    def test_number_zero(self, document):
        result = lint_document(make_reqs("REQ-TEST-SYS-0"), document)

        descriptions = [i.description for i in result.issues]
        assert len(descriptions) == 2
        assert "cannot begin with a 0" in descriptions[0]
        assert "first requirement has to start with 001" in descriptions[1]


def make_flows(*tags):
    flows = []
    for position, tag in enumerate(tags, start=1):
        kind = FlowKind(tag.split("-", 1)[0])
        flows.append(Flow(id=tag, kind=kind, position=position))
    return flows


class TestFlowTags:
    """Tests for flow tag checks."""

    def test_valid_sequences(self, document):
        result = lint_flows(make_flows("DF-TEST-1", "DF-TEST-2", "CF-TEST-1"), document, "projectA")

        assert result.issues == []
        assert [f.id for f in result.accepted] == ["DF-TEST-1", "DF-TEST-2", "CF-TEST-1"]

    def test_duplicate_of_known_tag(self, document):
        result = lint_flows(make_flows("DF-TEST-1"), document, "projectA", known={"DF-TEST-1"})

        assert result.accepted == []
        assert [(i.line, i.description, i.type) for i in result.issues] == [
            (1, "Duplicate data/control flow tag 'DF-TEST-1'", IssueType.DUPLICATE_FLOW_ID)
        ]

    def test_duplicate_within_document(self, document):
        result = lint_flows(make_flows("CF-TEST-1", "CF-TEST-1"), document)

        assert len(result.accepted) == 1
        assert [(i.line, i.type) for i in result.issues] == [(2, IssueType.DUPLICATE_FLOW_ID)]

    def test_prefix_of_other_item(self, document):
        result = lint_flows(make_flows("DF-OTHER-1"), document)

        assert result.accepted == []
        assert [i.description for i in result.issues] == [
            "Invalid data/control flow tag prefix in 'DF-OTHER-1'"
        ]
        assert result.issues[0].type is IssueType.INVALID_FLOW_ID

    def test_missing_numbers(self, document):
        result = lint_flows(make_flows("DF-TEST-4", "DF-TEST-2", "CF-TEST-2"), document, "projectA")

        assert [f.id for f in result.accepted] == ["DF-TEST-4", "DF-TEST-2", "CF-TEST-2"]
        assert [(i.path, i.line, i.description) for i in result.issues] == [
            ("certdocs/TEST-100-ORD.md", 0, "Missing flow tag 'CF-TEST-1'"),
            ("certdocs/TEST-100-ORD.md", 0, "Missing flow tag 'DF-TEST-1'"),
            ("certdocs/TEST-100-ORD.md", 0, "Missing flow tag 'DF-TEST-3'"),
        ]
        assert {i.type for i in result.issues} == {IssueType.MISSING_FLOW_ID}
