"""Tests for requirement change reports."""

import pytest

from reqgraph.graph.models import Req
from reqgraph.graph.serialize import export_graph, load_graph
from reqgraph.trace_view.diff import changed_since, only_letters, req_changes


@pytest.fixture
def previous(three_level_graph):
    """Independent copy of the three-level graph, as loaded from a snapshot."""
    return load_graph(export_graph(three_level_graph))


def make_req(**kwargs):
    fields = {"id": "REQ-TEST-SWH-1", "title": "Heading parser", "body": "The parser shall read."}
    fields.update(kwargs)
    return Req(**fields)


class TestOnlyLetters:
    def test_ignores_case_whitespace_and_punctuation(self):
        assert only_letters("The parser, shall\n  read 2 things!") == "theparsershallreadthings"


class TestReqChanges:
    """Tests for the change messages of one requirement."""

    def test_unchanged(self):
        assert req_changes(make_req(), make_req()) == []

    def test_added_and_missing(self):
        assert req_changes(make_req(), None) == ["ADDED"]
        assert req_changes(None, make_req()) == ["MISSING"]
        assert req_changes(None, None) == []

    def test_deleted(self):
        assert req_changes(make_req(title="DELETED"), make_req()) == ["DELETED"]

    def test_undeleted(self):
        assert req_changes(make_req(), make_req(title="DELETED")) == ["UNDELETED"]

    def test_deleted_in_both(self):
        assert req_changes(make_req(title="DELETED"), make_req(title="DELETED old")) == []

    def test_title_changed(self):
        changes = req_changes(make_req(title="Table parser", body="Other."), make_req())

        assert changes == ['Changed from "Heading parser" to "Table parser"']

    def test_body_changed(self):
        assert req_changes(make_req(body="The parser shall skip."), make_req()) == ["Body changed"]

    def test_formatting_only_changes_ignored(self):
        current = make_req(title="Heading  parser.", body="The parser\nshall read!")

        assert req_changes(current, make_req()) == []

    def test_attributes(self):
        previous = make_req(attributes={"RATIONALE": "Common.", "VERIFICATION": "Test", "OWNER": "a"})
        current = make_req(attributes={"RATIONALE": "Compact.", "VERIFICATION": "Test!", "NOTE": "new"})

        assert req_changes(current, previous) == [
            'Added "NOTE": "new"',
            'Removed "OWNER"',
            'Changed "RATIONALE" from "Common." to "Compact."',
        ]

    def test_parents(self):
        previous = make_req(parent_ids=["REQ-TEST-SYS-1", "REQ-TEST-SYS-2"], attributes={"PARENTS": "x"})
        current = make_req(parent_ids=["REQ-TEST-SYS-2", "REQ-TEST-SYS-4"], attributes={"PARENTS": "y"})

        assert req_changes(current, previous) == [
            'Removed parent "REQ-TEST-SYS-1"',
            'Added parent "REQ-TEST-SYS-4"',
        ]

    def test_moved_to_other_file(self, sys_document, swh_document):
        current = make_req(document=swh_document, repo_name="projectB")
        previous = make_req(document=sys_document, repo_name="projectA")

        assert req_changes(current, previous) == [
            'Level from "SYS" to "SWH" (should not happen!)',
            'File in which found changed from ("projectA" - "certdocs/TEST-100-ORD.md") '
            'to ("projectB" - "certdocs/TEST-137-SRD.md")',
        ]


class TestChangedSince:
    """Tests for comparing whole graphs."""

    def test_same_graph(self, three_level_graph, previous):
        assert changed_since(three_level_graph, three_level_graph) is None
        assert changed_since(three_level_graph, previous) is None

    def test_no_previous_graph(self, three_level_graph):
        assert changed_since(three_level_graph, None) is None

    def test_changes_keyed_by_id(self, three_level_graph, previous):
        three_level_graph.reqs["REQ-TEST-SWL-2"].title = "DELETED"
        three_level_graph.reqs["REQ-TEST-SWL-2"].deleted = True
        three_level_graph.reqs["REQ-TEST-SWH-1"].body = "Something else entirely."
        del previous.reqs["REQ-TEST-SWL-1"]
        previous.reqs["REQ-TEST-SYS-9"] = make_req(id="REQ-TEST-SYS-9")

        diffs = changed_since(three_level_graph, previous)

        assert diffs == {
            "REQ-TEST-SWH-1": ["Body changed"],
            "REQ-TEST-SWL-1": ["ADDED"],
            "REQ-TEST-SWL-2": ["DELETED"],
            "REQ-TEST-SYS-9": ["MISSING"],
        }
        assert list(diffs) == sorted(diffs)
