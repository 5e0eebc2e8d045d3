"""Tests for regex requirement filters."""

import pytest

from reqgraph.graph.filters import create_filter
from reqgraph.graph.models import Req


@pytest.fixture
def reqs():
    return [
        Req(id="REQ-TEST-SWL-1", title="Split cells", body="Shall split.", attributes={"VERIFICATION": "Test"}),
        Req(id="REQ-TEST-SWL-2", title="Trim cells", body="Shall trim.", attributes={"VERIFICATION": "Review"}),
        Req(id="REQ-TEST-SWL-3", title="Count rows", body="Shall count.", attributes={}),
    ]


def ids(reqs):
    return [r.id for r in reqs]


class TestCreateFilter:
    """Tests for building filters from KEY=REGEX expressions."""

    def test_empty(self, reqs):
        req_filter = create_filter([])

        assert req_filter.is_empty()
        assert ids(req_filter.apply(reqs)) == ids(reqs)

    def test_title(self, reqs):
        assert ids(create_filter(["title=cells$"]).apply(reqs)) == ["REQ-TEST-SWL-1", "REQ-TEST-SWL-2"]

    def test_all_filters_must_match(self, reqs):
        req_filter = create_filter(["TITLE=cells", "Body=trim"])

        assert ids(req_filter.apply(reqs)) == ["REQ-TEST-SWL-2"]

    def test_attribute(self, reqs):
        assert ids(create_filter(["verification=^Test$"]).apply(reqs)) == ["REQ-TEST-SWL-1"]

    def test_missing_attribute_matches_empty(self, reqs):
        assert ids(create_filter(["VERIFICATION=^$"]).apply(reqs)) == ["REQ-TEST-SWL-3"]

    def test_any_attribute(self, reqs):
        assert ids(create_filter(["ANY=Rev"]).apply(reqs)) == ["REQ-TEST-SWL-2"]

    def test_id(self, reqs):
        assert ids(create_filter(["ID=-3$"]).apply(reqs)) == ["REQ-TEST-SWL-3"]

    def test_value_may_contain_equals(self, reqs):
        req_filter = create_filter(["BODY=a=b"])

        assert req_filter.body.pattern == "a=b"

    @pytest.mark.parametrize("expression", ["TITLE", "=cells", "TITLE=("])
    def test_invalid(self, expression):
        with pytest.raises(ValueError, match="filter"):
            create_filter([expression])
