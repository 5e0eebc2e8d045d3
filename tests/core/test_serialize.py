"""Tests for graph snapshot export and loading."""

import json

import pytest

from reqgraph.graph.models import IssueType
from reqgraph.graph.serialize import (
    FORMAT_VERSION,
    dump_graph,
    export_graph,
    load_graph,
    load_graphs,
    merge_graph_data,
)


class TestExport:
    """Tests for export_graph()."""

    def test_contents(self, three_level_graph):
        data = export_graph(three_level_graph)

        assert data["version"] == FORMAT_VERSION
        assert [d["path"] for d in data["documents"]] == [
            "certdocs/TEST-100-ORD.md",
            "certdocs/TEST-137-SRD.md",
            "certdocs/TEST-138-SDD.md",
        ]
        assert [r["id"] for r in data["reqs"]][:3] == ["REQ-TEST-SWH-1", "REQ-TEST-SWH-2", "REQ-TEST-SWL-1"]
        assert [c["tag"] for c in data["code"]] == ["split_cells", "trim_cells", "test_split_cells", "helper"]
        assert data["issues"] == []

    def test_requirement_record(self, three_level_graph):
        data = export_graph(three_level_graph)
        swh_2 = next(r for r in data["reqs"] if r["id"] == "REQ-TEST-SWH-2")

        assert swh_2["parent_ids"] == ["REQ-TEST-SYS-1", "REQ-TEST-SYS-2"]
        assert list(swh_2["attributes"]) == ["PARENTS", "RATIONALE"]
        assert swh_2["document"] == "certdocs/TEST-137-SRD.md"
        assert swh_2["repo"] == "projectA"
        assert swh_2["variant"] == "REQ"

    def test_code_record(self, three_level_graph):
        helper = export_graph(three_level_graph)["code"][-1]

        assert helper == {
            "repo": "projectA",
            "path": "test/parser_test.cc",
            "type": "tests",
            "tag": "helper",
            "symbol": "helper",
            "line": 5,
            "parent_ids": [],
            "parents": [],
            "optional": True,
            "document": "certdocs/TEST-138-SDD.md",
        }

    def test_json_serializable(self, three_level_graph, tmp_path):
        path = tmp_path / "graph.json"

        dump_graph(three_level_graph, path)

        assert json.loads(path.read_text()) == export_graph(three_level_graph)


class TestLoad:
    """Tests for rebuilding graphs from snapshots."""

    def test_links_restored(self, three_level_graph):
        graph = load_graph(export_graph(three_level_graph))

        assert graph.resolved
        assert sorted(graph.reqs) == sorted(three_level_graph.reqs)
        swh_2 = graph.find_by_id("REQ-TEST-SWH-2")
        assert [p.id for p in swh_2.parents] == ["REQ-TEST-SYS-1", "REQ-TEST-SYS-2"]
        assert [c.id for c in swh_2.children] == ["REQ-TEST-SWL-1", "REQ-TEST-SWL-2"]
        swl_1 = graph.find_by_id("REQ-TEST-SWL-1")
        assert [c.tag for c in swl_1.tags] == ["split_cells", "test_split_cells"]
        assert swl_1.document.req_spec.level == "SWL"
        assert swl_1.document.implementation.code_files == ["src/parser.cc"]

    def test_deleted_requirement(self, three_level_graph):
        graph = load_graph(export_graph(three_level_graph))

        assert graph.find_by_id("REQ-TEST-SYS-3").deleted

    def test_issues_restored(self, three_level_graph):
        data = export_graph(three_level_graph)
        data["issues"] = [
            {
                "repo": "projectA",
                "path": "src/parser.cc",
                "line": 4,
                "description": "Function split_cells has no parents.",
                "type": "missing_requirement_in_code",
                "severity": "major",
            }
        ]

        graph = load_graph(data)

        assert graph.issues[0].type is IssueType.MISSING_REQUIREMENT_IN_CODE
        assert str(graph.issues[0]) == "projectA:src/parser.cc:4: [major] Function split_cells has no parents."

    def test_unsupported_version(self):
        with pytest.raises(ValueError, match="Unsupported graph format version: 99"):
            load_graph({"version": 99})


class TestMerge:
    """Tests for combining snapshots of several repositories."""

    def test_identical_requirements_deduplicated(self, three_level_graph):
        data = export_graph(three_level_graph)

        merged = merge_graph_data(data, export_graph(three_level_graph))

        assert merged["reqs"] == data["reqs"]
        assert merged["code"] == data["code"]
        assert merged["documents"] == data["documents"]

    def test_conflicting_requirement(self, three_level_graph):
        data = export_graph(three_level_graph)
        other = export_graph(three_level_graph)
        other["reqs"][0]["title"] = "Something else"

        with pytest.raises(ValueError, match="different version of same requirement found: REQ-TEST-SWH-1"):
            merge_graph_data(data, other)

    def test_load_graphs(self, three_level_graph, tmp_path):
        data = export_graph(three_level_graph)
        sys_only = dict(data, reqs=[r for r in data["reqs"] if "-SYS-" in r["id"]], code=[])
        rest = dict(data, reqs=[r for r in data["reqs"] if "-SYS-" not in r["id"]])
        (tmp_path / "a.json").write_text(json.dumps(sys_only))
        (tmp_path / "b.json").write_text(json.dumps(rest))

        graph = load_graphs([tmp_path / "a.json", tmp_path / "b.json"])

        assert sorted(graph.reqs) == sorted(three_level_graph.reqs)
        assert [c.id for c in graph.find_by_id("REQ-TEST-SYS-1").children] == [
            "REQ-TEST-SWH-1",
            "REQ-TEST-SWH-2",
        ]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="failed to unmarshal"):
            load_graphs([path])
