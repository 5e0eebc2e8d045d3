"""Graph Serialization - Export a ReqGraph to JSON and load it back.

Exported snapshots let a graph be compared with a later build (see
trace_view.diff) or combined with the snapshots of other repositories.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from reqgraph.config.models import Document, Implementation, ReqSpec
from reqgraph.graph.models import (
    Code,
    CodeFile,
    CodeType,
    Issue,
    IssueSeverity,
    IssueType,
    Req,
    ReqGraph,
    ReqVariant,
)

FORMAT_VERSION = 1


def serialize_document(repo_name: str, document: Document) -> dict[str, Any]:
    return {
        "repo": repo_name,
        "path": document.path,
        "prefix": document.req_spec.prefix,
        "level": document.req_spec.level,
        "code_files": list(document.implementation.code_files),
        "test_files": list(document.implementation.test_files),
    }


def serialize_req(req: Req) -> dict[str, Any]:
    """Serialize a requirement to a JSON-compatible dict."""
    return {
        "id": req.id,
        "variant": req.variant.value,
        "id_number": req.id_number,
        "title": req.title,
        "body": req.body,
        "parent_ids": list(req.parent_ids),
        "attributes": dict(sorted(req.attributes.items())),
        "position": req.position,
        "deleted": req.deleted,
        "repo": req.repo_name,
        "document": req.path,
    }


def serialize_code(code: Code) -> dict[str, Any]:
    return {
        "repo": code.repo_name,
        "path": code.path,
        "type": code.code_file.type.value,
        "tag": code.tag,
        "symbol": code.symbol,
        "line": code.line,
        "parent_ids": list(code.parent_ids),
        "parents": [p.id for p in code.parents],
        "optional": code.optional,
        "document": code.document.path if code.document is not None else "",
    }


def serialize_issue(issue: Issue) -> dict[str, Any]:
    return {
        "repo": issue.repo_name,
        "path": issue.path,
        "line": issue.line,
        "description": issue.description,
        "type": issue.type.value,
        "severity": issue.severity.value,
    }


def export_graph(graph: ReqGraph) -> dict[str, Any]:
    """Serialize a ReqGraph to a JSON-compatible dict.

    Args:
        graph: The graph to serialize.

    Returns:
        Dict with documents, requirements, code tags and issues, each in a
        deterministic order.
    """
    documents: dict[tuple[str, str], dict[str, Any]] = {}
    for req in graph.reqs.values():
        if req.document is not None:
            documents.setdefault((req.repo_name, req.path), serialize_document(req.repo_name, req.document))
    for code in graph.iter_code():
        if code.document is not None:
            documents.setdefault(
                (code.repo_name, code.document.path), serialize_document(code.repo_name, code.document)
            )

    return {
        "version": FORMAT_VERSION,
        "documents": [documents[key] for key in sorted(documents)],
        "reqs": [serialize_req(graph.reqs[req_id]) for req_id in sorted(graph.reqs)],
        "code": [serialize_code(code) for code in graph.iter_code()],
        "issues": [serialize_issue(issue) for issue in sorted(graph.issues, key=Issue.sort_key)],
    }


def dump_graph(graph: ReqGraph, path: Path) -> None:
    """Write a graph snapshot as JSON."""
    path.write_text(json.dumps(export_graph(graph), indent=2) + "\n", encoding="utf-8")


def merge_graph_data(target: dict[str, Any], other: dict[str, Any]) -> dict[str, Any]:
    """Merge one exported graph into another.

    Raises:
        ValueError: If both contain the same requirement with different content.
    """
    reqs = {r["id"]: r for r in target.get("reqs", [])}
    for req in other.get("reqs", []):
        existing = reqs.get(req["id"])
        if existing is not None and existing != req:
            raise ValueError(f"different version of same requirement found: {req['id']}")
        reqs[req["id"]] = req

    def union(key: str) -> list[dict[str, Any]]:
        merged = list(target.get(key, []))
        for item in other.get(key, []):
            if item not in merged:
                merged.append(item)
        return merged

    return {
        "version": FORMAT_VERSION,
        "documents": union("documents"),
        "reqs": [reqs[req_id] for req_id in sorted(reqs)],
        "code": union("code"),
        "issues": union("issues"),
    }


def load_graph(data: dict[str, Any]) -> ReqGraph:
    """Rebuild a resolved ReqGraph from exported data.

    Links between requirements, and between code and requirements, are
    restored; dangling references are dropped silently since they were
    reported when the snapshot was built.

    Raises:
        ValueError: If the data uses an unsupported format version.
    """
    version = data.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported graph format version: {version}")

    documents: dict[tuple[str, str], Document] = {}
    for raw in data.get("documents", []):
        documents[(raw["repo"], raw["path"])] = Document(
            path=raw["path"],
            req_spec=ReqSpec(raw["prefix"], raw["level"]),
            implementation=Implementation(
                code_files=list(raw.get("code_files", [])),
                test_files=list(raw.get("test_files", [])),
            ),
        )

    graph = ReqGraph()
    for raw in data.get("reqs", []):
        graph.reqs[raw["id"]] = Req(
            id=raw["id"],
            variant=ReqVariant(raw["variant"]),
            id_number=raw["id_number"],
            title=raw["title"],
            body=raw["body"],
            parent_ids=list(raw["parent_ids"]),
            attributes=dict(raw["attributes"]),
            position=raw["position"],
            deleted=raw.get("deleted", False),
            repo_name=raw["repo"],
            document=documents.get((raw["repo"], raw["document"])),
        )

    for raw in data.get("code", []):
        code_file = CodeFile(raw["repo"], raw["path"], CodeType(raw["type"]))
        code = Code(
            code_file=code_file,
            tag=raw["tag"],
            line=raw["line"],
            parent_ids=list(raw["parent_ids"]),
            optional=raw["optional"],
            symbol=raw.get("symbol", ""),
            document=documents.get((raw["repo"], raw["document"])),
        )
        graph.code_tags.setdefault(code_file, []).append(code)
        for parent_id in raw.get("parents", []):
            parent = graph.reqs.get(parent_id)
            if parent is not None:
                code.parents.append(parent)
                parent.tags.append(code)

    for raw in data.get("issues", []):
        graph.issues.append(
            Issue(
                repo_name=raw["repo"],
                path=raw["path"],
                line=raw["line"],
                description=raw["description"],
                type=IssueType(raw["type"]),
                severity=IssueSeverity(raw["severity"]),
            )
        )

    for req in graph.reqs.values():
        if req.deleted:
            continue
        for parent_id in req.parent_ids:
            parent = graph.reqs.get(parent_id)
            if parent is not None and parent not in req.parents:
                req.parents.append(parent)
                parent.children.append(req)

    for req in graph.reqs.values():
        req.parents.sort(key=lambda r: (r.position, r.id))
        req.children.sort(key=lambda r: (r.position, r.id))
        req.tags.sort(key=lambda c: (c.repo_name, c.path, c.line))

    graph.sort_issues()
    graph.resolved = True
    return graph


def load_graphs(paths: list[Path]) -> ReqGraph:
    """Load and merge previously exported graph snapshots.

    Raises:
        ValueError: If a file is not valid JSON or snapshots conflict.
    """
    merged: dict[str, Any] = {"version": FORMAT_VERSION}
    for path in paths:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"failed to unmarshal `{path}`: {e}") from e
        merged = merge_graph_data(merged, data)
    return load_graph(merged)
