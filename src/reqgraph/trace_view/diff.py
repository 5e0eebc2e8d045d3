"""Change reports between two builds of a requirement graph.

Used to review what happened to requirements since an earlier snapshot
(see ``reqgraph diff``).
"""

from __future__ import annotations

from reqgraph.graph.models import Req, ReqGraph

PARENTS_KEY = "PARENTS"


def only_letters(text: str) -> str:
    """Reduce text to its lower-cased letters, for whitespace and punctuation insensitive compares."""
    return "".join(ch for ch in text if ch.isalpha()).lower()


def _level(req: Req) -> str:
    return req.document.req_spec.level if req.document is not None else ""


def req_changes(current: Req | None, previous: Req | None) -> list[str]:
    """Describe how a requirement changed since a previous version.

    Args:
        current: The requirement now, or None if it no longer exists.
        previous: The requirement before, or None if it is new.

    Returns:
        Ordered change messages; empty when nothing relevant changed.
    """
    if current is None and previous is None:
        return []
    if current is None:
        return ["MISSING"]
    if previous is None:
        return ["ADDED"]

    if current.deleted or previous.deleted:
        if current.deleted and previous.deleted:
            return []
        return ["DELETED"] if current.deleted else ["UNDELETED"]

    changes: list[str] = []
    if current.id != previous.id:
        changes.append(f'ID from "{previous.id}" to "{current.id}" (should not happen!)')
    if _level(current) != _level(previous):
        changes.append(f'Level from "{_level(previous)}" to "{_level(current)}" (should not happen!)')

    if only_letters(current.title) != only_letters(previous.title):
        changes.append(f'Changed from "{previous.title}" to "{current.title}"')
    elif only_letters(current.body) != only_letters(previous.body):
        # Body text is only looked at when the title is unchanged
        changes.append("Body changed")

    if current.repo_name != previous.repo_name or current.path != previous.path:
        changes.append(
            f'File in which found changed from ("{previous.repo_name}" - "{previous.path}") '
            f'to ("{current.repo_name}" - "{current.path}")'
        )

    for key in sorted(set(current.attributes) | set(previous.attributes)):
        if key == PARENTS_KEY:
            continue
        if key not in previous.attributes:
            changes.append(f'Added "{key}": "{current.attributes[key]}"')
        elif key not in current.attributes:
            changes.append(f'Removed "{key}"')
        elif only_letters(current.attributes[key]) != only_letters(previous.attributes[key]):
            changes.append(
                f'Changed "{key}" from "{previous.attributes[key]}" to "{current.attributes[key]}"'
            )

    now = set(current.parent_ids)
    before = set(previous.parent_ids)
    for parent_id in previous.parent_ids:
        if parent_id not in now:
            changes.append(f'Removed parent "{parent_id}"')
    for parent_id in current.parent_ids:
        if parent_id not in before:
            changes.append(f'Added parent "{parent_id}"')

    return changes


def changed_since(current: ReqGraph, previous: ReqGraph | None) -> dict[str, list[str]] | None:
    """Report how the requirements of a graph changed since a previous graph.

    Args:
        current: The graph as built now.
        previous: The earlier graph; None means there is nothing to compare.

    Returns:
        Change messages keyed by requirement ID (in ID order), or None when
        no requirement changed.
    """
    if previous is None:
        return None

    diffs: dict[str, list[str]] = {}
    for req_id in sorted(set(current.reqs) | set(previous.reqs)):
        changes = req_changes(current.reqs.get(req_id), previous.reqs.get(req_id))
        if changes:
            diffs[req_id] = changes
    return diffs or None
