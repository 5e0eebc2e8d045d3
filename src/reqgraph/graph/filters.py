"""
reqgraph.graph.filters - Select requirements by regular expressions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from reqgraph.graph.models import Req


@dataclass
class ReqFilter:
    """Regex filters over requirement fields.

    Every filter that is set must match (search semantics) for a
    requirement to be selected.

    Attributes:
        id: Filter on the requirement ID.
        title: Filter on the title.
        body: Filter on the body text.
        any_attribute: At least one attribute value must match.
        attributes: Per-attribute filters, keyed by upper-cased name. A
            missing attribute is matched as an empty string.
    """

    id: re.Pattern[str] | None = None
    title: re.Pattern[str] | None = None
    body: re.Pattern[str] | None = None
    any_attribute: re.Pattern[str] | None = None
    attributes: dict[str, re.Pattern[str]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return (
            self.id is None
            and self.title is None
            and self.body is None
            and self.any_attribute is None
            and not self.attributes
        )

    def matches(self, req: Req) -> bool:
        if self.id is not None and not self.id.search(req.id):
            return False
        if self.title is not None and not self.title.search(req.title):
            return False
        if self.body is not None and not self.body.search(req.body):
            return False
        if self.any_attribute is not None:
            if not any(self.any_attribute.search(v) for v in req.attributes.values()):
                return False
        for name, pattern in self.attributes.items():
            if not pattern.search(req.attributes.get(name, "")):
                return False
        return True

    def apply(self, reqs: list[Req]) -> list[Req]:
        return [r for r in reqs if self.matches(r)]


def create_filter(expressions: list[str]) -> ReqFilter:
    """Build a filter from ``KEY=REGEX`` expressions.

    The keys ID, TITLE, BODY and ANY select the corresponding filter; any
    other key filters the attribute of that name.

    Raises:
        ValueError: For expressions without ``=`` or with an invalid regex.
    """
    req_filter = ReqFilter()
    for expression in expressions:
        key, sep, value = expression.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Invalid filter `{expression}`, expected KEY=REGEX")
        try:
            pattern = re.compile(value)
        except re.error as e:
            raise ValueError(f"Invalid regular expression in filter `{expression}`: {e}") from e

        key = key.strip().upper()
        if key == "ID":
            req_filter.id = pattern
        elif key == "TITLE":
            req_filter.title = pattern
        elif key == "BODY":
            req_filter.body = pattern
        elif key == "ANY":
            req_filter.any_attribute = pattern
        else:
            req_filter.attributes[key] = pattern
    return req_filter
