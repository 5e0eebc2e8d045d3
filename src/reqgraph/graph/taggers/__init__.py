"""Symbol taggers - locate functions in source files.

A tagger reports ``(symbol, path, line)`` records for the functions found in
a set of repository files. The graph builder depends only on the
SymbolTagger protocol; implementations are chosen by name through
get_tagger(), using the ``code_parser`` setting of a document.

Exports:
- TagRecord: One symbol location
- SymbolTagger: Protocol for tagger implementations
- TaggingError: Raised when a tagging run fails
- get_tagger / available_taggers: Name-based selection
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Protocol, runtime_checkable


class TaggingError(RuntimeError):
    """Raised when a tagging run fails or produces malformed records."""


@dataclass(frozen=True)
class TagRecord:
    """Location of a symbol.

    Attributes:
        symbol: Symbol name.
        path: Repository-relative POSIX path of the file.
        line: 1-based line number.
    """

    symbol: str
    path: str
    line: int


@runtime_checkable
class SymbolTagger(Protocol):
    """Protocol for symbol taggers."""

    def tag_files(self, root: Path, paths: list[str]) -> list[TagRecord]:
        """Find the symbols defined or declared in files of a repository.

        Args:
            root: Repository root directory.
            paths: Repository-relative paths of the files to tag.

        Returns:
            Tag records for symbols in the given files.

        Raises:
            TaggingError: If the run fails.
        """
        ...


def _ctags(**kwargs: Any) -> SymbolTagger:
    from reqgraph.graph.taggers.ctags import CtagsTagger

    return CtagsTagger(**kwargs)


def _regex(**kwargs: Any) -> SymbolTagger:
    from reqgraph.graph.taggers.regex import RegexTagger

    return RegexTagger(**kwargs)


_TAGGERS: dict[str, Callable[..., SymbolTagger]] = {
    "ctags": _ctags,
    "regex": _regex,
}


def available_taggers() -> list[str]:
    return sorted(_TAGGERS)


def get_tagger(name: str, **kwargs: Any) -> SymbolTagger:
    """Create the tagger registered under a name.

    Raises:
        TaggingError: If no tagger has that name.
    """
    factory = _TAGGERS.get(name)
    if factory is None:
        raise TaggingError(
            f"Code parser not found: `{name}`\n\tAvailable parsers: {available_taggers()}"
        )
    return factory(**kwargs)


__all__ = [
    "SymbolTagger",
    "TagRecord",
    "TaggingError",
    "available_taggers",
    "get_tagger",
]
