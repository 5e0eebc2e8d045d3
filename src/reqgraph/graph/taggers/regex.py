"""RegexTagger - pure-Python symbol tagging by name heuristics.

Recognises function definitions and declarations line by line using a
pattern per language, chosen from the file suffix. It needs no external
tools, at the price of missing multi-line signatures.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

from reqgraph.graph.taggers import TaggingError, TagRecord

# Python: def name(
_PYTHON_FUNC = re.compile(r"^\s*(?:async\s+)?def\s+(\w+)\s*\(")

# JS/TS: function name(, export async function name(
_JS_FUNC = re.compile(r"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*(\w+)\s*\(")

# Go: func name(, func (receiver) name(
_GO_FUNC = re.compile(r"^func\s+(?:\([^)]+\)\s+)?(\w+)\s*[(\[]")

# Rust: pub? async? fn name( or fn name<
_RUST_FUNC = re.compile(r"^\s*(?:pub(?:\([^)]*\))?\s+)?(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+(\w+)\s*[(<]")

# C/C++/Java/C#: return_type name(
_C_FUNC = re.compile(
    r"^\s*(?:(?:static|public|private|protected|virtual|inline|extern|constexpr)\s+)*"
    r"[A-Za-z_][\w:*&<>, ]*[\s*&]+((?:\w+::)*~?\w+)\s*\("
)

# First words that make a C-like line a statement rather than a signature
_C_KEYWORDS = frozenset(
    {"return", "else", "if", "for", "while", "switch", "case", "do", "new", "delete", "throw", "sizeof"}
)

_LANG_MAP: dict[str, str] = {
    ".py": "python",
    ".pyw": "python",
    ".js": "js",
    ".jsx": "js",
    ".ts": "js",
    ".tsx": "js",
    ".mjs": "js",
    ".go": "go",
    ".rs": "rust",
    ".c": "c",
    ".h": "c",
    ".cc": "c",
    ".hh": "c",
    ".cpp": "c",
    ".hpp": "c",
    ".cxx": "c",
    ".java": "c",
    ".cs": "c",
}

_PATTERNS: dict[str, re.Pattern[str]] = {
    "python": _PYTHON_FUNC,
    "js": _JS_FUNC,
    "go": _GO_FUNC,
    "rust": _RUST_FUNC,
    "c": _C_FUNC,
}


def detect_language(path: str) -> str:
    """Language key for a file path, or "unknown"."""
    return _LANG_MAP.get(PurePosixPath(path).suffix.lower(), "unknown")


def find_symbols(source: str, language: str) -> list[tuple[str, int]]:
    """Find function symbols in source text.

    Args:
        source: File contents.
        language: Language key from detect_language().

    Returns:
        (symbol, 1-based line) pairs in line order.
    """
    pattern = _PATTERNS.get(language)
    if pattern is None:
        return []

    found = []
    for line_no, line in enumerate(source.split("\n"), start=1):
        match = pattern.match(line)
        if not match:
            continue
        if language == "c":
            stripped = line.strip()
            first_word = re.split(r"\W", stripped, maxsplit=1)[0]
            if first_word in _C_KEYWORDS or match.group(1) in _C_KEYWORDS:
                continue
            # Calls and assignments are not signatures
            if "=" in line[: match.start(1)]:
                continue
        found.append((match.group(1), line_no))
    return found


class RegexTagger:
    """SymbolTagger using per-language regular expressions."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def tag_files(self, root: Path, paths: list[str]) -> list[TagRecord]:
        records: list[TagRecord] = []
        for path in paths:
            language = detect_language(path)
            if language == "unknown":
                continue
            try:
                source = (root / path).read_text(encoding=self.encoding)
            except (OSError, UnicodeDecodeError) as e:
                raise TaggingError(f"failed to read `{path}`: {e}") from e
            for symbol, line_no in find_symbols(source, language):
                records.append(TagRecord(symbol=symbol, path=path, line=line_no))
        return records
