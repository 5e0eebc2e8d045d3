"""CtagsTagger - symbol tagging through Universal Ctags.

Runs ``ctags`` as a subprocess with a timeout and parses its tab-separated
output. The executable can be overridden with the REQGRAPH_CTAGS
environment variable.
"""

from __future__ import annotations

import os
import subprocess
from pathlib import Path, PurePosixPath

from reqgraph.graph.taggers import TaggingError, TagRecord

INSTALL_HINT = (
    "Make sure to install Universal ctags (NOT Exuberant ctags) as described in "
    "https://github.com/universal-ctags/ctags#the-latest-build-and-package"
)

# Languages handed to ctags, with the suffixes of the files it reports on
SOURCE_EXTENSIONS: dict[str, tuple[str, ...]] = {
    "C": (".c", ".h"),
    "C++": (".cc", ".hh", ".cpp", ".hpp", ".cxx"),
    "Go": (".go",),
}


def is_source_file(path: str) -> bool:
    suffix = PurePosixPath(path).suffix.lower()
    return any(suffix in extensions for extensions in SOURCE_EXTENSIONS.values())


def parse_ctags_line(line: str) -> TagRecord | None:
    """Parse one line of ``ctags -f - --fields=n`` output.

    Args:
        line: A tab-separated ctags record.

    Returns:
        TagRecord, or None for lines that do not describe a usable symbol
        (too few fields, anonymous symbols, non-source files).

    Raises:
        TaggingError: If the line-number field is malformed.
    """
    parts = line.rstrip("\n").split("\t")
    if len(parts) < 4:
        return None
    symbol = parts[0]
    if symbol.startswith("__anon"):
        return None
    path = PurePosixPath(parts[1].replace(os.sep, "/")).as_posix()
    if not is_source_file(path):
        return None
    if not parts[3].startswith("line:"):
        raise TaggingError(f"line number unknown prefix: {parts}")
    try:
        line_no = int(parts[3][len("line:") :])
    except ValueError:
        raise TaggingError(f"failed to parse line number: {parts}") from None
    return TagRecord(symbol=symbol, path=path, line=line_no)


def parse_ctags_output(output: str) -> list[TagRecord]:
    """Parse complete ctags output into tag records."""
    records = []
    for line in output.splitlines():
        record = parse_ctags_line(line)
        if record is not None:
            records.append(record)
    return records


class CtagsTagger:
    """SymbolTagger backed by Universal Ctags."""

    DEFAULT_TIMEOUT = 60  # seconds

    def __init__(self, executable: str | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.executable = executable or os.environ.get("REQGRAPH_CTAGS", "ctags")
        self.timeout = timeout

    def _run(self, args: list[str], cwd: Path | None = None, stdin: str | None = None) -> str:
        try:
            result = subprocess.run(
                [self.executable, *args],
                input=stdin,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise TaggingError(f"ctags timed out after {self.timeout}s") from None
        except FileNotFoundError:
            raise TaggingError(f"universal-ctags not available. {INSTALL_HINT}") from None

        if result.returncode != 0:
            error_msg = result.stderr.strip() or f"Exit code: {result.returncode}"
            raise TaggingError(f"failed to run ctags to find methods in the source code: {error_msg}")
        return result.stdout

    def check_available(self) -> None:
        """Make sure the executable is Universal Ctags.

        Raises:
            TaggingError: If ctags is missing or is another ctags flavour.
        """
        output = self._run(["--version"])
        if "Universal Ctags" not in output:
            raise TaggingError(f"`ctags` tool is not universal-ctags. {INSTALL_HINT}")

    def tag_files(self, root: Path, paths: list[str]) -> list[TagRecord]:
        if not paths:
            return []
        self.check_available()
        output = self._run(
            [
                "--languages=" + ",".join(SOURCE_EXTENSIONS),
                "--kinds-C=fp",
                "--kinds-C++=fp",
                "--kinds-Go=f",
                "--fields=n",
                "-f",
                "-",
                "-L",
                "-",
            ],
            cwd=root,
            stdin="\n".join(paths) + "\n",
        )
        wanted = set(paths)
        return [record for record in parse_ctags_output(output) if record.path in wanted]
