"""
reqgraph.config.repos - Registry of the repositories taking part in a build.

A RepositorySet maps repository names to local checkout paths. It is passed
explicitly to the loader and the graph builder; there is no process-wide
registry.
"""

from __future__ import annotations

import os
import re
from pathlib import Path


class RepositoryError(ValueError):
    """Raised for unknown repositories or paths outside a repository."""


class RepositorySet:
    """Name -> path registry for local repositories."""

    def __init__(self, repos: dict[str, Path] | None = None) -> None:
        self._repos: dict[str, Path] = {}
        for name, path in (repos or {}).items():
            self.register(name, path)

    def register(self, name: str, path: Path | str) -> Path:
        """Register a repository.

        Re-registering a name with the same path is a no-op.

        Raises:
            RepositoryError: If the name is already bound to another path.
        """
        resolved = Path(path).resolve()
        existing = self._repos.get(name)
        if existing is not None and existing != resolved:
            raise RepositoryError(
                f"Repository `{name}` is already registered at `{existing}`, not `{resolved}`"
            )
        self._repos[name] = resolved
        return resolved

    def __contains__(self, name: object) -> bool:
        return name in self._repos

    def __len__(self) -> int:
        return len(self._repos)

    def names(self) -> list[str]:
        return sorted(self._repos)

    def path_of(self, name: str) -> Path:
        """Root path of a registered repository."""
        try:
            return self._repos[name]
        except KeyError:
            raise RepositoryError(f"Unknown repository `{name}`") from None

    def path_in_repo(self, name: str, relative: str) -> Path:
        """Absolute path of a file inside a repository.

        Raises:
            RepositoryError: If the path escapes the repository root.
        """
        root = self.path_of(name)
        full = (root / relative).resolve()
        if full != root and root not in full.parents:
            raise RepositoryError(f"Path `{relative}` is outside of repository `{name}`")
        return full

    def read_text(self, name: str, relative: str) -> str:
        return self.path_in_repo(name, relative).read_text(encoding="utf-8")

    def find_files(
        self,
        name: str,
        directory: str,
        pattern: re.Pattern[str] | None = None,
        ignored: list[re.Pattern[str]] | None = None,
    ) -> list[str]:
        """Walk a directory of a repository collecting matching files.

        Args:
            name: Repository name.
            directory: Directory relative to the repository root.
            pattern: Regex a relative file path must match (search semantics).
            ignored: Regexes excluding relative paths.

        Returns:
            Sorted repository-relative POSIX paths.
        """
        root = self.path_of(name)
        start = self.path_in_repo(name, directory)
        if not start.exists():
            raise RepositoryError(f"Path `{directory}` does not exist in repository `{name}`")
        if start.is_file():
            candidates = [start]
        else:
            candidates = []
            for dirpath, _dirnames, filenames in os.walk(start):
                for filename in filenames:
                    candidates.append(Path(dirpath) / filename)

        found = []
        for candidate in candidates:
            relative = candidate.relative_to(root).as_posix()
            if pattern is not None and not pattern.search(relative):
                continue
            if any(regex.search(relative) for regex in ignored or []):
                continue
            found.append(relative)
        return sorted(found)
