"""
reqgraph.config.loader - Load .reqgraph.toml configuration.

Reads the configuration of a repository and, recursively, of its parent and
children repositories, producing a Config of ready-made Document values.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from reqgraph.config.models import (
    MATCH_ANYTHING,
    Attribute,
    AttributeType,
    Config,
    Document,
    Implementation,
    LinkSpec,
    RepoConfig,
    ReqSpec,
    Schema,
)
from reqgraph.config.repos import RepositoryError, RepositorySet
from reqgraph.utilities.patterns import parent_regex, requirement_regex

CONFIG_FILENAME = ".reqgraph.toml"

_REQUIRED_VALUES = {
    "true": AttributeType.REQUIRED,
    "": AttributeType.REQUIRED,
    "any": AttributeType.ANY,
    "false": AttributeType.OPTIONAL,
}


class ConfigError(ValueError):
    """Raised for unreadable or inconsistent configuration."""


def find_config_file(start: Path) -> Path | None:
    """Find the configuration file by walking up from a directory.

    Args:
        start: Directory to start searching from.

    Returns:
        Path to .reqgraph.toml, or None if no ancestor has one.
    """
    current = start.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse a configuration file into plain Python values."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Error opening configuration file: {path}") from e
    try:
        return tomlkit.parse(content).unwrap()
    except TOMLKitError as e:
        raise ConfigError(f"Error while parsing configuration file `{path}`: {e}") from e


def _compile(pattern: str, what: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Unable to parse `{pattern}` as a regular expression for {what}: {e}") from e


def parse_attribute(raw: dict[str, Any]) -> tuple[str, Attribute]:
    """Parse one attribute rule.

    Args:
        raw: Mapping with optional keys name, required and value.

    Returns:
        (upper-cased name, Attribute).
    """
    required = str(raw.get("required", "")).lower()
    if required not in _REQUIRED_VALUES:
        raise ConfigError(f"Unable to parse attribute `required` field: `{raw.get('required')}`")
    value = raw.get("value") or MATCH_ANYTHING
    name = str(raw.get("name", "")).upper()
    return name, Attribute(_REQUIRED_VALUES[required], _compile(value, f"attribute `{name}`"))


def parse_link_spec(raw: dict[str, Any], child_prefix: str, child_level: str) -> LinkSpec:
    """Parse a parent declaration of a document into a LinkSpec."""
    child_key, child_attr = parse_attribute(raw.get("child_attribute", {}))
    parent_key, parent_attr = parse_attribute(raw.get("parent_attribute", {}))
    child = ReqSpec(child_prefix, child_level, child_key, child_attr.value)
    parent = ReqSpec(
        str(raw.get("prefix", "")), str(raw.get("level", "")), parent_key, parent_attr.value
    )
    return LinkSpec(child=child, parent=parent)


class ConfigLoader:
    """Builds a Config by following repository links.

    Each repository is processed at most once; the visited set also breaks
    parent/child cycles.
    """

    def __init__(
        self,
        repositories: RepositorySet | None = None,
        direct_dependencies_only: bool = False,
    ) -> None:
        self.repositories = repositories if repositories is not None else RepositorySet()
        self.direct_dependencies_only = direct_dependencies_only
        self._visited: set[str] = set()
        self._common_attributes: dict[str, Attribute] = {}

    def load(self, repo_path: Path) -> Config:
        """Load the configuration rooted at a repository path."""
        config = Config(repositories=self.repositories)
        data = read_config_file(Path(repo_path) / CONFIG_FILENAME)
        config.target_repo = self._repo_name(data, repo_path)
        self._load_repo(config, data, Path(repo_path))

        for _, document in config.iter_documents():
            self._append_common_attributes(document)
        return config

    @staticmethod
    def _repo_name(data: dict[str, Any], repo_path: Path) -> str:
        name = data.get("repository", {}).get("name", "")
        if not name:
            raise ConfigError(f"Configuration in `{repo_path}` does not declare repository.name")
        return str(name)

    def _load_repo(self, config: Config, data: dict[str, Any], repo_path: Path) -> None:
        repo_name = self._repo_name(data, repo_path)
        if repo_name in self._visited:
            return
        self._visited.add(repo_name)
        try:
            self.repositories.register(repo_name, repo_path)
        except RepositoryError as e:
            raise ConfigError(str(e)) from e

        for raw in data.get("common_attributes", []):
            name, attribute = parse_attribute(raw)
            if name in self._common_attributes:
                raise ConfigError(
                    f"Common attribute with name `{name}` found in config for repo "
                    f"`{repo_name}` is already defined elsewhere"
                )
            self._common_attributes[name] = attribute

        repo_config = RepoConfig()
        for raw_doc in data.get("documents", []):
            repo_config.documents.append(self._parse_document(repo_name, raw_doc))
        config.repos[repo_name] = repo_config

        repository = data.get("repository", {})
        if not self.direct_dependencies_only:
            for child in repository.get("children", []):
                self._follow(config, repo_name, repo_path, child, "child")

        parent = repository.get("parent")
        if parent:
            self._follow(config, repo_name, repo_path, parent, "parent")

    def _follow(
        self,
        config: Config,
        repo_name: str,
        repo_path: Path,
        link: dict[str, Any],
        relation: str,
    ) -> None:
        name = str(link.get("name", ""))
        path = link.get("path", "")
        if not name or not path:
            raise ConfigError(f"Repo `{repo_name}` declares a {relation} repository without name or path")
        linked_path = (repo_path / path).resolve()
        linked_data = read_config_file(linked_path / CONFIG_FILENAME)
        found = self._repo_name(linked_data, linked_path)
        if found != name:
            raise ConfigError(
                f"Repo `{repo_name}` defines {relation} repository with name `{name}`, "
                f"but `{found}` was found in `{linked_path}`"
            )
        self._load_repo(config, linked_data, linked_path)

    def _parse_document(self, repo_name: str, raw: dict[str, Any]) -> Document:
        path = str(raw.get("path", ""))
        try:
            full_path = self.repositories.path_in_repo(repo_name, path)
        except RepositoryError as e:
            raise ConfigError(str(e)) from e
        if not path or not full_path.is_file():
            raise ConfigError(f"Document with path `{path}` in repo `{repo_name}` cannot be read")

        prefix = str(raw.get("prefix", ""))
        level = str(raw.get("level", ""))
        schema = Schema(requirements=requirement_regex(prefix, level))

        for raw_attr in raw.get("attributes", []):
            name, attribute = parse_attribute(raw_attr)
            if name == "PARENTS":
                raise ConfigError(
                    "Invalid attribute Parents specified in configuration. The parents "
                    "attribute is implicit from the parent declaration in the document"
                )
            schema.attributes[name] = attribute

        parents = raw.get("parents", [])
        if isinstance(parents, dict):
            parents = [parents]
        link_specs = [parse_link_spec(p, prefix, level) for p in parents]
        if link_specs:
            schema.attributes["PARENTS"] = Attribute(AttributeType.ANY, re.compile(MATCH_ANYTHING))

        for raw_attr in raw.get("asm_attributes", []):
            name, attribute = parse_attribute(raw_attr)
            if name == "PARENTS":
                raise ConfigError(
                    "Invalid attribute Parents specified in configuration for assumptions. The "
                    "parents attribute for assumptions is implicit and refers to requirements "
                    "in the same document"
                )
            schema.asm_attributes[name] = attribute
        schema.asm_attributes["PARENTS"] = Attribute(
            AttributeType.REQUIRED, parent_regex(prefix, level)
        )

        raw_impl = raw.get("implementation", {})
        implementation = Implementation(
            code_files=self._find_files(repo_name, raw_impl.get("code", {})),
            test_files=self._find_files(repo_name, raw_impl.get("tests", {})),
            code_parser=raw_impl.get("code_parser") or "ctags",
        )

        return Document(
            path=path,
            req_spec=ReqSpec(prefix, level),
            schema=schema,
            link_specs=link_specs,
            implementation=implementation,
        )

    def _find_files(self, repo_name: str, query: dict[str, Any]) -> list[str]:
        pattern = None
        if query.get("matching_pattern"):
            pattern = _compile(query["matching_pattern"], "matching_pattern")
        ignored = [_compile(p, "ignored_patterns") for p in query.get("ignored_patterns", [])]

        files: list[str] = []
        for directory in query.get("paths", []):
            try:
                files.extend(self.repositories.find_files(repo_name, directory, pattern, ignored))
            except RepositoryError as e:
                raise ConfigError(str(e)) from e
        return files

    def _append_common_attributes(self, document: Document) -> None:
        if document.schema is None:
            raise ConfigError(f"Document with path `{document.path}` has no schema")
        for name, attribute in self._common_attributes.items():
            if name in document.schema.attributes:
                raise ConfigError(
                    f"Document with path `{document.path}` redefines attribute with name "
                    f"`{name}`, but it is listed as a common attribute"
                )
            document.schema.attributes[name] = attribute


def load_config(
    repo_path: Path,
    repositories: RepositorySet | None = None,
    direct_dependencies_only: bool = False,
) -> Config:
    """Load the configuration of a repository and its linked repositories.

    Args:
        repo_path: Root of the repository holding .reqgraph.toml.
        repositories: Registry to record repositories in (a new one if None).
        direct_dependencies_only: Do not traverse children repositories.

    Returns:
        Config with every visited repository's documents.

    Raises:
        ConfigError: If any configuration file is missing or inconsistent.
    """
    loader = ConfigLoader(repositories, direct_dependencies_only)
    return loader.load(Path(repo_path))
