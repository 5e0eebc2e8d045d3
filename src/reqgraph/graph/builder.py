"""
reqgraph.graph.builder - Assemble a ReqGraph from documents and code.

Parsing a document or tagging a document's code touches no shared state, so
it may run in worker threads. Merging into the graph is done by the builder
alone, after the parse tasks have finished.

Usage:
    builder = GraphBuilder(config.repositories)
    builder.build_from_config(config)
    graph = builder.build()
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from reqgraph.config.models import Config, Document
from reqgraph.config.repos import RepositoryError, RepositorySet
from reqgraph.graph.linter import lint_document, lint_flows
from reqgraph.graph.models import Code, CodeFile, CodeType, Flow, Issue, IssueType, Req, ReqGraph
from reqgraph.graph.parsers import ParseError, RequirementParser, parse_code_annotations
from reqgraph.graph.resolver import ResolveOptions, resolve_graph
from reqgraph.graph.taggers import SymbolTagger, TaggingError, TagRecord, get_tagger


@dataclass
class DocumentContent:
    """Everything parsed for one document, ready to be merged.

    Attributes:
        repo_name: Repository holding the document.
        document: The document description.
        reqs: Requirements in document order.
        flows: Flow tags of the document's flow tables.
        code_tags: Tagged symbols of the document's implementation.
    """

    repo_name: str
    document: Document
    reqs: list[Req] = field(default_factory=list)
    flows: list[Flow] = field(default_factory=list)
    code_tags: dict[CodeFile, list[Code]] = field(default_factory=dict)


class GraphBuilder:
    """Builder for constructing a ReqGraph.

    Args:
        repositories: Registry used to locate documents and source files.
        jobs: Number of worker threads for parsing (1 parses inline).
        tagger_factory: Creates a SymbolTagger from a code parser name.
    """

    def __init__(
        self,
        repositories: RepositorySet | None = None,
        jobs: int = 1,
        tagger_factory: Callable[..., SymbolTagger] = get_tagger,
    ) -> None:
        self.repositories = repositories if repositories is not None else RepositorySet()
        self.jobs = max(1, jobs)
        self.tagger_factory = tagger_factory
        self.graph = ReqGraph()

    # Parsing (no shared state)

    def _read(self, repo_name: str, path: str) -> str:
        try:
            return self.repositories.read_text(repo_name, path)
        except (OSError, RepositoryError) as e:
            raise ParseError(f"Error reading `{path}` in repo `{repo_name}`: {e}") from e

    def parse_records(
        self, repo_name: str, document: Document, text: str | None = None
    ) -> tuple[list[Req], list[Flow]]:
        """Parse the requirements and flow tags of a document.

        Args:
            repo_name: Repository holding the document.
            document: Document description.
            text: Document text; read from the repository when None.

        Raises:
            ParseError: If the document cannot be read or parsed.
        """
        if text is None:
            text = self._read(repo_name, document.path)
        parser = RequirementParser()
        try:
            reqs = parser.parse(text)
        except ParseError as e:
            raise ParseError(f"Error parsing `{document.path}` in repo `{repo_name}`: {e}") from e
        for req in reqs:
            req.repo_name = repo_name
            req.document = document
        for flow in parser.flows:
            flow.repo_name = repo_name
            flow.document = document
        return reqs, parser.flows

    def parse_document(self, repo_name: str, document: Document, text: str | None = None) -> list[Req]:
        """Parse the requirements of a document."""
        reqs, _ = self.parse_records(repo_name, document, text)
        return reqs

    def make_code(
        self,
        repo_name: str,
        document: Document,
        records: list[TagRecord],
        sources: dict[str, str] | None = None,
    ) -> dict[CodeFile, list[Code]]:
        """Turn tag records into Code values and read their @llr comments.

        Args:
            repo_name: Repository holding the files.
            document: Document the files implement.
            records: Symbol locations reported by a tagger.
            sources: File contents by path; read from the repository if absent.

        Returns:
            Code values grouped by file, each list sorted by line.
        """
        code_files: dict[str, CodeFile] = {}
        for path in document.implementation.code_files:
            code_files[path] = CodeFile(repo_name, path, CodeType.IMPLEMENTATION)
        for path in document.implementation.test_files:
            code_files[path] = CodeFile(repo_name, path, CodeType.TESTS)

        grouped: dict[CodeFile, list[Code]] = {}
        for record in records:
            code_file = code_files.get(record.path)
            if code_file is None:
                continue
            grouped.setdefault(code_file, []).append(
                Code(code_file=code_file, tag=record.symbol, line=record.line, document=document)
            )

        result = {}
        for code_file, codes in grouped.items():
            if sources is not None and code_file.path in sources:
                source = sources[code_file.path]
            else:
                source = self._read(repo_name, code_file.path)
            result[code_file] = parse_code_annotations(
                codes, source, is_test_file=code_file.type is CodeType.TESTS
            )
        return result

    def tag_code(
        self, repo_name: str, document: Document, tagger: SymbolTagger | None = None
    ) -> dict[CodeFile, list[Code]]:
        """Tag the implementation and test files of a document.

        Raises:
            TaggingError: If the tagger fails.
        """
        implementation = document.implementation
        paths = implementation.code_files + implementation.test_files
        if not paths:
            return {}
        if tagger is None:
            tagger = self.tagger_factory(implementation.code_parser)
        root = self.repositories.path_of(repo_name)
        try:
            records = tagger.tag_files(root, paths)
        except TaggingError as e:
            raise TaggingError(
                f"failed to tag code of `{document.path}` in repo `{repo_name}`: {e}"
            ) from e
        return self.make_code(repo_name, document, records)

    def parse_all(self, repo_name: str, document: Document, scan_code: bool = True) -> DocumentContent:
        reqs, flows = self.parse_records(repo_name, document)
        content = DocumentContent(repo_name, document, reqs, flows)
        if scan_code:
            content.code_tags = self.tag_code(repo_name, document)
        return content

    # Merging (builder is the only writer)

    def merge_flows(self, repo_name: str, document: Document, flows: list[Flow]) -> None:
        """Lint a document's flow tags and add the accepted ones."""
        result = lint_flows(flows, document, repo_name, known=self.graph.flow_tags)
        self.graph.issues.extend(result.issues)
        for flow in result.accepted:
            self.graph.flow_tags[flow.id] = flow

    def merge_document(
        self, repo_name: str, document: Document, reqs: list[Req], flows: list[Flow] | None = None
    ) -> None:
        """Lint a document's requirements and flow tags and add the accepted ones."""
        if flows:
            self.merge_flows(repo_name, document, flows)

        result = lint_document(reqs, document, repo_name)
        self.graph.issues.extend(result.issues)

        for req in result.accepted:
            existing = self.graph.reqs.get(req.id)
            if existing is not None:
                self.graph.issues.append(
                    Issue(
                        repo_name=repo_name,
                        path=document.path,
                        line=req.position,
                        description=(
                            f"Requirement {req.id} in document `{document.path}` is already "
                            f"defined in document `{existing.path}` of repo `{existing.repo_name}`."
                        ),
                        type=IssueType.INVALID_REQUIREMENT_ID,
                    )
                )
                continue
            self.graph.reqs[req.id] = req

    def merge_code(self, code_tags: dict[CodeFile, list[Code]]) -> None:
        """Add tagged symbols, skipping ones already present."""
        for code_file, codes in code_tags.items():
            known = self.graph.code_tags.setdefault(code_file, [])
            seen = {(c.tag, c.line) for c in known}
            for code in codes:
                if (code.tag, code.line) not in seen:
                    known.append(code)
                    seen.add((code.tag, code.line))

    def merge(self, content: DocumentContent) -> None:
        self.merge_document(content.repo_name, content.document, content.reqs, content.flows)
        self.merge_code(content.code_tags)

    def add_document(self, repo_name: str, document: Document, text: str | None = None) -> None:
        """Parse, lint and merge one document."""
        reqs, flows = self.parse_records(repo_name, document, text)
        self.merge_document(repo_name, document, reqs, flows)

    def add_code(
        self,
        repo_name: str,
        document: Document,
        records: list[TagRecord] | None = None,
        sources: dict[str, str] | None = None,
    ) -> None:
        """Add the code of a document, from tag records or by running its tagger."""
        if records is None:
            self.merge_code(self.tag_code(repo_name, document))
        else:
            self.merge_code(self.make_code(repo_name, document, records, sources))

    def build_from_config(
        self,
        config: Config,
        scan_code: bool = True,
        progress: Callable[[str, Document], Any] | None = None,
    ) -> GraphBuilder:
        """Parse and merge every document of a configuration.

        Args:
            config: Loaded configuration.
            scan_code: Also tag implementation and test files.
            progress: Called with (repo_name, document) before each document
                is parsed.
        """
        work = list(config.iter_documents())

        def task(item: tuple[str, Document]) -> DocumentContent:
            repo_name, document = item
            if progress is not None:
                progress(repo_name, document)
            return self.parse_all(repo_name, document, scan_code)

        if self.jobs > 1 and len(work) > 1:
            with ThreadPoolExecutor(max_workers=self.jobs) as pool:
                contents = list(pool.map(task, work))
        else:
            contents = [task(item) for item in work]

        for content in contents:
            self.merge(content)
        return self

    def build(self, resolve: bool = True, options: ResolveOptions | None = None) -> ReqGraph:
        """Finish the graph.

        Args:
            resolve: Run the resolver over the merged graph.
            options: Optional resolver checks.

        Returns:
            The ReqGraph, with issues sorted.
        """
        if resolve and not self.graph.resolved:
            resolve_graph(self.graph, options)
        self.graph.sort_issues()
        return self.graph


def build_graph(
    config: Config,
    jobs: int = 1,
    scan_code: bool = True,
    options: ResolveOptions | None = None,
) -> ReqGraph:
    """Build and resolve the graph of a configuration.

    This is the standard way for commands to obtain a ReqGraph.
    """
    builder = GraphBuilder(config.repositories, jobs=jobs)
    builder.build_from_config(config, scan_code=scan_code)
    return builder.build(options=options)
