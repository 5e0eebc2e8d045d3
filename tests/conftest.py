"""Pytest fixtures shared by all reqgraph tests."""

import pytest

from reqgraph.config.models import Attribute, Document, Implementation, LinkSpec, ReqSpec
from reqgraph.graph.builder import GraphBuilder
from reqgraph.graph.taggers import TagRecord

SYS_DOC = """\
# System Requirements

## Requirements

### REQ-TEST-SYS-1 Parse documents

The system shall parse requirement documents.

### REQ-TEST-SYS-2 Report issues

The system shall report every issue in one pass.

### REQ-TEST-SYS-3 DELETED

## Appendix
"""

SWH_DOC = """\
# High Level Requirements

## Requirements

### REQ-TEST-SWH-1 Heading parser

The parser shall read heading style requirements.

#### Attributes:
- Parents: REQ-TEST-SYS-1
- Rationale: Headings are the common notation.

### REQ-TEST-SWH-2 Table parser

The parser shall read table style requirements.

#### Attributes:
- Parents: REQ-TEST-SYS-1, REQ-TEST-SYS-2
- Rationale: Tables are compact.
"""

SWL_DOC = """\
# Low Level Requirements

| ID | Title | Body | Parents |
| --- | --- | --- | --- |
| REQ-TEST-SWL-1 | Split cells | The parser shall split table rows on pipes. | REQ-TEST-SWH-2 |
| REQ-TEST-SWL-2 | Trim cells | The parser shall trim cell text. | REQ-TEST-SWH-2 |
"""

SWL_SOURCE = """\
#include "parser.h"

// @llr REQ-TEST-SWL-1
int split_cells(const char *line) {
    return 0;
}

// Trims whitespace.
// @llr REQ-TEST-SWL-2
int trim_cells(char *cell) {
    return 0;
}
"""

SWL_TEST_SOURCE = """\
// @llr REQ-TEST-SWL-1
void test_split_cells() {
}

void helper() {
}
"""


@pytest.fixture
def sys_document():
    return Document(path="certdocs/TEST-100-ORD.md", req_spec=ReqSpec("TEST", "SYS"))


@pytest.fixture
def swh_document():
    document = Document(
        path="certdocs/TEST-137-SRD.md",
        req_spec=ReqSpec("TEST", "SWH"),
        link_specs=[LinkSpec(child=ReqSpec("TEST", "SWH"), parent=ReqSpec("TEST", "SYS"))],
    )
    document.schema.attributes["RATIONALE"] = Attribute()
    return document


@pytest.fixture
def swl_document():
    return Document(
        path="certdocs/TEST-138-SDD.md",
        req_spec=ReqSpec("TEST", "SWL"),
        link_specs=[LinkSpec(child=ReqSpec("TEST", "SWL"), parent=ReqSpec("TEST", "SWH"))],
        implementation=Implementation(
            code_files=["src/parser.cc"],
            test_files=["test/parser_test.cc"],
        ),
    )


@pytest.fixture
def swl_tag_records():
    """Tag records as a symbol tagger would report them for the SWL sources."""
    return [
        TagRecord("split_cells", "src/parser.cc", 4),
        TagRecord("trim_cells", "src/parser.cc", 10),
        TagRecord("test_split_cells", "test/parser_test.cc", 2),
        TagRecord("helper", "test/parser_test.cc", 5),
    ]


@pytest.fixture
def swl_sources():
    return {"src/parser.cc": SWL_SOURCE, "test/parser_test.cc": SWL_TEST_SOURCE}


@pytest.fixture
def three_level_builder(sys_document, swh_document, swl_document, swl_tag_records, swl_sources):
    """Builder holding the SYS, SWH and SWL documents plus SWL code, unresolved."""
    builder = GraphBuilder()
    builder.add_document("projectA", sys_document, SYS_DOC)
    builder.add_document("projectA", swh_document, SWH_DOC)
    builder.add_document("projectA", swl_document, SWL_DOC)
    builder.add_code("projectA", swl_document, records=swl_tag_records, sources=swl_sources)
    return builder


@pytest.fixture
def three_level_graph(three_level_builder):
    """Resolved graph of the three-level project."""
    return three_level_builder.build()


@pytest.fixture
def document_texts():
    """Raw text of the SYS, SWH and SWL documents, keyed by level."""
    return {"SYS": SYS_DOC, "SWH": SWH_DOC, "SWL": SWL_DOC}


PROJECT_CONFIG = """\
[repository]
name = "projectA"

[[documents]]
path = "docs/TEST-100-ORD.md"
prefix = "TEST"
level = "SYS"

[[documents]]
path = "docs/TEST-138-SDD.md"
prefix = "TEST"
level = "SWL"

[documents.parents]
prefix = "TEST"
level = "SYS"

[documents.implementation]
code_parser = "regex"

[documents.implementation.code]
paths = ["src"]
matching_pattern = "\\\\.py$"

[documents.implementation.tests]
paths = ["tests"]
"""

PROJECT_SYS_DOC = """\
# System Requirements

## REQ-TEST-SYS-1 Parse documents

The system shall parse requirement documents.

## REQ-TEST-SYS-2 Report issues

The system shall report issues.
"""

PROJECT_SWL_DOC = """\
# Low Level Requirements

## REQ-TEST-SWL-1 Split cells

The parser shall split table rows on pipes.

### Attributes:
- Parents: REQ-TEST-SYS-1

## REQ-TEST-SWL-2 Trim cells

The parser shall trim cell text.

### Attributes:
- Parents: REQ-TEST-SYS-1
"""

PROJECT_SOURCE = """\
# @llr REQ-TEST-SWL-1
def split_cells(line):
    return line.split("|")


# @llr REQ-TEST-SWL-2
def trim_cells(cells):
    return [c.strip() for c in cells]
"""

PROJECT_TEST_SOURCE = """\
# @llr REQ-TEST-SWL-1
def test_split_cells():
    assert split_cells("a|b") == ["a", "b"]
"""


def write_files(root, files):
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def project_dir(tmp_path):
    """On-disk repository with a configuration, two documents and Python code."""
    return write_files(
        tmp_path / "projectA",
        {
            ".reqgraph.toml": PROJECT_CONFIG,
            "docs/TEST-100-ORD.md": PROJECT_SYS_DOC,
            "docs/TEST-138-SDD.md": PROJECT_SWL_DOC,
            "src/lib.py": PROJECT_SOURCE,
            "tests/test_lib.py": PROJECT_TEST_SOURCE,
        },
    )


@pytest.fixture
def files_writer():
    """Expose write_files to tests that build their own repositories."""
    return write_files
