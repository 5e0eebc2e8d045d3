"""Tests for the Universal Ctags tagger."""

import subprocess
from pathlib import Path

import pytest

from reqgraph.graph.taggers import TaggingError, TagRecord
from reqgraph.graph.taggers.ctags import CtagsTagger, parse_ctags_line, parse_ctags_output

CTAGS_OUTPUT = (
    'split_cells\tsrc/parser.cc\t/^int split_cells(const char *line) {$/;"\tline:4\n'
    'trim_cells\tsrc/parser.cc\t/^int trim_cells(char *cell) {$/;"\tline:10\n'
    '__anon1234\tsrc/parser.cc\t/^struct {$/;"\tline:20\n'
    'notes\tREADME.md\t/^notes$/;"\tline:1\n'
)


class FakeRun:
    """Stands in for subprocess.run, recording every call."""

    def __init__(self, stdout="", returncode=0, version="Universal Ctags 6.0.0"):
        self.stdout = stdout
        self.returncode = returncode
        self.version = version
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append((cmd, kwargs))
        if "--version" in cmd:
            return subprocess.CompletedProcess(cmd, 0, stdout=self.version, stderr="")
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr="boom")


class TestParseCtagsLine:
    """Tests for parsing ctags records."""

    def test_valid_line(self):
        record = parse_ctags_line('compute\tsrc/a.c\t/^int compute(void)$/;"\tline:12')
        assert record == TagRecord("compute", "src/a.c", 12)

    def test_too_few_fields(self):
        assert parse_ctags_line("compute\tsrc/a.c\tline:12") is None

    def test_anonymous_symbol(self):
        assert parse_ctags_line('__anon42\tsrc/a.c\t/^x$/;"\tline:3') is None

    def test_non_source_file(self):
        assert parse_ctags_line('title\tdocs/a.md\t/^x$/;"\tline:3') is None

    def test_unknown_prefix(self):
        with pytest.raises(TaggingError, match="line number unknown prefix"):
            parse_ctags_line('compute\tsrc/a.c\t/^x$/;"\tkind:f')

    def test_bad_line_number(self):
        with pytest.raises(TaggingError, match="failed to parse line number"):
            parse_ctags_line('compute\tsrc/a.c\t/^x$/;"\tline:twelve')

    def test_output(self):
        records = parse_ctags_output(CTAGS_OUTPUT)
        assert records == [
            TagRecord("split_cells", "src/parser.cc", 4),
            TagRecord("trim_cells", "src/parser.cc", 10),
        ]


class TestCtagsTagger:
    """Tests for running ctags as a subprocess."""

    def test_tag_files(self, monkeypatch, tmp_path):
        fake = FakeRun(stdout=CTAGS_OUTPUT)
        monkeypatch.setattr(subprocess, "run", fake)

        records = CtagsTagger(executable="ctags").tag_files(tmp_path, ["src/parser.cc"])

        assert [r.symbol for r in records] == ["split_cells", "trim_cells"]
        cmd, kwargs = fake.calls[-1]
        assert cmd[0] == "ctags"
        assert "--fields=n" in cmd
        assert kwargs["input"] == "src/parser.cc\n"
        assert kwargs["cwd"] == tmp_path
        assert kwargs["timeout"] == CtagsTagger.DEFAULT_TIMEOUT

    def test_records_filtered_to_requested_files(self, monkeypatch, tmp_path):
        monkeypatch.setattr(subprocess, "run", FakeRun(stdout=CTAGS_OUTPUT))

        assert CtagsTagger().tag_files(tmp_path, ["src/other.cc"]) == []

    def test_no_files_does_not_run(self, monkeypatch, tmp_path):
        fake = FakeRun()
        monkeypatch.setattr(subprocess, "run", fake)

        assert CtagsTagger().tag_files(tmp_path, []) == []
        assert fake.calls == []

    def test_not_universal_ctags(self, monkeypatch, tmp_path):
        monkeypatch.setattr(subprocess, "run", FakeRun(version="Exuberant Ctags 5.8"))

        with pytest.raises(TaggingError, match="not universal-ctags"):
            CtagsTagger().tag_files(tmp_path, ["src/parser.cc"])

    def test_nonzero_exit(self, monkeypatch, tmp_path):
        monkeypatch.setattr(subprocess, "run", FakeRun(returncode=2))

        with pytest.raises(TaggingError, match="boom"):
            CtagsTagger().tag_files(tmp_path, ["src/parser.cc"])

    def test_timeout(self, monkeypatch, tmp_path):
        def slow(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", slow)

        with pytest.raises(TaggingError, match="timed out after 5s"):
            CtagsTagger(timeout=5).tag_files(tmp_path, ["src/parser.cc"])

    def test_missing_executable(self, monkeypatch, tmp_path):
        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", missing)

        with pytest.raises(TaggingError, match="universal-ctags not available"):
            CtagsTagger().tag_files(tmp_path, ["src/parser.cc"])

    def test_executable_from_environment(self, monkeypatch):
        monkeypatch.setenv("REQGRAPH_CTAGS", "/opt/ctags/bin/ctags")

        assert CtagsTagger().executable == "/opt/ctags/bin/ctags"
        assert Path(CtagsTagger(executable="uctags").executable).name == "uctags"
