"""Tests for the regex based tagger and tagger selection."""

import pytest

from reqgraph.graph.taggers import SymbolTagger, TaggingError, TagRecord, available_taggers, get_tagger
from reqgraph.graph.taggers.regex import RegexTagger, detect_language, find_symbols


class TestDetectLanguage:
    @pytest.mark.parametrize(
        "path,language",
        [
            ("src/a.py", "python"),
            ("src/a.cc", "c"),
            ("src/a.H", "c"),
            ("src/a.go", "go"),
            ("src/a.rs", "rust"),
            ("web/a.ts", "js"),
            ("docs/a.md", "unknown"),
        ],
    )
    def test_suffixes(self, path, language):
        assert detect_language(path) == language


class TestFindSymbols:
    """Tests for per-language symbol detection."""

    def test_python(self):
        source = "def top():\n    pass\n\nclass A:\n    async def method(self):\n        pass\n"
        assert find_symbols(source, "python") == [("top", 1), ("method", 5)]

    def test_c_definitions_and_declarations(self):
        source = """\
int compute(int a);
static const char *name_of(int id) {
    return lookup(id);
}
void Parser::parse(const std::string &text) {
    if (text.empty()) {
        int n = count(text);
    }
}
"""
        assert find_symbols(source, "c") == [("compute", 1), ("name_of", 2), ("Parser::parse", 5)]

    def test_go(self):
        source = "func Top() {\n}\n\nfunc (p *Parser) Parse(text string) error {\n}\n"
        assert find_symbols(source, "go") == [("Top", 1), ("Parse", 4)]

    def test_rust(self):
        source = "pub fn parse(text: &str) -> u32 {\n}\nasync fn fetch<T>() {}\n"
        assert find_symbols(source, "rust") == [("parse", 1), ("fetch", 3)]

    def test_unknown_language(self):
        assert find_symbols("def f(): pass", "unknown") == []


class TestRegexTagger:
    """Tests for tagging files on disk."""

    def test_tag_files(self, tmp_path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "lib.py").write_text("# @llr REQ-TEST-SWL-1\ndef run():\n    pass\n")
        (tmp_path / "src" / "notes.txt").write_text("def not_code():\n")

        records = RegexTagger().tag_files(tmp_path, ["src/lib.py", "src/notes.txt"])

        assert records == [TagRecord("run", "src/lib.py", 2)]

    def test_missing_file(self, tmp_path):
        with pytest.raises(TaggingError, match="failed to read `src/missing.py`"):
            RegexTagger().tag_files(tmp_path, ["src/missing.py"])


class TestGetTagger:
    """Tests for name based tagger selection."""

    def test_available(self):
        assert available_taggers() == ["ctags", "regex"]

    def test_implementations_satisfy_protocol(self):
        assert isinstance(get_tagger("regex"), SymbolTagger)
        assert isinstance(get_tagger("ctags", executable="ctags"), SymbolTagger)

    def test_unknown_name(self):
        with pytest.raises(TaggingError, match="Code parser not found: `clang`"):
            get_tagger("clang")
