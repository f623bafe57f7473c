"""Tests for language trees, injection queries and the tree-sitter builder."""

from __future__ import annotations

import pytest

from ts_autoinstall.tree import (
    LanguageTree,
    TreeBuilder,
    is_available,
    load_injection_query,
    load_language,
)

HTML_INJECTIONS = """\
((script_element
  (raw_text) @injection.content)
 (#set! injection.language "javascript"))

((style_element
  (raw_text) @injection.content)
 (#set! injection.language "css"))
"""

HTML_SOURCE = b"<html><script>let a = 1;</script><style>p { color: red; }</style></html>"


# ── LanguageTree ──────────────────────────────────────────────


class TestLanguageTree:
    def test_injections_are_deduplicated_in_order(self):
        tree = LanguageTree("markdown", injections=["html", "", "yaml", "html"])
        assert tree.injection_languages() == ["html", "yaml"]

    def test_structure_callbacks_fire_on_change(self):
        tree = LanguageTree("markdown")
        fired = []
        tree.on_structure_changed(lambda: fired.append(tree.injection_languages()))
        tree.set_injection_languages(["toml"])
        assert fired == [["toml"]]

    def test_child_callbacks_receive_child(self):
        tree = LanguageTree("markdown")
        added = []
        tree.on_child_added(added.append)
        child = LanguageTree("lua")
        tree.add_child(child)
        assert added == [child]
        assert tree.children() == [child]

    def test_children_is_a_copy(self):
        tree = LanguageTree("markdown", children=[LanguageTree("lua")])
        tree.children().clear()
        assert len(tree.children()) == 1


# ── Query files ───────────────────────────────────────────────


class TestLoadInjectionQuery:
    def _write(self, base, lang, text):
        path = base / "queries" / lang / "injections.scm"
        path.parent.mkdir(parents=True)
        path.write_text(text)

    def test_first_search_path_wins(self, tmp_path):
        self._write(tmp_path / "a", "html", "; from a\n")
        self._write(tmp_path / "b", "html", "; from b\n")
        text = load_injection_query("html", [tmp_path / "missing", tmp_path / "a", tmp_path / "b"])
        assert text == "; from a\n"

    def test_missing_is_empty(self, tmp_path):
        assert load_injection_query("html", [tmp_path]) == ""

    def test_inherits_pulls_in_parents_once(self, tmp_path):
        self._write(tmp_path, "html_tags", "; tags\n")
        self._write(tmp_path, "ecma", "; ecma\n")
        self._write(tmp_path, "html", "; inherits: html_tags\n; own\n")
        self._write(tmp_path, "vue", "; inherits: html,html_tags,ecma\n; vue\n")

        text = load_injection_query("vue", [tmp_path])
        assert text.count("; tags") == 1
        assert text.index("; tags") < text.index("; own") < text.index("; ecma") < text.index("; vue")


# ── tree-sitter ───────────────────────────────────────────────


@pytest.fixture
def html_languages():
    if not is_available():
        pytest.skip("tree-sitter not installed")
    loaded = {lang: load_language(lang) for lang in ("html", "javascript", "css")}
    if any(v is None for v in loaded.values()):
        pytest.skip("html/javascript/css grammars not installed")
    return loaded


class TestTreeSitter:
    @pytest.mark.parametrize("query", ["((no_such_node) @x", "  "])
    def test_bad_or_blank_query_declares_nothing(self, html_languages, query):
        builder = TreeBuilder({"html": query}, load_language=html_languages.get)
        tree = builder.build(HTML_SOURCE, "html")

        assert tree.lang == "html"
        assert tree.injection_languages() == []
        assert tree.children() == []

    def test_build_creates_children_per_region(self, html_languages):
        builder = TreeBuilder({"html": HTML_INJECTIONS}, load_language=html_languages.get)
        tree = builder.build(HTML_SOURCE, "html")

        assert tree.lang == "html"
        assert tree.injection_languages() == ["javascript", "css"]
        children = tree.children()
        assert [c.lang for c in children] == ["javascript", "css"]
        start, end = children[0].source_range
        assert HTML_SOURCE[start:end] == b"let a = 1;"

    def test_build_without_grammar(self, html_languages):
        builder = TreeBuilder({}, load_language=lambda lang: None)
        assert builder.build(HTML_SOURCE, "html") is None

    def test_unloadable_child_is_skipped(self, html_languages):
        langs = {"html": html_languages["html"], "css": html_languages["css"]}
        builder = TreeBuilder({"html": HTML_INJECTIONS}, load_language=langs.get)
        tree = builder.build(HTML_SOURCE, "html")
        assert tree.injection_languages() == ["javascript", "css"]
        assert [c.lang for c in tree.children()] == ["css"]

    def test_update_adds_only_new_regions(self, html_languages):
        builder = TreeBuilder({"html": HTML_INJECTIONS}, load_language=html_languages.get)
        tree = builder.build(b"<script>a()</script>", "html")
        added = []
        tree.on_child_added(added.append)

        builder.update(tree, b"<script>a()</script><style>b {}</style>")

        assert [c.lang for c in added] == ["css"]
        assert [c.lang for c in tree.children()] == ["javascript", "css"]
