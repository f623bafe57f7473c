"""Language trees: one node per parsed region, children for injected regions.

``LanguageTree`` is the observable node the injection walker subscribes to.
``TreeBuilder`` fills it from a tree-sitter parse when the grammar libraries
are installed (``pip install tree-sitter tree-sitter-language-pack``).
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path

from .grammars import GRAMMAR_PACKAGES, GrammarPackage
from .languages import get_lang

logger = logging.getLogger(__name__)

_AVAILABLE = False
try:
    import tree_sitter

    _AVAILABLE = True
except ImportError:
    logger.debug("tree-sitter not installed; parsed language trees disabled")

# Failures raised while loading a grammar or compiling a query.
PARSE_INIT_ERRORS: tuple[type[Exception], ...] = (
    ImportError, OSError, ValueError, RuntimeError, LookupError,
)

# Query compilation also raises tree-sitter's own QueryError.
_QUERY_ERRORS: tuple[type[Exception], ...] = PARSE_INIT_ERRORS + (
    (tree_sitter.QueryError,) if _AVAILABLE else ()
)

_INJECTION_LANGUAGE = "injection.language"
_INJECTION_CONTENT = "injection.content"
_INHERITS = re.compile(r"^;+\s*inherits\s*:?\s*(.+)$", re.MULTILINE)


def is_available() -> bool:
    """Return True if tree-sitter is installed."""
    return _AVAILABLE


class LanguageTree:
    """A parsed region for one language and the regions injected into it."""

    def __init__(self, lang: str, injections: Iterable[str] = (),
                 children: Iterable[LanguageTree] = (), source_range: tuple[int, int] | None = None):
        self.lang = lang
        self.source_range = source_range
        self._injections: list[str] = _unique(injections)
        self._children: list[LanguageTree] = list(children)
        self._structure_cbs: list[Callable[[], None]] = []
        self._child_cbs: list[Callable[[LanguageTree], None]] = []

    def __repr__(self) -> str:
        return f"LanguageTree({self.lang!r}, injections={self._injections!r}, children={len(self._children)})"

    def injection_languages(self) -> list[str]:
        return list(self._injections)

    def children(self) -> list[LanguageTree]:
        return list(self._children)

    def on_structure_changed(self, cb: Callable[[], None]) -> None:
        self._structure_cbs.append(cb)

    def on_child_added(self, cb: Callable[[LanguageTree], None]) -> None:
        self._child_cbs.append(cb)

    def set_injection_languages(self, langs: Iterable[str]) -> None:
        self._injections = _unique(langs)
        for cb in list(self._structure_cbs):
            cb()

    def add_child(self, child: LanguageTree) -> None:
        self._children.append(child)
        for cb in list(self._child_cbs):
            cb(child)


def _unique(items: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(i for i in items if i))


# ── Grammar loading ────────────────────────────────────────


def load_language(lang: str, packages: Mapping[str, GrammarPackage] = GRAMMAR_PACKAGES):
    """Return a ``tree_sitter.Language`` for ``lang``, or None.

    Prefers an installed per-language grammar wheel, then the language pack.
    """
    if not _AVAILABLE:
        return None
    from tree_sitter import Language

    pkg = packages.get(lang)
    if pkg is not None and importlib.util.find_spec(pkg.module) is not None:
        try:
            module = importlib.import_module(pkg.module)
            return Language(getattr(module, pkg.language_func)())
        except (*PARSE_INIT_ERRORS, AttributeError, TypeError) as exc:
            logger.debug("Grammar module %s failed to load: %s", pkg.module, exc)

    if importlib.util.find_spec("tree_sitter_language_pack") is None:
        return None
    try:
        from tree_sitter_language_pack import get_language

        return get_language(lang)
    except PARSE_INIT_ERRORS as exc:
        logger.debug("Language pack has no usable grammar for %s: %s", lang, exc)
        return None


# ── Injection queries ──────────────────────────────────────


def load_injection_query(lang: str, search_paths: Sequence[str | Path]) -> str:
    """Read ``queries/<lang>/injections.scm`` from the first path that has it.

    ``; inherits: a,b`` modelines pull in the named languages' queries first.
    """
    return _load_query(lang, search_paths, seen=set())


def _load_query(lang: str, search_paths: Sequence[str | Path], seen: set[str]) -> str:
    if lang in seen:
        return ""
    seen.add(lang)
    for base in search_paths:
        path = Path(base) / "queries" / lang / "injections.scm"
        try:
            text = path.read_text()
        except (OSError, UnicodeDecodeError):
            continue
        parts = []
        for m in _INHERITS.finditer(text):
            for parent in m.group(1).split(","):
                parent = parent.strip().strip("()")
                if parent:
                    parts.append(_load_query(parent, search_paths, seen))
        parts.append(text)
        return "\n".join(p for p in parts if p)
    return ""


def _compile_injection_query(language, source: str, lang: str):
    """Compile ``source`` for ``language``; None when blank or invalid."""
    if not source.strip():
        return None
    from tree_sitter import Query

    try:
        return Query(language, source)
    except _QUERY_ERRORS as exc:
        logger.debug("Injection query for %s failed to compile: %s", lang, exc)
        return None


def _declared_languages(query) -> list[str]:
    return _unique(
        query.pattern_settings(i).get(_INJECTION_LANGUAGE)
        for i in range(query.pattern_count)
    )


def _node_text(node) -> str:
    text = node.text
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return str(text)


def _as_list(captured) -> list:
    if captured is None:
        return []
    return captured if isinstance(captured, list) else [captured]


class TreeBuilder:
    """Build and update ``LanguageTree``s from source with tree-sitter.

    Args:
        queries: injection query source per language.
        load_language: grammar loader; returns None for grammars not installed.
        infer: maps a captured ``@injection.language`` text to a grammar name.
    """

    def __init__(
        self,
        queries: Mapping[str, str] | Callable[[str], str],
        load_language: Callable[[str], object] = load_language,
        infer: Callable[[str], str | None] = get_lang,
    ) -> None:
        self._queries = queries
        self._load_language = load_language
        self._infer = infer

    def _query_source(self, lang: str) -> str:
        if callable(self._queries):
            return self._queries(lang) or ""
        return self._queries.get(lang, "")

    def build(self, source: bytes, lang: str) -> LanguageTree | None:
        """Parse ``source`` as ``lang``; None when the grammar cannot be loaded."""
        language = self._load_language(lang)
        if language is None:
            return None
        tree = LanguageTree(lang, source_range=(0, len(source)))
        self._populate(tree, language, source)
        return tree

    def update(self, tree: LanguageTree, source: bytes) -> None:
        """Re-parse ``source`` into an existing tree, firing change callbacks.

        Injection declarations are replaced; regions without a matching child
        become new children.
        """
        language = self._load_language(tree.lang)
        if language is None:
            return
        self._populate(tree, language, source)

    def _populate(self, tree: LanguageTree, language, source: bytes) -> None:
        query = _compile_injection_query(language, self._query_source(tree.lang), tree.lang)
        declared = _declared_languages(query) if query is not None else []
        if declared != tree.injection_languages():
            tree.set_injection_languages(declared)
        if query is None:
            return

        offset = tree.source_range[0] if tree.source_range else 0
        known = {(c.lang, c.source_range) for c in tree.children()}
        for child_lang, start, end in self._regions(language, query, source):
            span = (offset + start, offset + end)
            if (child_lang, span) in known:
                continue
            child_language = self._load_language(child_lang)
            if child_language is None:
                continue
            known.add((child_lang, span))
            child = LanguageTree(child_lang, source_range=span)
            self._populate(child, child_language, source[start:end])
            tree.add_child(child)

    def _regions(self, language, query, source: bytes) -> list[tuple[str, int, int]]:
        from tree_sitter import Parser, QueryCursor

        try:
            root = Parser(language).parse(source).root_node
            matches = QueryCursor(query).matches(root)
        except PARSE_INIT_ERRORS as exc:
            logger.debug("Injection matching failed: %s", exc)
            return []

        regions = []
        for pattern_index, captures in matches:
            lang = query.pattern_settings(pattern_index).get(_INJECTION_LANGUAGE)
            if not lang:
                named = _as_list(captures.get(_INJECTION_LANGUAGE))
                lang = self._infer(_node_text(named[0]).strip().lower()) if named else None
            if not lang:
                continue
            for node in _as_list(captures.get(_INJECTION_CONTENT)):
                regions.append((lang, node.start_byte, node.end_byte))
        return regions


__all__ = [
    "LanguageTree",
    "PARSE_INIT_ERRORS",
    "TreeBuilder",
    "is_available",
    "load_injection_query",
    "load_language",
]
