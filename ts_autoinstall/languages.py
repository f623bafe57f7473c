"""Filetype to grammar-name inference."""

from __future__ import annotations

import re
from pathlib import PurePath

_GRAMMAR_NAME = re.compile(r"^[a-z0-9_]+$")

# filetype -> grammar name, for filetypes whose name differs from the grammar.
_ALIASES: dict[str, str] = {
    "sh": "bash",
    "zsh": "bash",
    "cs": "c_sharp",
    "csharp": "c_sharp",
    "javascriptreact": "javascript",
    "ecma": "javascript",
    "jsx": "javascript",
    "typescriptreact": "tsx",
    "help": "vimdoc",
    "pandoc": "markdown",
    "quarto": "markdown",
    "rmd": "markdown",
    "tex": "latex",
    "gyp": "python",
}


# file suffix -> filetype, for callers that only have a path.
_SUFFIXES: dict[str, str] = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".lua": "lua",
    ".md": "markdown",
    ".markdown": "markdown",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".json": "json",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".sh": "sh",
    ".bash": "sh",
    ".rs": "rust",
    ".go": "go",
    ".rb": "ruby",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".hpp": "cpp",
    ".cs": "cs",
    ".php": "php",
}


def register_alias(lang: str, filetypes: str | list[str]) -> None:
    """Map one or more filetypes to a grammar name."""
    if isinstance(filetypes, str):
        filetypes = [filetypes]
    for ft in filetypes:
        _ALIASES[ft] = lang


def get_lang(filetype: str) -> str | None:
    """Return the grammar for a filetype, or None if nothing fits.

    Compound filetypes (``htmldjango.html``) resolve by their first part.
    """
    if not filetype:
        return None
    ft = filetype.split(".", 1)[0]
    if ft in _ALIASES:
        return _ALIASES[ft]
    if _GRAMMAR_NAME.match(ft):
        return ft
    return None


def filetype_for_path(path: str) -> str | None:
    """Guess a filetype from a file name suffix."""
    return _SUFFIXES.get(PurePath(path).suffix.lower())


__all__ = ["filetype_for_path", "get_lang", "register_alias"]
