"""Session control: configure once, then activate per document/filetype event."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol

from .cache import InstallCache
from .checks import Context
from .config import SessionConfig
from .coordinator import InstallCoordinator
from .grammars import GrammarManager, PipGrammarManager, StartupUnavailableError
from .injections import InjectionWalker
from .interaction import ConsoleInteraction, Interaction
from .languages import get_lang
from .policy import is_module_enabled
from .tree import is_available as tree_sitter_available

logger = logging.getLogger(__name__)

UNFOLDED_LEVEL = 999
FOLD_METHOD = "expr"
FOLD_EXPR = "v:lua.vim.treesitter.foldexpr()"
INDENT_EXPR = "v:lua.require'nvim-treesitter'.indentexpr()"


class Host(Protocol):
    """The editor side: documents, windows, options, and filetype events."""

    def on_filetype(self, callback: Callable[[Any, str], None]) -> None: ...

    def filetype_of(self, document: Any) -> str | None: ...

    def attach(self, document: Any, lang: str) -> Any: ...

    def windows_for(self, document: Any) -> Iterable[Any]: ...

    def set_window_option(self, window: Any, name: str, value: object) -> None: ...

    def set_buffer_option(self, document: Any, name: str, value: object) -> None: ...

    def set_global_option(self, name: str, value: object) -> None: ...


class Session:
    def __init__(
        self,
        host: Host,
        grammars: GrammarManager | None = None,
        interaction: Interaction | None = None,
        *,
        infer: Callable[[str], str | None] = get_lang,
        require_tree_sitter: bool = True,
    ) -> None:
        self.host = host
        self.grammars = grammars if grammars is not None else PipGrammarManager()
        self.interaction = interaction if interaction is not None else ConsoleInteraction()
        self._infer = infer
        self._require_tree_sitter = require_tree_sitter
        self.config: SessionConfig | None = None
        self.cache: InstallCache | None = None
        self.coordinator: InstallCoordinator | None = None
        self.walker: InjectionWalker | None = None
        self._listening = False

    def configure(self, opts: Mapping | None = None) -> SessionConfig:
        """Validate dependencies, build config and cache, register activation."""
        if self._require_tree_sitter and not tree_sitter_available():
            raise StartupUnavailableError(
                "[TSAutoInstall] Unable to start, tree-sitter not found."
            )
        self.grammars.check_ready()

        self.config = SessionConfig.from_opts(opts)
        self.cache = InstallCache(self.grammars)
        self.cache.refresh()
        self.coordinator = InstallCoordinator(
            self.config,
            self.cache,
            self.grammars,
            self.interaction,
            infer=self._infer,
            filetype_of=self.host.filetype_of,
        )
        self.walker = InjectionWalker(self.coordinator, self.cache)

        if self.config.fold.start_unfolded:
            self.host.set_global_option("foldlevelstart", UNFOLDED_LEVEL)

        # activate() reads the current config, so reconfiguring needs no new listener.
        if not self._listening:
            self.host.on_filetype(self.activate)
            self._listening = True
        return self.config

    def clear_cache(self) -> None:
        """Forget every install outcome so each language is evaluated again."""
        self._require_configured()
        self.cache.clear()

    def ensure_installed(self, document: Any, filetype: str | None = None,
                         lang: str | None = None) -> str | None:
        self._require_configured()
        return self.coordinator.ensure_installed(document, filetype, lang)

    def activate(self, document: Any, filetype: str) -> str | None:
        """Handle a filetype event: install, attach, discover, apply modules."""
        self._require_configured()
        lang = self.coordinator.ensure_installed(document, filetype)
        if not lang:
            return None

        try:
            tree = self.host.attach(document, lang)
        except (RuntimeError, ValueError, OSError) as exc:
            logger.debug("Could not attach %s to %r: %s", lang, document, exc)
            return None
        self.walker.discover(document, filetype, tree)

        ctx = Context(document, filetype, lang)
        config = self.config
        if is_module_enabled(config.fold, ctx):
            for window in self.host.windows_for(document):
                if config.fold.start_unfolded:
                    self.host.set_window_option(window, "foldlevel", UNFOLDED_LEVEL)
                self.host.set_window_option(window, "foldmethod", FOLD_METHOD)
                self.host.set_window_option(window, "foldexpr", FOLD_EXPR)

        if is_module_enabled(config.indent, ctx):
            self.host.set_buffer_option(document, "indentexpr", INDENT_EXPR)

        if is_module_enabled(config.syntax, ctx):
            self.host.set_buffer_option(document, "syntax", "on")
        return lang

    def _require_configured(self) -> None:
        if self.config is None:
            raise RuntimeError("Session.configure() must be called first")


__all__ = [
    "FOLD_EXPR",
    "FOLD_METHOD",
    "Host",
    "INDENT_EXPR",
    "Session",
    "UNFOLDED_LEVEL",
]
