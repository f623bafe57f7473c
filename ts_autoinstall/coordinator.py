"""Decide whether a language's grammar gets installed, and install it at most once."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .checks import Context
from .interaction import Severity
from .languages import get_lang
from .policy import is_module_enabled

if TYPE_CHECKING:
    from .cache import InstallCache
    from .config import SessionConfig
    from .grammars import GrammarManager
    from .interaction import Interaction

logger = logging.getLogger(__name__)


def _default_filetype_of(document: Any) -> str | None:
    return getattr(document, "filetype", None)


class InstallCoordinator:
    def __init__(
        self,
        config: SessionConfig,
        cache: InstallCache,
        grammars: GrammarManager,
        interaction: Interaction,
        *,
        infer: Callable[[str], str | None] = get_lang,
        filetype_of: Callable[[Any], str | None] = _default_filetype_of,
    ) -> None:
        self.config = config
        self.cache = cache
        self.grammars = grammars
        self.interaction = interaction
        self._infer = infer
        self._filetype_of = filetype_of

    def ensure_installed(
        self, document: Any, filetype: str | None = None, lang: str | None = None
    ) -> str | None:
        """Make sure a grammar for ``document`` is installed.

        Args:
            document: host document the grammar is for.
            filetype: the document's filetype. Looked up from the host if omitted.
            lang: the grammar to install. Inferred from ``filetype`` if omitted.

        Returns:
            The usable language, or None. Each language is evaluated once per
            cache lifetime; later calls return the memoized outcome.
        """
        if self.config.globally_disabled:
            return None

        ft = filetype or self._filetype_of(document)
        if not ft:
            return None

        parser_lang = lang or self._infer(ft)
        if not parser_lang:
            logger.debug("No grammar inferred for filetype %r", ft)
            return None

        if not is_module_enabled(self.config.root, Context(document, ft, parser_lang)):
            logger.debug("Auto-install disabled for %s (%s)", parser_lang, ft)
            return None

        cached = self.cache.attempt.get(parser_lang)
        if cached is not None:
            return parser_lang if cached else None

        # Whatever happens below, this language is not retried this session.
        self.cache.attempt[parser_lang] = False
        if not self.cache.available.get(parser_lang):
            logger.debug("No installable grammar for %s", parser_lang)
            return None

        if self.cache.installed.get(parser_lang):
            self.cache.attempt[parser_lang] = True
            self.cache.refresh()
            return parser_lang

        if not self.config.skip_approval and not self._approved(parser_lang):
            self.interaction.notify(
                f"Skipping installation of {parser_lang} grammar for this session."
            )
            return None

        return self._install(parser_lang)

    def _approved(self, lang: str) -> bool:
        answer = self.interaction.prompt(f"[TreeSitter] Install grammar for {lang} (y/N)? ")
        return "y" in (answer or "").lower()

    def _install(self, lang: str) -> str | None:
        self.interaction.notify(f"Installing {lang} grammar...")
        try:
            future = self.grammars.install(lang, timeout=self.config.timeout_seconds)
            installed = future.result(timeout=self.config.timeout_seconds)
        except Exception as exc:  # managers are pluggable, so install() can raise anything
            logger.debug("Grammar install for %s failed: %s: %s", lang, type(exc).__name__, exc)
            installed = False

        if not installed:
            self.interaction.notify(f"Error installing {lang} grammar.", Severity.ERROR)
            return None

        self.cache.attempt[lang] = True
        self.cache.refresh()
        self.interaction.notify(f"{lang} grammar installed")
        return lang


__all__ = ["InstallCoordinator"]
