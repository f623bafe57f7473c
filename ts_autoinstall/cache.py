"""Per-session install state: what is available, installed, and already attempted."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .grammars import GrammarManager

logger = logging.getLogger(__name__)


class InstallCache:
    """Presence maps refreshed from a grammar manager, plus the attempt memo.

    ``attempt[lang]`` is absent until the language is first evaluated, False
    once it was evaluated and is not usable, True once it is usable. It
    survives ``refresh()``; only ``clear()`` empties it.
    """

    def __init__(self, grammars: GrammarManager) -> None:
        self._grammars = grammars
        self.available: dict[str, bool] = {}
        self.installed: dict[str, bool] = {}
        self.attempt: dict[str, bool] = {}
        self._built = False

    def refresh(self) -> None:
        self.available = dict.fromkeys(self._grammars.list_available(), True)
        self.installed = dict.fromkeys(self._grammars.list_installed(), True)
        if not self._built:
            # Previously installed languages never prompt.
            self.attempt = dict(self.installed)
            self._built = True
        logger.debug(
            "Grammar cache refreshed: %d available, %d installed, %d attempted",
            len(self.available), len(self.installed), len(self.attempt),
        )

    def clear(self) -> None:
        self.refresh()
        self.attempt = {}

    def attempted(self, lang: str) -> bool:
        return lang in self.attempt


__all__ = ["InstallCache"]
