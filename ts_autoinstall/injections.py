"""Walk a language tree and install grammars for every injected language."""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .cache import InstallCache
    from .coordinator import InstallCoordinator

logger = logging.getLogger(__name__)


class InjectionTree(Protocol):
    def injection_languages(self) -> Iterable[str]: ...

    def children(self) -> Iterable[InjectionTree]: ...

    def on_structure_changed(self, cb: Callable[[], None]) -> None: ...

    def on_child_added(self, cb: Callable[[InjectionTree], None]) -> None: ...


@dataclass(frozen=True)
class _Origin:
    document: Any
    filetype: str


class InjectionWalker:
    """Subscribe to a tree and its descendants, installing injected languages.

    Deduplication is by language: a language already in the attempt cache is
    never passed to the coordinator again, however many regions request it.
    Each node is subscribed to once; walking it again only re-reads its
    declarations.
    """

    def __init__(self, coordinator: InstallCoordinator, cache: InstallCache) -> None:
        self._coordinator = coordinator
        self._cache = cache
        self._watched: weakref.WeakSet = weakref.WeakSet()

    def discover(self, document: Any, filetype: str, tree: InjectionTree | None) -> None:
        if tree is None:
            return
        origin = _Origin(document, filetype)
        self._process(origin, tree)
        if tree not in self._watched:
            self._watched.add(tree)
            tree.on_structure_changed(lambda: self._process(origin, tree))
            tree.on_child_added(lambda _child: self._walk_children(origin, tree))
        self._walk_children(origin, tree)

    def _walk_children(self, origin: _Origin, tree: InjectionTree) -> None:
        for child in tree.children():
            self.discover(origin.document, origin.filetype, child)

    def _process(self, origin: _Origin, tree: InjectionTree) -> None:
        for lang in tree.injection_languages():
            if self._cache.attempted(lang):
                continue
            logger.debug("Discovered injected language %s", lang)
            self._coordinator.ensure_installed(origin.document, origin.filetype, lang)


__all__ = ["InjectionTree", "InjectionWalker"]
