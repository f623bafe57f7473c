"""Enable/disable gate values.

A gate is one of four shapes, ranked by specificity:

    ABSENT < FLAG < MAPPING < PREDICATE

``MALFORMED`` marks a raw value of any other shape. It is never more specific
than anything; the resolver treats it as "enabled" when used for ``enable``
and ignores it when used for ``disable``.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Context:
    """What a gate is evaluated against: one document, its filetype and language."""

    document: Any
    filetype: str
    lang: str

    def key(self, keyed_by: str) -> str:
        return self.filetype if keyed_by == "filetype" else self.lang


class CheckKind(enum.IntEnum):
    MALFORMED = -1
    ABSENT = 0
    FLAG = 1
    MAPPING = 2
    PREDICATE = 3


@dataclass(frozen=True)
class Check:
    kind: CheckKind
    value: Any = None

    @classmethod
    def flag(cls, value: bool) -> Check:
        return cls(CheckKind.FLAG, bool(value))

    @classmethod
    def mapping(cls, value: Mapping[str, Any]) -> Check:
        return cls(CheckKind.MAPPING, MappingProxyType(dict(value)))

    @classmethod
    def predicate(cls, fn: Callable[[Context], Any]) -> Check:
        return cls(CheckKind.PREDICATE, fn)

    # ── Matching ───────────────────────────────────────────

    def is_true(self) -> bool:
        return self.kind is CheckKind.FLAG and self.value is True

    def is_false(self) -> bool:
        return self.kind is CheckKind.FLAG and self.value is False

    def lists(self, key: str) -> bool:
        """Mapping entry is exactly True (how ``enable`` mappings read)."""
        return self.kind is CheckKind.MAPPING and self.value.get(key) is True

    def marks(self, key: str) -> bool:
        """Mapping entry is truthy (how ``disable`` mappings read)."""
        return self.kind is CheckKind.MAPPING and bool(self.value.get(key))

    def holds(self, ctx: Context) -> bool:
        return self.kind is CheckKind.PREDICATE and bool(self.value(ctx))


ABSENT = Check(CheckKind.ABSENT)


def coerce_check(raw: object) -> Check:
    """Convert a raw config value into a Check."""
    if isinstance(raw, Check):
        return raw
    if raw is None:
        return ABSENT
    if isinstance(raw, bool):
        return Check.flag(raw)
    if isinstance(raw, Mapping):
        return Check.mapping(raw)
    if callable(raw):
        return Check.predicate(raw)
    logger.debug("Unsupported gate value %r (%s); treating as malformed", raw, type(raw).__name__)
    return Check(CheckKind.MALFORMED, raw)


__all__ = [
    "ABSENT",
    "Check",
    "CheckKind",
    "Context",
    "coerce_check",
]
