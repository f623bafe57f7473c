"""Resolve whether a module is enabled for a context.

A more specific gate overrides a less specific one. At FLAG specificity,
``disable=True`` beats ``enable=True``. A mapping or predicate ``enable`` is
only overridden by a ``disable`` of the same or a more specific shape.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .checks import CheckKind, Context

if TYPE_CHECKING:
    from .config import ModuleConfig


def is_module_enabled(module: ModuleConfig, ctx: Context) -> bool:
    enable, disable = module.enable, module.disable
    key = ctx.key(module.keyed_by)

    if enable.kind is CheckKind.ABSENT:
        if disable.is_false():
            return True
        if disable.is_true():
            return False
        if disable.marks(key) or disable.holds(ctx):
            return False
        return True

    if enable.kind is CheckKind.FLAG:
        # disable=False never raises a boolean enable.
        if disable.is_true() or disable.marks(key) or disable.holds(ctx):
            return False
        return enable.value

    if enable.kind is CheckKind.MAPPING:
        if disable.marks(key) or disable.holds(ctx):
            return False
        return enable.lists(key)

    if enable.kind is CheckKind.PREDICATE:
        if disable.holds(ctx):
            return False
        return enable.holds(ctx)

    return True


__all__ = ["is_module_enabled"]
