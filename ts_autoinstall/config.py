"""Session configuration: defaults, merging, and the user config file.

Opts are a nested dict shaped like ``DEFAULT_OPTS``. Gate values (``enable``
/ ``disable``) may be booleans, mappings, or callables; only the first two
survive a round-trip through the JSON config file.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .checks import ABSENT, Check, coerce_check
from .utils import safe_write_text

logger = logging.getLogger(__name__)

CONFIG_FILE = Path(
    os.environ.get(
        "TS_AUTOINSTALL_CONFIG",
        Path.home() / ".config" / "ts-autoinstall" / "config.json",
    )
)

@dataclass(frozen=True)
class ConfigKey:
    type: type
    default: object
    description: str


CONFIG_SCHEMA: dict[str, ConfigKey] = {
    "skip_approval": ConfigKey(bool, False,
        "Install grammars without asking first"),
    "timeout": ConfigKey(int, 30000,
        "Milliseconds to wait for a grammar install before giving up"),
}

DEFAULT_OPTS: dict = {
    "enable": True,
    "disable": False,
    "skip_approval": CONFIG_SCHEMA["skip_approval"].default,
    "timeout": CONFIG_SCHEMA["timeout"].default,
    "fold": {"enable": True},
    "indent": {"enable": False},
    "syntax": {"enable": False},
}


@dataclass(frozen=True)
class ModuleConfig:
    enable: Check = ABSENT
    disable: Check = ABSENT
    keyed_by: str = "lang"  # "filetype" for syntax gates

    @classmethod
    def from_opts(cls, opts: Mapping, keyed_by: str = "lang") -> ModuleConfig:
        return cls(
            enable=coerce_check(opts.get("enable")),
            disable=coerce_check(opts.get("disable")),
            keyed_by=keyed_by,
        )


@dataclass(frozen=True)
class FoldModuleConfig(ModuleConfig):
    start_unfolded: bool = False

    @classmethod
    def from_opts(cls, opts: Mapping, keyed_by: str = "lang") -> FoldModuleConfig:
        return cls(
            enable=coerce_check(opts.get("enable")),
            disable=coerce_check(opts.get("disable")),
            keyed_by=keyed_by,
            start_unfolded=bool(opts.get("start_unfolded", False)),
        )


@dataclass(frozen=True)
class SessionConfig:
    root: ModuleConfig
    fold: FoldModuleConfig
    indent: ModuleConfig
    syntax: ModuleConfig
    skip_approval: bool = False
    timeout: int = 30000  # milliseconds

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    @property
    def globally_disabled(self) -> bool:
        """Literal root check: ``enable`` is exactly False or ``disable`` exactly True."""
        return self.root.enable.is_false() or self.root.disable.is_true()

    @classmethod
    def from_opts(cls, opts: Mapping | None = None) -> SessionConfig:
        merged = deep_merge(DEFAULT_OPTS, opts or {})
        return cls(
            root=ModuleConfig.from_opts(merged),
            fold=FoldModuleConfig.from_opts(merged.get("fold") or {}),
            indent=ModuleConfig.from_opts(merged.get("indent") or {}),
            syntax=ModuleConfig.from_opts(merged.get("syntax") or {}, keyed_by="filetype"),
            skip_approval=bool(merged.get("skip_approval")),
            timeout=int(merged.get("timeout", CONFIG_SCHEMA["timeout"].default)),
        )


def deep_merge(base: Mapping, override: Mapping) -> dict:
    """Merge ``override`` over ``base``; nested dicts merge, everything else replaces."""
    result = dict(base)
    for key, value in override.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = value
    return result


def load_config(path: Path | None = None) -> dict:
    """Load user opts from disk. Missing or unreadable files yield ``{}``."""
    p = path or CONFIG_FILE
    if not p.exists():
        return {}
    try:
        config = json.loads(p.read_text())
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
        logger.debug("Ignoring unreadable config %s: %s", p, exc)
        return {}
    if not isinstance(config, dict):
        logger.debug("Ignoring non-object config %s", p)
        return {}
    return config


def save_config(config: dict, path: Path | None = None) -> None:
    """Save user opts to disk atomically."""
    p = path or CONFIG_FILE
    safe_write_text(p, json.dumps(config, indent=2) + "\n")


def set_config_value(config: dict, key: str, raw: str) -> None:
    """Parse and set a scalar config value from a raw string."""
    if key not in CONFIG_SCHEMA:
        raise KeyError(f"Unknown config key: {key}")

    schema = CONFIG_SCHEMA[key]
    if schema.type is bool:
        if raw.lower() in ("true", "1", "yes", "y"):
            config[key] = True
        elif raw.lower() in ("false", "0", "no", "n"):
            config[key] = False
        else:
            raise ValueError(f"Expected true/false for {key}, got: {raw}")
    elif schema.type is int:
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"Expected an integer for {key}, got: {raw}") from None
        if value < 0:
            raise ValueError(f"{key} must not be negative, got: {raw}")
        config[key] = value
    else:
        config[key] = raw


def unset_config_value(config: dict, key: str) -> None:
    """Drop a scalar key so the default applies again."""
    if key not in CONFIG_SCHEMA:
        raise KeyError(f"Unknown config key: {key}")
    config.pop(key, None)


__all__ = [
    "CONFIG_FILE",
    "CONFIG_SCHEMA",
    "DEFAULT_OPTS",
    "ConfigKey",
    "FoldModuleConfig",
    "ModuleConfig",
    "SessionConfig",
    "deep_merge",
    "load_config",
    "save_config",
    "set_config_value",
    "unset_config_value",
]
