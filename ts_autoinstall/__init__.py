"""Install tree-sitter grammars on demand, once per language per session.

Typical use from an editor integration::

    from ts_autoinstall import setup

    session = setup(host, {"skip_approval": True, "indent": {"enable": {"python": True}}})
    ...
    session.clear_cache()
"""

from __future__ import annotations

from collections.abc import Mapping

from .checks import ABSENT, Check, CheckKind, Context, coerce_check
from .config import SessionConfig, load_config
from .grammars import GrammarManager, PipGrammarManager, StartupUnavailableError
from .interaction import ConsoleInteraction, Interaction, Severity
from .policy import is_module_enabled
from .session import Host, Session
from .tree import LanguageTree, TreeBuilder


def setup(
    host: Host,
    opts: Mapping | None = None,
    *,
    grammars: GrammarManager | None = None,
    interaction: Interaction | None = None,
) -> Session:
    """Create and configure a session for ``host``."""
    session = Session(host, grammars, interaction)
    session.configure(opts)
    return session


__all__ = [
    "ABSENT",
    "Check",
    "CheckKind",
    "ConsoleInteraction",
    "Context",
    "GrammarManager",
    "Host",
    "Interaction",
    "LanguageTree",
    "PipGrammarManager",
    "Session",
    "SessionConfig",
    "Severity",
    "StartupUnavailableError",
    "TreeBuilder",
    "coerce_check",
    "is_module_enabled",
    "load_config",
    "setup",
]
