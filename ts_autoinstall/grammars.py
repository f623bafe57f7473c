"""Grammar managers: what can be installed, what is installed, and installing it.

The default manager treats each grammar as a ``tree-sitter-<lang>`` wheel and
installs it with pip in a background worker. Installs are serialized through a
single worker so two languages never install at the same time. Each pip run is
bounded by the install timeout so a stalled download cannot hold the worker.

Grammars bundled with ``tree-sitter-language-pack`` count as installed: they
load without any per-language wheel.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import subprocess
import sys
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol, get_args

logger = logging.getLogger(__name__)


class StartupUnavailableError(RuntimeError):
    """A dependency required to run auto-install is missing."""


class GrammarManager(Protocol):
    def list_available(self) -> Iterable[str]: ...

    def list_installed(self) -> Iterable[str]: ...

    def install(self, lang: str, timeout: float | None = None) -> Future[bool]: ...

    def check_ready(self) -> None: ...


@dataclass(frozen=True)
class GrammarPackage:
    lang: str
    package: str  # PyPI distribution ("tree-sitter-python")
    module: str  # import name ("tree_sitter_python")
    language_func: str = "language"  # non-standard for multi-grammar wheels


def _pkg(lang: str, package: str | None = None, module: str | None = None,
         language_func: str = "language") -> GrammarPackage:
    package = package or f"tree-sitter-{lang.replace('_', '-')}"
    module = module or package.replace("-", "_")
    return GrammarPackage(lang, package, module, language_func)


def _language_pack_grammars() -> frozenset[str]:
    try:
        from tree_sitter_language_pack import SupportedLanguage
    except ImportError:
        return frozenset()
    return frozenset(get_args(SupportedLanguage))


GRAMMAR_PACKAGES: dict[str, GrammarPackage] = {
    p.lang: p
    for p in (
        _pkg("bash"),
        _pkg("c"),
        _pkg("c_sharp"),
        _pkg("cpp"),
        _pkg("css"),
        _pkg("go"),
        _pkg("html"),
        _pkg("java"),
        _pkg("javascript"),
        _pkg("json"),
        _pkg("lua"),
        _pkg("markdown"),
        _pkg("markdown_inline", "tree-sitter-markdown", language_func="inline_language"),
        _pkg("php", language_func="language_php"),
        _pkg("python"),
        _pkg("regex"),
        _pkg("ruby"),
        _pkg("rust"),
        _pkg("toml"),
        _pkg("tsx", "tree-sitter-typescript", language_func="language_tsx"),
        _pkg("typescript", language_func="language_typescript"),
        _pkg("yaml"),
    )
}


class PipGrammarManager:
    """Install grammar wheels into the running interpreter's environment."""

    def __init__(
        self,
        packages: Mapping[str, GrammarPackage] | None = None,
        *,
        python_executable: str = sys.executable,
        subprocess_run=subprocess.run,
    ) -> None:
        self.packages = dict(GRAMMAR_PACKAGES if packages is None else packages)
        self._python = python_executable
        self._run = subprocess_run
        self._executor: ThreadPoolExecutor | None = None

    def check_ready(self) -> None:
        if importlib.util.find_spec("pip") is None:
            raise StartupUnavailableError(
                "[TSAutoInstall] Unable to start, cannot locate pip."
            )

    def list_available(self) -> list[str]:
        return sorted(self.packages)

    def list_installed(self) -> list[str]:
        bundled = _language_pack_grammars()
        return sorted(
            lang for lang, pkg in self.packages.items()
            if lang in bundled or importlib.util.find_spec(pkg.module) is not None
        )

    def install(self, lang: str, timeout: float | None = None) -> Future[bool]:
        pkg = self.packages.get(lang)
        if pkg is None:
            future: Future[bool] = Future()
            future.set_exception(ValueError(f"No grammar package known for {lang!r}"))
            return future
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ts-install")
        return self._executor.submit(self._pip_install, pkg, timeout)

    def _pip_install(self, pkg: GrammarPackage, timeout: float | None = None) -> bool:
        cmd = [self._python, "-m", "pip", "install", "--quiet", pkg.package]
        try:
            result = self._run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.debug("pip install %s timed out after %ss", pkg.package, timeout)
            return False
        if result.returncode != 0:
            logger.debug(
                "pip install %s exited %s: %s",
                pkg.package, result.returncode, (result.stderr or "").strip(),
            )
            return False
        importlib.invalidate_caches()
        return True

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None


__all__ = [
    "GRAMMAR_PACKAGES",
    "GrammarManager",
    "GrammarPackage",
    "PipGrammarManager",
    "StartupUnavailableError",
]
