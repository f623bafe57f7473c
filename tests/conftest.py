"""Shared doubles for the grammar manager, user interaction and host."""

from __future__ import annotations

from concurrent.futures import Future
from types import SimpleNamespace

import pytest

from ts_autoinstall.cache import InstallCache
from ts_autoinstall.config import SessionConfig
from ts_autoinstall.coordinator import InstallCoordinator
from ts_autoinstall.interaction import Severity


class FakeGrammars:
    """Grammar manager whose installs resolve immediately (or never)."""

    def __init__(self, available=(), installed=(), *, result=True, hang=False, error=None):
        self.available = set(available)
        self.installed = set(installed)
        self.result = result
        self.hang = hang
        self.error = error
        self.install_calls: list[str] = []
        self.install_timeouts: list[float | None] = []
        self.ready_error: Exception | None = None
        self.shut_down = False

    def check_ready(self):
        if self.ready_error is not None:
            raise self.ready_error

    def list_available(self):
        return sorted(self.available)

    def list_installed(self):
        return sorted(self.installed)

    def shutdown(self):
        self.shut_down = True

    def install(self, lang, timeout=None):
        self.install_calls.append(lang)
        self.install_timeouts.append(timeout)
        future = Future()
        if self.hang:
            return future
        if self.error is not None:
            future.set_exception(self.error)
            return future
        if self.result:
            self.installed.add(lang)
        future.set_result(self.result)
        return future


class FakeInteraction:
    def __init__(self, answers=()):
        self.answers = list(answers)
        self.prompts: list[str] = []
        self.notes: list[tuple[str, Severity]] = []

    def prompt(self, text):
        self.prompts.append(text)
        return self.answers.pop(0) if self.answers else ""

    def notify(self, text, severity=Severity.INFO):
        self.notes.append((text, severity))

    def errors(self):
        return [text for text, sev in self.notes if sev == Severity.ERROR]


class FakeHost:
    def __init__(self, tree=None, attach_error=None):
        self.tree = tree
        self.attach_error = attach_error
        self.callbacks = []
        self.attached: list[tuple[object, str]] = []
        self.window_options: dict[tuple[str, str], object] = {}
        self.buffer_options: dict[str, object] = {}
        self.global_options: dict[str, object] = {}

    def on_filetype(self, callback):
        self.callbacks.append(callback)

    def filetype_of(self, document):
        return document.filetype

    def attach(self, document, lang):
        if self.attach_error is not None:
            raise self.attach_error
        self.attached.append((document, lang))
        return self.tree

    def windows_for(self, document):
        return document.windows

    def set_window_option(self, window, name, value):
        self.window_options[(window, name)] = value

    def set_buffer_option(self, document, name, value):
        self.buffer_options[name] = value

    def set_global_option(self, name, value):
        self.global_options[name] = value


def make_document(filetype="lua", windows=("win1",)):
    return SimpleNamespace(filetype=filetype, windows=list(windows))


@pytest.fixture
def document():
    return make_document()


@pytest.fixture
def make_coordinator():
    """Build a coordinator over fakes: ``make_coordinator(opts, grammars, answers)``."""

    def _make(opts=None, grammars=None, answers=()):
        grammars = grammars if grammars is not None else FakeGrammars()
        interaction = FakeInteraction(answers)
        cache = InstallCache(grammars)
        cache.refresh()
        coordinator = InstallCoordinator(
            SessionConfig.from_opts(opts), cache, grammars, interaction
        )
        return SimpleNamespace(
            coordinator=coordinator,
            cache=cache,
            grammars=grammars,
            interaction=interaction,
        )

    return _make
