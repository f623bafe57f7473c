"""CLI entry point: argparse, subcommand routing, a headless host."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from types import SimpleNamespace

from .config import (
    CONFIG_FILE,
    CONFIG_SCHEMA,
    load_config,
    save_config,
    set_config_value,
    unset_config_value,
)
from .grammars import PipGrammarManager, StartupUnavailableError
from .interaction import ConsoleInteraction
from .languages import filetype_for_path
from .session import Session
from .tree import LanguageTree, TreeBuilder, load_injection_query
from .utils import colorize, log, print_table

USAGE_EXAMPLES = """
examples:
  ts-autoinstall status
  ts-autoinstall install python lua --yes
  ts-autoinstall install typescriptreact --lang tsx
  ts-autoinstall open README.md --queries ~/.local/share/nvim/lazy/nvim-treesitter
  ts-autoinstall config set timeout 60000
"""


class HeadlessHost:
    """A host without an editor: documents are files, each shown in one window."""

    def __init__(self, builder: TreeBuilder | None = None) -> None:
        self.builder = builder
        self.global_options: dict[str, object] = {}
        self._callbacks: list = []

    def on_filetype(self, callback) -> None:
        self._callbacks.append(callback)

    def emit_filetype(self, document, filetype: str) -> None:
        document.filetype = filetype
        for cb in self._callbacks:
            cb(document, filetype)

    def filetype_of(self, document) -> str | None:
        return getattr(document, "filetype", None)

    def attach(self, document, lang: str) -> LanguageTree | None:
        if self.builder is None:
            return None
        document.tree = self.builder.build(document.source, lang)
        return document.tree

    def windows_for(self, document) -> list:
        return [document]

    def set_window_option(self, window, name: str, value: object) -> None:
        window.options[name] = value

    def set_buffer_option(self, document, name: str, value: object) -> None:
        document.options[name] = value

    def set_global_option(self, name: str, value: object) -> None:
        self.global_options[name] = value


def _print_error(message: str) -> None:
    print(colorize(f"  Error: {message}", "red", sys.stderr), file=sys.stderr)


def _session(args, host: HeadlessHost) -> Session:
    opts = load_config()
    if getattr(args, "yes", False):
        opts["skip_approval"] = True
    session = Session(host, PipGrammarManager(), ConsoleInteraction())
    try:
        session.configure(opts)
    except StartupUnavailableError as exc:
        _print_error(str(exc))
        sys.exit(1)
    return session


def cmd_status(args: argparse.Namespace) -> None:
    """Show known grammars and whether they are installed."""
    manager = PipGrammarManager()
    installed = set(manager.list_installed())
    rows = [
        [lang, manager.packages[lang].package, "yes" if lang in installed else "no"]
        for lang in manager.list_available()
    ]
    if args.json:
        print(json.dumps(
            [{"lang": r[0], "package": r[1], "installed": r[2] == "yes"} for r in rows],
            indent=2,
        ))
        return
    print()
    print_table(["Language", "Package", "Installed"], rows)
    print()


def cmd_install(args: argparse.Namespace) -> None:
    """Install grammars for the given filetypes."""
    session = _session(args, HeadlessHost())
    failed = False
    try:
        for filetype in args.filetypes:
            document = SimpleNamespace(filetype=filetype, options={})
            lang = session.ensure_installed(document, filetype, args.lang)
            if lang:
                print(colorize(f"  {filetype}: {lang} ready", "green"))
            else:
                print(colorize(f"  {filetype}: no grammar", "yellow"))
                failed = True
    finally:
        session.grammars.shutdown()
    if failed:
        sys.exit(1)


def cmd_open(args: argparse.Namespace) -> None:
    """Activate a file as an editor would, installing injected grammars too."""
    path = Path(args.file)
    try:
        source = path.read_bytes()
    except OSError as exc:
        _print_error(f"could not read {path}: {exc}")
        sys.exit(1)
    filetype = args.filetype or filetype_for_path(path.name)
    if not filetype:
        _print_error(f"cannot tell the filetype of {path}; pass --filetype")
        sys.exit(1)

    search_paths = [Path(p).expanduser() for p in args.queries or []]
    if not search_paths:
        log("  No --queries given; injected languages will not be discovered.")
    builder = TreeBuilder(lambda lang: load_injection_query(lang, search_paths))
    host = HeadlessHost(builder)
    session = _session(args, host)

    document = SimpleNamespace(path=str(path), source=source, options={}, tree=None)
    try:
        host.emit_filetype(document, filetype)
    finally:
        session.grammars.shutdown()

    if document.tree is None:
        print(colorize(f"  {path}: not attached", "yellow"))
        return
    print(colorize(f"  {path}: {document.tree.lang}", "bold"))
    _print_tree(document.tree, depth=1)
    for name, value in sorted(document.options.items()):
        print(colorize(f"  {name} = {value}", "dim"))
    for lang, ok in sorted(session.cache.attempt.items()):
        if lang != document.tree.lang:
            print(f"  injected {lang}: {'ready' if ok else 'unavailable'}")


def _print_tree(tree: LanguageTree, depth: int) -> None:
    for child in tree.children():
        print(f"  {'  ' * depth}{child.lang} {child.source_range}")
        _print_tree(child, depth + 1)


def cmd_config(args: argparse.Namespace) -> None:
    """Handle config subcommands: show, set, unset."""
    config = load_config()
    action = getattr(args, "config_action", None)
    if action in ("set", "unset"):
        try:
            if action == "set":
                set_config_value(config, args.config_key, args.config_value)
            else:
                unset_config_value(config, args.config_key)
        except (KeyError, ValueError) as e:
            _print_error(str(e).strip("'\""))
            sys.exit(1)
        try:
            save_config(config)
        except OSError as e:
            _print_error(f"could not save config: {e}")
            sys.exit(1)
        shown = config.get(args.config_key, CONFIG_SCHEMA[args.config_key].default)
        print(colorize(f"  Set {args.config_key} = {shown}", "green"))
        return

    print(colorize(f"\n  ts-autoinstall configuration ({CONFIG_FILE})\n", "bold"))
    for key, schema in CONFIG_SCHEMA.items():
        value = config.get(key, schema.default)
        default_tag = colorize(" (default)", "dim") if value == schema.default else ""
        print(f"  {key:<15} {value}{default_tag}")
        print(colorize(f"  {'':15} {schema.description}", "dim"))
    print()


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ts-autoinstall",
        description="Install tree-sitter grammars on demand",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_status = sub.add_parser("status", help="List known grammars and install state")
    p_status.add_argument("--json", action="store_true")

    p_install = sub.add_parser("install", help="Install grammars for filetypes")
    p_install.add_argument("filetypes", nargs="+", metavar="FILETYPE")
    p_install.add_argument("--lang", type=str, default=None,
                           help="Grammar to install instead of inferring it")
    p_install.add_argument("--yes", action="store_true", help="Do not ask before installing")

    p_open = sub.add_parser("open", help="Activate a file and install injected grammars")
    p_open.add_argument("file")
    p_open.add_argument("--filetype", type=str, default=None)
    p_open.add_argument("--queries", action="append", metavar="DIR",
                        help="Directory containing queries/<lang>/injections.scm (repeatable)")
    p_open.add_argument("--yes", action="store_true", help="Do not ask before installing")

    p_config = sub.add_parser("config", help="Show or change settings")
    config_sub = p_config.add_subparsers(dest="config_action")
    config_sub.add_parser("show", help="Show all settings")
    p_set = config_sub.add_parser("set", help="Set a setting")
    p_set.add_argument("config_key", choices=sorted(CONFIG_SCHEMA))
    p_set.add_argument("config_value")
    p_unset = config_sub.add_parser("unset", help="Reset a setting to its default")
    p_unset.add_argument("config_key", choices=sorted(CONFIG_SCHEMA))

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = create_parser()
    args = parser.parse_args(argv)

    commands = {
        "status": cmd_status,
        "install": cmd_install,
        "open": cmd_open,
        "config": cmd_config,
    }
    try:
        commands[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(1)


if __name__ == "__main__":
    main()
