#!/usr/bin/env python3
"""CLI to keep WordPress plugins/themes and composer.json in sync.

Inputs: a command plus flags, see USAGE. The site is the current
directory unless --path=DIR (or a bare domain under the site root) is given.
Side effects: rewrites composer.json and runs WP-CLI against the site.
"""
import sys

from wpcomposer.commands import (
    Options,
    add_all_installed,
    add_installed,
    add_items,
    install_declared,
    installer_dir_for,
    remove_items,
    run_and_sync,
    uninstall_declared,
)
from wpcomposer.errors import InvalidArgumentError, WPComposerError
from wpcomposer.manifest import PLUGIN, THEME
from wpcomposer.utils import init_logging, status_fail

# ─── CONFIG ──────────────────────────────────────────────────────────────
USAGE = (
    "usage: [--path=SITE] plugins|themes add|install|uninstall"
    " | add"
    " | plugin|theme add|remove <slug>..."
    " | run plugin|theme install|uninstall|delete <slug>... [wp flags]"
)
# Flags consumed here; anything else after `run` goes to WP-CLI
OWN_FLAGS = ("path", "file", "dev", "all", "latest", "installer-path", "ip")
PLURAL_KINDS = {"plugins": PLUGIN, "themes": THEME}
SINGLE_KINDS = {"plugin": PLUGIN, "theme": THEME}


# ─── Parsing ─────────────────────────────────────────────────────────────
def split_argv(argv: list[str]) -> tuple[list[str], dict[str, str | bool], list[str]]:
    """Split argv into positionals, own --flags and pass-through flags."""
    args: list[str] = []
    flags: dict[str, str | bool] = {}
    passthrough: list[str] = []
    for a in argv:
        if not a.startswith("--"):
            args.append(a)
            continue
        name, sep, value = a[2:].partition("=")
        if name in OWN_FLAGS or name == "version":
            flags[name] = value if sep else True
        if name not in OWN_FLAGS:
            # --version is both recorded and forwarded
            passthrough.append(a)
    return args, flags, passthrough


def build_options(site: str, flags: dict[str, str | bool]) -> Options:
    installer = flags.get("installer-path", flags.get("ip", ""))
    if installer is True:
        installer = installer_dir_for(site)
    version = flags.get("version", "")
    file = flags.get("file", "")
    if version is True or file is True:
        raise InvalidArgumentError("--version and --file need a value")
    return Options(
        file=file,
        dev=bool(flags.get("dev")),
        include_all=bool(flags.get("all")),
        latest=bool(flags.get("latest")),
        version=version,
        installer_path=installer or "",
    )


# ─── Dispatch ────────────────────────────────────────────────────────────
def dispatch(site: str, args: list[str], opts: Options, passthrough: list[str]) -> bool:
    command = args[0]
    if command == "add":
        return add_all_installed(site, opts)
    if command in PLURAL_KINDS:
        kind = PLURAL_KINDS[command]
        action = args[1] if len(args) > 1 else ""
        if action == "add":
            return add_installed(site, kind, opts)
        if action == "install":
            return install_declared(site, kind, opts)
        if action == "uninstall":
            return uninstall_declared(site, kind, opts)
        raise InvalidArgumentError(f"{action or '(none)'} is not a valid action")
    if command in SINGLE_KINDS:
        kind = SINGLE_KINDS[command]
        action = args[1] if len(args) > 1 else ""
        if action == "add":
            return add_items(site, kind, args[2:], opts)
        if action == "remove":
            return remove_items(site, kind, args[2:], opts)
        raise InvalidArgumentError(f"{action or '(none)'} is not a valid action")
    if command == "run":
        if len(args) < 3 or args[1] not in SINGLE_KINDS:
            raise InvalidArgumentError("run needs plugin|theme and an action")
        return run_and_sync(site, SINGLE_KINDS[args[1]], args[2], args[3:], passthrough, opts)
    raise InvalidArgumentError(f"{command} is not a valid command")


def main(argv: list[str] | None = None) -> int:
    init_logging(None)
    args, flags, passthrough = split_argv(sys.argv[1:] if argv is None else argv)
    if not args:
        status_fail(USAGE)
        return 1
    site = flags.get("path")
    if not isinstance(site, str) or not site:
        site = "."
    try:
        unknown = [p for p in passthrough if not p.startswith("--version")]
        if unknown and args[0] != "run":
            raise InvalidArgumentError(f"unknown option(s): {' '.join(unknown)}")
        opts = build_options(site, flags)
        ok = dispatch(site, args, opts, passthrough)
    except WPComposerError as err:
        status_fail(str(err))
        return 1
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
