"""Sync workflows between a WordPress site and its composer.json.

Each function is one load/mutate/save cycle. Manifest problems raise
WPComposerError subclasses; WP-CLI failures are reported and turn into a
False result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from config import ANY_VERSION
from .errors import InvalidArgumentError
from .manifest import (
    DEFAULT_NAMESPACES,
    DEV,
    KINDS,
    NORMAL,
    PLUGIN,
    REQUIRE,
    REQUIRE_DEV,
    THEME,
    Manifest,
    Namespaces,
    add_dependency,
    declared,
    load,
    remove_dependency,
    resolve_manifest_path,
    save,
    set_installer_paths,
    slug_from_source,
)
from .registry import WordPressOrgRegistry
from .utils import log, status_fail, status_pass, status_warn
from .wordpress.cli import Target, site_path, wp_cmd
from .wordpress.inventory import content_dir_name, install_item, list_installed, uninstall_items

WP_ACTIONS = ("install", "uninstall", "delete")


@dataclass
class Options:
    file: str = ""
    dev: bool = False
    include_all: bool = False
    latest: bool = False
    version: str = ""
    installer_path: str = ""
    namespaces: Namespaces = DEFAULT_NAMESPACES

    @property
    def scope(self) -> str:
        return DEV if self.dev else NORMAL

    @property
    def section(self) -> str:
        return REQUIRE_DEV if self.dev else REQUIRE


def _check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise InvalidArgumentError(f"{kind} is not plugin or theme")


def _open(site: Target, opts: Options, must_exist: bool = False) -> tuple[Manifest, Path]:
    path = resolve_manifest_path(opts.file, site_path(site))
    manifest = load(path, must_exist=must_exist)
    if opts.installer_path:
        set_installer_paths(manifest, opts.installer_path)
    return manifest, path


def _dependency_label(kind: str, opts: Options) -> str:
    return f"{kind} dev dependency" if opts.dev else f"{kind} dependency"


# ─── Installed items -> manifest ────────────────────────────────────────
def add_installed(
    site: Target,
    kind: str,
    opts: Options,
    registry: WordPressOrgRegistry | None = None,
) -> bool:
    """Add every installed plugin or theme to the manifest.

    Without ``include_all`` only items published on wordpress.org are added.
    Versions are pinned to the installed version unless ``latest`` is set.
    """
    _check_kind(kind)
    manifest, path = _open(site, opts)
    items = list_installed(site, kind)
    if items is None:
        status_fail(f"could not list installed {kind}s")
        return False

    registry = registry or WordPressOrgRegistry()
    added: list[str] = []
    for item in items:
        name = item["name"]
        if not opts.include_all and not registry.is_available(name, kind):
            log(f"SKIP: {kind} {name} is not on wordpress.org")
            continue
        version = ANY_VERSION if opts.latest else (item["version"] or ANY_VERSION)
        log(f"Adding {kind} {name}. Using version {version}")
        add_dependency(manifest, name, version, opts.scope, kind, opts.namespaces)
        added.append(name)

    if not added:
        status_warn(f"no installed {kind}s to add to {path}")
        if opts.installer_path:
            save(manifest, path)
            status_pass(f"Saved installer paths under {opts.installer_path} to {path}")
        return True
    save(manifest, path)
    status_pass(f"Saved {', '.join(added)} {kind} dependencies to {path}")
    return True


def add_all_installed(
    site: Target, opts: Options, registry: WordPressOrgRegistry | None = None
) -> bool:
    registry = registry or WordPressOrgRegistry()
    plugins_ok = add_installed(site, PLUGIN, opts, registry)
    themes_ok = add_installed(site, THEME, opts, registry)
    return plugins_ok and themes_ok


# ─── Explicit slugs ─────────────────────────────────────────────────────
def add_items(site: Target, kind: str, sources: list[str], opts: Options) -> bool:
    _check_kind(kind)
    if not sources:
        raise InvalidArgumentError(f"no {kind} given to add")
    slugs = [slug_from_source(s) for s in sources]

    version = ANY_VERSION
    if opts.version and not opts.latest:
        if len(slugs) == 1:
            version = opts.version
        else:
            # items rarely share a version number
            status_warn(f"ignoring --version={opts.version} for {len(slugs)} {kind}s")

    manifest, path = _open(site, opts)
    for slug in slugs:
        log(f"Adding {kind} {slug}. Using version {version}")
        add_dependency(manifest, slug, version, opts.scope, kind, opts.namespaces)
    save(manifest, path)
    status_pass(f"Saved {', '.join(slugs)} as {_dependency_label(kind, opts)} to {path}")
    return True


def remove_items(site: Target, kind: str, sources: list[str], opts: Options) -> bool:
    """Remove slugs from whichever scope holds them; ``dev`` does not narrow it."""
    _check_kind(kind)
    if not sources:
        raise InvalidArgumentError(f"no {kind} given to remove")
    slugs = [slug_from_source(s) for s in sources]

    manifest, path = _open(site, opts)
    for slug in slugs:
        log(f"Removing {kind} {slug}")
        remove_dependency(manifest, slug, kind, None, opts.namespaces)
    save(manifest, path)
    status_pass(f"Removed {', '.join(slugs)} {kind} dependency from {path}")
    return True


# ─── Manifest -> site ───────────────────────────────────────────────────
def install_declared(site: Target, kind: str, opts: Options) -> bool:
    """Install every plugin or theme declared in the selected scope."""
    _check_kind(kind)
    manifest, path = _open(site, opts, must_exist=True)
    items = declared(manifest, kind, opts.scope, opts.namespaces)
    if not items:
        status_warn(f"no {kind}s declared in {opts.section} of {path}")
        return True

    failed: list[str] = []
    for slug, version in items:
        if not install_item(site, kind, slug, version):
            failed.append(slug)
    if failed:
        status_fail(f"could not install {kind}(s) {', '.join(failed)}; see log")
        return False
    installed = ", ".join(slug for slug, _ in items)
    status_pass(f"Installed required {kind}s {installed} found in {opts.section} of {path}")
    return True


def uninstall_declared(site: Target, kind: str, opts: Options) -> bool:
    """Uninstall every declared item of the scope and drop it from the manifest.

    The manifest is only rewritten when WP-CLI reports success.
    """
    _check_kind(kind)
    manifest, path = _open(site, opts, must_exist=True)
    slugs = [slug for slug, _ in declared(manifest, kind, opts.scope, opts.namespaces)]
    if not slugs:
        status_warn(f"no {kind}s declared in {opts.section} of {path}")
        return True

    if not uninstall_items(site, kind, slugs):
        status_fail(f"could not uninstall {kind}(s) {', '.join(slugs)}; manifest unchanged")
        return False
    for slug in slugs:
        remove_dependency(manifest, slug, kind, opts.scope, opts.namespaces)
    save(manifest, path)
    status_pass(
        f"Uninstalled {kind}(s) {', '.join(slugs)} and removed "
        f"{_dependency_label(kind, opts)} from {path}"
    )
    return True


# ─── WP-CLI passthrough ─────────────────────────────────────────────────
def run_and_sync(
    site: Target,
    kind: str,
    action: str,
    sources: list[str],
    wp_args: list[str],
    opts: Options,
) -> bool:
    """Run `wp <kind> <action> ...` and mirror a successful run into the manifest."""
    _check_kind(kind)
    if action not in WP_ACTIONS:
        raise InvalidArgumentError(f"{action} is not a valid action")
    if not sources:
        raise InvalidArgumentError(f"no {kind} given to {action}")

    wp_action = action
    if kind == THEME and action == "uninstall":
        wp_action = "delete"
    if not wp_cmd(site, [kind, wp_action] + sources + wp_args):
        status_fail(f"wp {kind} {wp_action} failed; manifest unchanged")
        return False

    if action == "install":
        return add_items(site, kind, sources, opts)
    return remove_items(site, kind, sources, opts)


def installer_dir_for(site: Target) -> str:
    """Content directory name to use for installer paths; wp-content if unknown."""
    name = content_dir_name(site)
    if not name:
        logging.warning("Falling back to wp-content for installer paths")
        return "wp-content"
    return name
