"""Installed plugin/theme listing and install/uninstall via WP-CLI."""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from config import LATEST_ALIASES
from wpcomposer.manifest import PLUGIN, THEME
from wpcomposer.utils import log, require
from .cli import Target, wp_cmd, wp_cmd_json
from .wp_json import rows_of

SKIPPED_STATUSES = ("must-use", "dropin")


def list_installed(site: Target, kind: str) -> list[dict[str, str]] | None:
    """Return name/version/status rows for installed plugins or themes.

    Must-use plugins and drop-ins are left out; WP-CLI cannot install them.
    Returns None when the listing itself fails.
    """
    ok, data = wp_cmd_json(site, [kind, "list", "--fields=name,version,status"])
    if not require(ok and isinstance(data, list), f"Could not list {kind}s", "error"):
        return None

    items: list[dict[str, str]] = []
    for row in rows_of(data):
        name = str(row.get("name", "")).strip()
        status = str(row.get("status", "")).strip().lower()
        if not name:
            continue
        if status in SKIPPED_STATUSES:
            log(f"Skipping {status} {kind} {name}")
            continue
        items.append(
            {
                "name": name,
                "version": str(row.get("version") or "").strip(),
                "status": status,
            }
        )
    return items


def install_item(site: Target, kind: str, slug: str, version: str = "*") -> bool:
    command = [kind, "install", slug]
    if version and version not in LATEST_ALIASES:
        command.append(f"--version={version}")
    installed = wp_cmd(site, command)
    if not installed:
        logging.error("Could not install %s %s (%s)", kind, slug, version or "*")
    return installed


def uninstall_items(site: Target, kind: str, slugs: list[str]) -> bool:
    if not slugs:
        return True
    if kind == PLUGIN:
        # deactivate first so uninstall hooks run against an inactive plugin
        if not wp_cmd(site, ["plugin", "deactivate"] + slugs):
            logging.warning("Could not deactivate all of: %s", ", ".join(slugs))
        removed = wp_cmd(site, ["plugin", "uninstall"] + slugs)
    elif kind == THEME:
        removed = wp_cmd(site, ["theme", "delete"] + slugs)
    else:
        logging.error("Unknown kind %s", kind)
        return False
    if not removed:
        logging.error("Could not uninstall %s(s): %s", kind, ", ".join(slugs))
    return removed


def content_dir_name(site: Target) -> str | None:
    """Name of the content directory, e.g. ``wp-content``, from `wp plugin path`."""
    ok, data = wp_cmd_json(site, ["plugin", "path"])
    if not ok or not isinstance(data, str) or not data.strip():
        logging.error("Could not read plugin path")
        return None
    return PurePosixPath(data.strip()).parent.name or None
