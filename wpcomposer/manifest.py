"""Read, modify and write the Composer manifest (composer.json).

Only ``require`` and ``require-dev`` are modeled. Every other top-level
section is carried through untouched, in its original order, so a load
followed by a save leaves unrelated parts of the document alone.

Plugin and theme packages share the two sections and are told apart by
their namespace prefix, e.g. ``wpackagist-plugin/akismet`` vs
``wpackagist-theme/twentytwentyfour``.
"""

from __future__ import annotations

import json
import logging
import os
import re
import stat
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from config import ANY_VERSION, COMPOSER_FILE, PLUGIN_NAMESPACE, THEME_NAMESPACE
from .errors import (
    InvalidArgumentError,
    ManifestNotFoundError,
    ManifestParseError,
    ManifestReadError,
    ManifestWriteError,
)
from .utils import log

PLUGIN = "plugin"
THEME = "theme"
KINDS = (PLUGIN, THEME)

NORMAL = "normal"
DEV = "dev"
SCOPES = (NORMAL, DEV)

REQUIRE = "require"
REQUIRE_DEV = "require-dev"
_SECTION_FOR_SCOPE = {NORMAL: REQUIRE, DEV: REQUIRE_DEV}

DEFAULT_INDENT = 4
_INDENT_RE = re.compile(r"^\{\s*\n([ \t]+)\S")
_VERSION_SUFFIX_RE = re.compile(r"\.\d[\w.-]*$")


@dataclass(frozen=True)
class Namespaces:
    plugin: str = PLUGIN_NAMESPACE
    theme: str = THEME_NAMESPACE

    def prefix(self, kind: str) -> str:
        if kind == PLUGIN:
            return f"{self.plugin}/"
        if kind == THEME:
            return f"{self.theme}/"
        raise InvalidArgumentError(f"unknown dependency kind: {kind!r}")


DEFAULT_NAMESPACES = Namespaces()


@dataclass
class Manifest:
    """In-memory composer.json.

    ``require``/``require_dev`` are None when the section is absent.
    ``other`` keeps every unmodeled top-level section as-is, ``order`` the
    original top-level key order, and ``loaded_sections`` which of the two
    dependency sections existed on disk.
    """

    require: dict[str, str] | None = None
    require_dev: dict[str, str] | None = None
    other: dict[str, Any] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)
    loaded_sections: frozenset[str] = frozenset()
    indent: int | str = DEFAULT_INDENT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Manifest":
        manifest = cls(order=list(data.keys()))
        for key, value in data.items():
            if key in (REQUIRE, REQUIRE_DEV):
                if not isinstance(value, dict):
                    raise ManifestParseError(
                        f'"{key}" must be an object, got {type(value).__name__}'
                    )
                for name, version in value.items():
                    if not isinstance(version, str) or not version:
                        raise ManifestParseError(
                            f'"{key}.{name}" must be a non-empty version string, got {version!r}'
                        )
                section = dict(value)
                if key == REQUIRE:
                    manifest.require = section
                else:
                    manifest.require_dev = section
                continue
            manifest.other[key] = value
        manifest.loaded_sections = frozenset(
            key for key in (REQUIRE, REQUIRE_DEV) if key in data
        )
        return manifest

    def section(self, scope: str, create: bool = False) -> dict[str, str] | None:
        if scope not in SCOPES:
            raise InvalidArgumentError(f"unknown scope: {scope!r}")
        current = self.require if scope == NORMAL else self.require_dev
        if current is None and create:
            current = {}
            if scope == NORMAL:
                self.require = current
            else:
                self.require_dev = current
        return current

    def _keeps(self, key: str) -> bool:
        section = self.require if key == REQUIRE else self.require_dev
        if section is None:
            return False
        # Sections created in memory are dropped again once emptied
        return bool(section) or key in self.loaded_sections

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        keys = list(self.order)
        keys += [k for k in (REQUIRE, REQUIRE_DEV) if k not in keys]
        keys += [k for k in self.other if k not in keys]
        for key in keys:
            if key == REQUIRE:
                if self._keeps(REQUIRE):
                    out[REQUIRE] = dict(self.require or {})
            elif key == REQUIRE_DEV:
                if self._keeps(REQUIRE_DEV):
                    out[REQUIRE_DEV] = dict(self.require_dev or {})
            elif key in self.other:
                out[key] = self.other[key]
        return out

    def dumps(self) -> str:
        text = json.dumps(self.to_dict(), indent=self.indent, ensure_ascii=False)
        return text + "\n"


# ─── Paths ──────────────────────────────────────────────────────────────
def resolve_manifest_path(path: str | Path | None = None, site: str | Path | None = None) -> Path:
    """Return the explicit path, else <site>/composer.json, else ./composer.json."""
    if path:
        return Path(path)
    if site:
        return Path(site) / COMPOSER_FILE
    return Path.cwd() / COMPOSER_FILE


# ─── Names ──────────────────────────────────────────────────────────────
def slug_from_source(source: str) -> str:
    """Reduce a slug, zip path or download URL to a bare slug.

    ``https://downloads.wordpress.org/plugin/akismet.5.3.zip`` -> ``akismet``
    """
    value = (source or "").strip()
    if "/" in value or value.endswith(".zip"):
        value = value.rstrip("/").rsplit("/", 1)[-1]
        value = value.split("?", 1)[0]
        if value.endswith(".zip"):
            value = _VERSION_SUFFIX_RE.sub("", value[: -len(".zip")])
    if not value or any(ch.isspace() for ch in value):
        raise InvalidArgumentError(f"not a valid slug: {source!r}")
    return value


def package_name(slug: str, kind: str, namespaces: Namespaces = DEFAULT_NAMESPACES) -> str:
    prefix = namespaces.prefix(kind)
    if slug.startswith(prefix):
        return slug
    return prefix + slug_from_source(slug)


def strip_namespace(name: str, kind: str, namespaces: Namespaces = DEFAULT_NAMESPACES) -> str:
    prefix = namespaces.prefix(kind)
    if name.startswith(prefix):
        return name[len(prefix):]
    return name


def is_wordpress_plugin(name: str, namespaces: Namespaces = DEFAULT_NAMESPACES) -> bool:
    return name.startswith(namespaces.prefix(PLUGIN))


def is_wordpress_theme(name: str, namespaces: Namespaces = DEFAULT_NAMESPACES) -> bool:
    return name.startswith(namespaces.prefix(THEME))


# ─── Load / save ────────────────────────────────────────────────────────
def _detect_indent(text: str) -> int | str:
    match = _INDENT_RE.match(text)
    if match is None:
        return DEFAULT_INDENT
    indent = match.group(1)
    if set(indent) == {" "}:
        return len(indent)
    return indent


def load(path: str | Path | None = None, must_exist: bool = False) -> Manifest:
    """Load the manifest at ``path`` (or ./composer.json).

    A missing file is an empty manifest unless ``must_exist`` is set.
    Raises ManifestParseError when the content is not a JSON object.
    """
    target = resolve_manifest_path(path)
    try:
        text = target.read_text(encoding="utf-8")
    except FileNotFoundError:
        if must_exist:
            raise ManifestNotFoundError(f"no manifest at {target}") from None
        log(f"No manifest at {target}; starting empty")
        return Manifest()
    except UnicodeDecodeError as err:
        raise ManifestParseError(f"{target} is not valid UTF-8: {err}") from err
    except OSError as err:
        raise ManifestReadError(f"could not read {target}: {err}") from err

    if not text.strip():
        logging.warning("Manifest %s is empty; treating as no dependencies", target)
        return Manifest()

    try:
        data = json.loads(text)
    except ValueError as err:
        raise ManifestParseError(f"{target} is not valid JSON: {err}") from err
    if not isinstance(data, dict):
        raise ManifestParseError(
            f"{target} must contain a JSON object, got {type(data).__name__}"
        )

    manifest = Manifest.from_dict(data)
    manifest.indent = _detect_indent(text)
    log(f"Loaded manifest {target} ({len(manifest.order)} sections)")
    return manifest


def save(manifest: Manifest, path: str | Path | None = None) -> bool:
    """Atomically write the manifest to ``path`` (or ./composer.json).

    Returns True; raises ManifestWriteError when the file cannot be written.
    """
    target = resolve_manifest_path(path)
    text = manifest.dumps()
    tmp_path = ""
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            delete=False,
            dir=str(target.parent),
            prefix=".composer-",
            suffix=".tmp",
        ) as tmp:
            tmp_path = tmp.name
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        mode = 0o644
        if target.exists():
            mode = stat.S_IMODE(target.stat().st_mode)
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, str(target))
    except OSError as err:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise ManifestWriteError(f"could not write {target}: {err}") from err
    log(f"PASS: Saved manifest {target}")
    return True


# ─── Mutations ──────────────────────────────────────────────────────────
def add_dependency(
    manifest: Manifest,
    slug: str,
    version: str | None = ANY_VERSION,
    scope: str = NORMAL,
    kind: str = PLUGIN,
    namespaces: Namespaces = DEFAULT_NAMESPACES,
) -> Manifest:
    """Set ``<namespace>/<slug>`` to ``version`` in ``scope``.

    The entry is removed from the other scope first; an empty version
    becomes ``*``.
    """
    name = package_name(slug, kind, namespaces)
    constraint = (version or "").strip() or ANY_VERSION
    other_scope = DEV if scope == NORMAL else NORMAL
    target = manifest.section(scope, create=True)
    other = manifest.section(other_scope)
    if other is not None and other.pop(name, None) is not None:
        log(f"Moved {name} from {_SECTION_FOR_SCOPE[other_scope]} to {_SECTION_FOR_SCOPE[scope]}")
    target[name] = constraint
    return manifest


def remove_dependency(
    manifest: Manifest,
    slug: str,
    kind: str = PLUGIN,
    scope: str | None = None,
    namespaces: Namespaces = DEFAULT_NAMESPACES,
) -> Manifest:
    """Delete ``<namespace>/<slug>`` from ``scope``, or from both when None."""
    name = package_name(slug, kind, namespaces)
    scopes = SCOPES if scope is None else (scope,)
    for current in scopes:
        section = manifest.section(current)
        if section is not None and section.pop(name, None) is not None:
            log(f"Removed {name} from {_SECTION_FOR_SCOPE[current]}")
    return manifest


def declared(
    manifest: Manifest,
    kind: str,
    scope: str = NORMAL,
    namespaces: Namespaces = DEFAULT_NAMESPACES,
) -> list[tuple[str, str]]:
    """Return ``(slug, version)`` pairs of ``kind`` declared in ``scope``."""
    section = manifest.section(scope) or {}
    prefix = namespaces.prefix(kind)
    return [
        (name[len(prefix):], version)
        for name, version in section.items()
        if name.startswith(prefix)
    ]


def set_installer_paths(manifest: Manifest, content_dir: str) -> Manifest:
    """Point composer/installers at ``<content_dir>/plugins`` and ``/themes``."""
    content_dir = content_dir.strip().strip("/") or "wp-content"
    extra = manifest.other.get("extra")
    if not isinstance(extra, dict):
        extra = {}
    paths = extra.get("installer-paths")
    if not isinstance(paths, dict):
        paths = {}
    managed = {"type:wordpress-plugin": "plugins", "type:wordpress-theme": "themes"}
    kept = {
        key: types
        for key, types in paths.items()
        if not (isinstance(types, list) and set(types) & set(managed))
    }
    for type_tag, subdir in managed.items():
        kept[f"{content_dir}/{subdir}/{{$name}}/"] = [type_tag]
    extra["installer-paths"] = kept
    manifest.other["extra"] = extra
    if "extra" not in manifest.order:
        manifest.order.append("extra")
    log(f"Installer paths set under {content_dir}")
    return manifest
