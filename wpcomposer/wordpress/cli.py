# cli.py
# Invariants:
# - All WP-CLI access goes through these wrappers; callers never add output flags.
# - Read-ish commands are coerced to JSON at the source by appending:
#     --format=json --quiet --no-color --skip-plugins --skip-themes
# - Parsing strips ANSI and PHP notices and extracts real JSON when present.
# - Accept commands with or without leading "wp"/"--path"; we supply --path.
# - Logs: one PASS/FAIL per call; console stays quiet; file logs keep details.

from __future__ import annotations

import json
import logging
import os
import re
import subprocess
import time
from pathlib import Path
from typing import Any, Tuple, Union

from config import SITE_ROOT_DIR, WP_CLI_PATH, WP_CLI_USER
from wpcomposer.utils import log, normalize_wp_parts, parse_json_relaxed, strip_ansi, user_uid
from .wp_json import extract_json_blob

WP_TIMEOUT = int(os.environ.get("WP_TIMEOUT", "600"))  # seconds
os.environ.setdefault("WP_CLI_DISABLE_AUTO_CHECK_UPDATE", "1")

Target = Union[str, Path]

# ── Noise filters ───────────────────────────────────────────────────────────────
NOISE_PREFIXES = (
    "PHP Warning:", "PHP Notice:", "PHP Deprecated:", "PHP Fatal error:",
    "Warning:", "Notice:", "Deprecated:", "Fatal error:", "Error:", "PHP:",
)
NOISE_PATTERNS = (
    re.compile(r"^#\d+:"),               # stack frames
    re.compile(r"^'trace'\s*=>"),
    re.compile(r"^\)\]$"),
)
# `path` is left out: `wp plugin path` rejects --format
READ_VERBS = frozenset({"list", "get", "search"})


def _drop_noise_lines(text: str) -> list[str]:
    out: list[str] = []
    for ln in text.splitlines():
        ln = ln.strip()
        if not ln:
            continue
        if ln.startswith(NOISE_PREFIXES):
            continue
        if any(p.search(ln) for p in NOISE_PATTERNS):
            continue
        out.append(ln)
    return out


def _unquote(tok: str) -> str:
    if len(tok) >= 2 and tok[0] == tok[-1] and tok[0] in "\"'":
        return tok[1:-1]
    return tok


# ── Command building ────────────────────────────────────────────────────────────
def site_path(target: Target) -> Path:
    """A Path or anything path-like is used as-is; a bare domain lives under SITE_ROOT_DIR."""
    if isinstance(target, Path):
        return target
    text = str(target)
    if os.sep in text or text in (".", ".."):
        return Path(text)
    return Path(SITE_ROOT_DIR) / text


def _wp_base_argv(path: Path) -> list[str]:
    parts = [WP_CLI_PATH, f"--path={path}"]
    uid = user_uid(WP_CLI_USER)
    if uid < 0 or os.geteuid() == uid:
        return parts
    return ["sudo", "-u", WP_CLI_USER] + parts


def _sanitize_parts(parts: list[str]) -> list[str]:
    while parts and os.path.basename(parts[0]) == "wp":
        parts = parts[1:]
    cleaned: list[str] = []
    skip_next = False
    for i, p in enumerate(parts):
        if skip_next:
            skip_next = False
            continue
        if p.startswith("--path="):
            continue
        if p == "--path":
            if i + 1 < len(parts) and not parts[i + 1].startswith("-"):
                skip_next = True
            continue
        cleaned.append(p)
    return cleaned


def _with_flags(parts: list[str], *flags: str) -> list[str]:
    out = parts[:]
    for flag in flags:
        if flag not in out:
            out.append(flag)
    return out


def _fmt_cmd_for_log(args: list[str]) -> str:
    if not args:
        return ""
    start = 3 if args[0] == "sudo" and len(args) >= 4 and args[1] == "-u" else 0
    # binary and --path are noise in logs
    return " ".join(a for a in args[start + 1:] if not a.startswith("--path="))


def looks_like_read_cmd(parts: list[str]) -> bool:
    if READ_VERBS & set(parts[:3]):
        return True
    return any(p.startswith("--fields=") for p in parts)


# ── Running ─────────────────────────────────────────────────────────────────────
def _wp_run(target: Target, parts: list[str], timeout: int = WP_TIMEOUT) -> Tuple[bool, str, str]:
    args = _wp_base_argv(site_path(target)) + _with_flags(parts, "--no-color")
    shown = _fmt_cmd_for_log(args)
    t0 = time.monotonic()
    try:
        proc = subprocess.run(
            args,
            text=True,
            capture_output=True,
            timeout=timeout,
            env=os.environ.copy(),
            encoding="utf-8",
            errors="replace",
        )
    except subprocess.TimeoutExpired:
        logging.error("wp %s timeout after %.1fs", shown, time.monotonic() - t0)
        return False, "", "timeout"
    except OSError as err:
        logging.error("wp %s could not start: %s", shown, err)
        return False, "", str(err)

    dt = time.monotonic() - t0
    if proc.returncode == 0:
        log(f"PASS: wp {shown} ({dt:.1f}s)")
        return True, proc.stdout or "", proc.stderr or ""
    logging.error(
        "wp %s exit=%s\nSTDERR: %s",
        shown,
        proc.returncode,
        "\n".join(_drop_noise_lines(proc.stderr or "")),
    )
    return False, proc.stdout or "", proc.stderr or ""


# ── Parsing ─────────────────────────────────────────────────────────────────────
def parse_wp_output(text: str) -> Any | None:
    """Best-effort decode of WP-CLI stdout.

    1) Strip ANSI; drop PHP/WP noise lines.
    2) Embedded JSON container -> decoded value.
    3) Single clean line -> JSON scalar if it decodes, else the unquoted string.
    4) Several lines -> list of lines (porcelain output).
    None if nothing usable remains.
    """
    lines = _drop_noise_lines(strip_ansi(text or ""))
    if not lines:
        return None
    cleaned = "\n".join(lines)

    blob = extract_json_blob(cleaned)
    if blob is not None:
        return parse_json_relaxed(blob, default=None)

    if len(lines) == 1:
        try:
            return json.loads(lines[0])
        except ValueError:
            return _unquote(lines[0])
    return [_unquote(ln) for ln in lines]


# ── Public API ──────────────────────────────────────────────────────────────────
def wp_cmd_json(target: Target, command: Any, timeout: int = WP_TIMEOUT) -> Tuple[bool, Any]:
    """Run a WP-CLI command against ``target`` and return (ok, decoded output).

    Output that cannot be decoded comes back as [] for read-ish commands
    and None otherwise.
    """
    parts = _sanitize_parts(normalize_wp_parts(command))
    if not parts:
        return False, None
    readish = looks_like_read_cmd(parts)
    if readish and not any(p.startswith("--format=") for p in parts):
        parts = _with_flags(
            parts + ["--format=json"], "--skip-plugins", "--skip-themes", "--quiet"
        )
    ok, out, err = _wp_run(target, parts, timeout=timeout)
    if err:
        logging.debug("Stderr (len %d): %s", len(err), _drop_noise_lines(err)[:3])

    data = parse_wp_output(out)
    if data is None and readish:
        logging.warning("wp %s: no JSON in output", " ".join(parts[:2]))
        data = []
    return ok, data


def wp_cmd(target: Target, command: Any, timeout: int = WP_TIMEOUT) -> bool:
    """Boolean wrapper: run the command and discard its output."""
    ok, _ = wp_cmd_json(target, command, timeout=timeout)
    return ok
