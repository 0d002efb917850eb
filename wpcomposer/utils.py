"""Utility helpers shared by the manifest and WP-CLI layers.

- init_logging: configure quiet console + rotating file logging with run-id.
- status_pass/status_warn/status_fail: terse console status lines (with run-id).
- log: debug-level logger for normal progress lines (file-oriented).
- user_uid: resolve uid for a system user or -1 if missing.
- normalize_wp_parts: parse a WP-CLI command into argv parts.
- parse_json_relaxed: json.loads with tolerance for ANSI codes and noise.
- require: log a SKIP line when a condition fails.
"""

import json
import logging
import os
import pwd
import re
import shlex
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Sequence

from config import LOG_DIR


_RUN_ID = ""
ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


def init_logging(run_id: str | None = None, log_dir: str | None = None) -> str:
    """Initialize logging with console + rotating file handlers.

    - Console: CRITICAL only; user-facing output goes through status_* lines.
    - File: DEBUG+, rich format, written to <log_dir>/wpcomposer-<rid>.log
    Returns the run-id used. Later calls reuse the first run-id.
    """
    global _RUN_ID
    if _RUN_ID:
        return _RUN_ID

    rid = run_id or os.environ.get("WPCOMPOSER_RID") or uuid.uuid4().hex[:8]
    _RUN_ID = rid

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    target_dir = Path(log_dir or LOG_DIR)
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        logfile = target_dir / f"wpcomposer-{rid}.log"
    except OSError:
        logfile = Path.cwd() / f"wpcomposer-{rid}.log"

    # Quiet any pre-existing console handlers
    for h in root.handlers:
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler):
            h.setLevel(logging.CRITICAL)

    has_file = any(
        isinstance(h, RotatingFileHandler)
        and getattr(h, "baseFilename", "").endswith(logfile.name)
        for h in root.handlers
    )
    if not has_file:
        fh = RotatingFileHandler(str(logfile), maxBytes=5 * 1024 * 1024, backupCount=3)
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
        root.addHandler(fh)

    if not any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root.handlers
    ):
        ch = logging.StreamHandler()
        ch.setLevel(logging.CRITICAL)
        ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        root.addHandler(ch)

    logging.debug("Logging initialized. run_id=%s file=%s", rid, logfile)
    os.environ["WPCOMPOSER_RID"] = rid
    return rid


def _rid() -> str:
    return _RUN_ID or os.environ.get("WPCOMPOSER_RID", "--------")


def status_pass(msg: str) -> None:
    print(f"PASS: {msg} [{_rid()}]")


def status_warn(msg: str) -> None:
    print(f"WARN: {msg} [{_rid()}]")


def status_fail(msg: str) -> None:
    print(f"FAIL: {msg} [{_rid()}]", flush=True)


def log(msg: str) -> None:
    # File-oriented normal progress; stays out of console noise.
    logging.debug(msg)


def user_uid(name: str) -> int:
    if not name:
        return -1
    try:
        return pwd.getpwnam(name).pw_uid
    except KeyError:
        return -1


def normalize_wp_parts(command: str | Sequence[str] | None) -> list[str]:
    """Normalize command into argv parts.

    Accepts str (parsed with shlex) or a sequence of strings.
    Returns a list; empty list indicates an error already reported.
    """
    if command is None:
        logging.error("wp called with None command")
        return []
    if isinstance(command, str):
        text = command.strip()
        if not text:
            logging.error("wp called with empty command")
            return []
        try:
            return shlex.split(text)
        except ValueError as err:
            logging.error("Could not parse command: %s", err)
            return []
    if isinstance(command, (list, tuple)):
        parts = [str(p) for p in command]
        if not parts:
            logging.error("wp called with empty argv list")
        return parts
    logging.error("Unsupported command type: %s", type(command).__name__)
    return []


def strip_ansi(text: str) -> str:
    return ANSI_RE.sub("", text)


def parse_json_relaxed(text: str | None, default: Any) -> Any:
    """Parse JSON with basic tolerance for noise.

    - Strips BOM and ANSI codes
    - Falls back to the span between the outermost brackets or braces
    - Returns default on failure
    """
    if text is None:
        return default
    s = strip_ansi(text.lstrip("\ufeff").strip())
    candidates = [s]
    for open_c, close_c in (("[", "]"), ("{", "}")):
        lb = s.find(open_c)
        rb = s.rfind(close_c)
        if lb != -1 and rb > lb:
            candidates.append(s[lb : rb + 1])
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except ValueError:
            continue
    return default


def require(condition: bool, message: str, level: str = "info") -> bool:
    if condition:
        return True

    if level == "error":
        logging.error("SKIP: %s", message)
    elif level == "warning":
        logging.warning("SKIP: %s", message)
    else:
        log(f"SKIP: {message}")

    return False
