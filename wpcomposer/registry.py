"""wordpress.org availability lookups for plugin and theme slugs.

A slug published on wordpress.org can be required by name alone (it is
mirrored by WPackagist); anything else needs a zip or VCS source.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter

from config import REGISTRY_TIMEOUT, WPORG_PLUGIN_API, WPORG_THEME_API
from .errors import InvalidArgumentError, RegistryLookupError
from .manifest import PLUGIN, THEME
from .utils import log

logger = logging.getLogger(__name__)

_ENDPOINTS = {
    PLUGIN: (WPORG_PLUGIN_API, "plugin_information"),
    THEME: (WPORG_THEME_API, "theme_information"),
}


class WordPressOrgRegistry:
    def __init__(self, session: requests.Session | None = None, timeout: float = REGISTRY_TIMEOUT):
        self.session = session or self._create_session()
        self.timeout = timeout
        self._cache: dict[tuple[str, str], bool] = {}

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        session.headers["User-Agent"] = "wp-composer"
        return session

    def lookup(self, slug: str, kind: str) -> bool:
        """Return True if ``slug`` is published on wordpress.org.

        Raises RegistryLookupError when the API cannot be reached or answers
        with something other than a record or a not-found.
        """
        if kind not in _ENDPOINTS:
            raise InvalidArgumentError(f"unknown dependency kind: {kind!r}")
        key = (kind, slug)
        if key in self._cache:
            return self._cache[key]

        url, action = _ENDPOINTS[kind]
        params = {"action": action, "request[slug]": slug}
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as err:
            raise RegistryLookupError(f"{kind} lookup for {slug} failed: {err}") from err

        if response.status_code == 404:
            found = False
        elif response.status_code == 200:
            found = self._is_record(response, slug)
        else:
            raise RegistryLookupError(
                f"{kind} lookup for {slug} returned HTTP {response.status_code}"
            )
        self._cache[key] = found
        log(f"wordpress.org {kind} {slug}: {'found' if found else 'not found'}")
        return found

    @staticmethod
    def _is_record(response: requests.Response, slug: str) -> bool:
        try:
            payload: Any = response.json()
        except ValueError as err:
            raise RegistryLookupError(f"invalid JSON for {slug}: {err}") from err
        if not isinstance(payload, dict):
            # The 1.0 endpoints answer a bare false for unknown slugs
            if payload in (False, None):
                return False
            raise RegistryLookupError(f"unexpected payload for {slug}")
        if payload.get("error"):
            return False
        return str(payload.get("slug", "")) == slug

    def is_available(self, slug: str, kind: str) -> bool:
        """Like lookup(), but a failed lookup counts as not available."""
        try:
            return self.lookup(slug, kind)
        except RegistryLookupError as err:
            logger.warning("Treating %s %s as unknown: %s", kind, slug, err)
            return False


def is_known_remote_dependency(
    slug: str, kind: str, registry: WordPressOrgRegistry | None = None
) -> bool:
    return (registry or WordPressOrgRegistry()).is_available(slug, kind)
