"""Shared configuration constants for wp-composer.

Centralizes paths, namespaces and endpoints used by modules. Each value
can be overridden from the environment.
"""

import os

SITE_ROOT_DIR = os.environ.get("WPCOMPOSER_SITE_ROOT", "/srv/http")
WP_CLI_PATH = os.environ.get("WPCOMPOSER_WP_CLI", "/usr/bin/wp")
# Empty means run WP-CLI as the current user
WP_CLI_USER = os.environ.get("WPCOMPOSER_WP_USER", "")
LOG_DIR = os.environ.get("WPCOMPOSER_LOG_DIR", "log")

COMPOSER_FILE = "composer.json"
PLUGIN_NAMESPACE = os.environ.get("WPCOMPOSER_PLUGIN_NAMESPACE", "wpackagist-plugin")
THEME_NAMESPACE = os.environ.get("WPCOMPOSER_THEME_NAMESPACE", "wpackagist-theme")
ANY_VERSION = "*"
# wordpress.org does not tag releases with these; install latest instead
LATEST_ALIASES = ("*", "dev-trunk", "dev-master", "master", "dev")

WPORG_PLUGIN_API = "https://api.wordpress.org/plugins/info/1.2/"
WPORG_THEME_API = "https://api.wordpress.org/themes/info/1.2/"
REGISTRY_TIMEOUT = float(os.environ.get("WPCOMPOSER_REGISTRY_TIMEOUT", "10"))
