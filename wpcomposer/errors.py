"""Exceptions raised by the manifest and registry layers."""


class WPComposerError(Exception):
    """Base class for all wp-composer errors."""

    pass


class ManifestReadError(WPComposerError, OSError):
    """Raised when the manifest exists but cannot be read."""

    pass


class ManifestNotFoundError(ManifestReadError, FileNotFoundError):
    """Raised when a manifest is required but the file does not exist."""

    pass


class ManifestParseError(WPComposerError, ValueError):
    """Raised when the manifest is not a JSON object."""

    pass


class ManifestWriteError(WPComposerError, OSError):
    """Raised when the manifest cannot be written back to disk."""

    pass


class RegistryLookupError(WPComposerError):
    """Raised when wordpress.org cannot answer an availability query."""

    pass


class InvalidArgumentError(WPComposerError, ValueError):
    """Raised for unknown actions, unknown kinds or missing slugs."""

    pass
