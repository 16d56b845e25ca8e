from __future__ import annotations


class SwagdocError(Exception):
    """Base class for errors surfaced to the CLI."""


class ConfigError(SwagdocError):
    """Configuration could not be loaded or validated."""


class RenderError(SwagdocError):
    """A listing could not be rendered in the requested format."""
