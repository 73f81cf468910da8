"""Exception hierarchy shared by the network core."""

from __future__ import annotations


class GlyphNetError(Exception):
    """Base class for every error raised by glyphnet."""


class ConfigurationError(GlyphNetError, ValueError):
    """Invalid topology or configuration values."""


class ShapeMismatchError(GlyphNetError, ValueError):
    """An input vector does not match the sensor layer."""


class PersistenceError(GlyphNetError, OSError):
    """A network snapshot is missing, unreadable or malformed."""


class NotScoredError(GlyphNetError, RuntimeError):
    """Error-derived values were requested before ``process_output`` ran."""


__all__ = [
    "ConfigurationError",
    "GlyphNetError",
    "NotScoredError",
    "PersistenceError",
    "ShapeMismatchError",
]
