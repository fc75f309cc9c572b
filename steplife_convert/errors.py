"""Exception types raised by the conversion tools.

All of them are recoverable per file: batch callers catch
TrackConvertError, mark the file as failed and move on.
"""

from __future__ import annotations


class TrackConvertError(ValueError):
    """Base class for all conversion errors."""


class FormatError(TrackConvertError):
    """Malformed XML/JSON, wrong CSV header/column count or non-numeric field."""


class EmptyInputError(TrackConvertError):
    """No track points were decoded, or a merge produced no rows."""


class ConfigError(TrackConvertError):
    """Unusable settings (non-positive spacing, bad percentages, unknown zone)."""


class UnsupportedExtensionError(TrackConvertError):
    """The file extension does not map to a known track format."""
