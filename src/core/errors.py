"""metaconv exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class MetaconvError(Exception):
    """Base exception for all metaconv failures."""


class MetaconvConfigError(MetaconvError):
    """Raised for invalid runtime configuration."""


class MetaconvIndexError(MetaconvError):
    """Raised for directory-index lookup and parsing failures."""


class MetaconvIndexNotFoundError(MetaconvIndexError):
    """Raised when the input folder holds no directory-index file."""


class MetaconvUnknownIndexFormatError(MetaconvIndexError):
    """Raised when an index file name matches none of the known variants."""


class MetaconvDecodeError(MetaconvError):
    """Raised when a numbered data file cannot be read."""


class MetaconvOutputError(MetaconvError):
    """Raised when the output folder or an output file cannot be written."""
