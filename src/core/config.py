"""Runtime configuration model for metaconv.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import DEFAULT_LOG_LEVEL
from core.errors import MetaconvConfigError
from core.logging_config import parse_log_level
from core.types import ConversionOptions

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class MetaconvConfig:
    """Validated runtime configuration.

    Attributes:
        omit_anomalies: Default for skipping ``<symbol>_anomalies.csv`` files.
        interpolate: Default for the date-ordering post-process stage.
        detailed_log: Default for per-row anomaly logging.
        include_open_interest: Default for the 7-field record layout.
        log_level: Minimum structured log level.
    """

    omit_anomalies: bool
    interpolate: bool
    detailed_log: bool
    include_open_interest: bool
    log_level: str

    @classmethod
    def from_env(cls) -> "MetaconvConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            MetaconvConfigError: If environment values are invalid.
        """
        log_level = os.getenv("METACONV_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().lower()
        parse_log_level(log_level)
        return cls(
            omit_anomalies=_read_bool("METACONV_OMIT_ANOMALIES", True),
            interpolate=_read_bool("METACONV_INTERPOLATE", False),
            detailed_log=_read_bool("METACONV_DETAILED_LOG", False),
            include_open_interest=_read_bool("METACONV_INCLUDE_OPEN_INTEREST", False),
            log_level=log_level,
        )

    def default_options(self) -> ConversionOptions:
        """Return conversion options seeded from this config."""
        return ConversionOptions(
            omit_anomalies=self.omit_anomalies,
            interpolate=self.interpolate,
            detailed_log=self.detailed_log,
            include_open_interest=self.include_open_interest,
        )


def _read_bool(variable_name: str, default: bool) -> bool:
    """Parse one boolean environment switch.

    Args:
        variable_name: Environment variable to read.
        default: Value used when the variable is unset or empty.

    Returns:
        Parsed boolean.

    Raises:
        MetaconvConfigError: If value is not a recognized boolean word.
    """
    raw_value = os.getenv(variable_name)
    if raw_value is None or not raw_value.strip():
        return default
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise MetaconvConfigError(
        f"Invalid {variable_name} value: expected a boolean, got '{raw_value}'. "
        f"Set {variable_name} to one of {_TRUE_VALUES + _FALSE_VALUES}."
    )
