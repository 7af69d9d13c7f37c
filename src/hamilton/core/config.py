"""
===============================================================================
HAMILTON - Library Settings
===============================================================================
Process-wide numerical settings for the quaternion library.

Settings can be built in code or loaded from a YAML file whose values live
under a top-level ``quaternion`` key:

    quaternion:
      epsilon: 1.0e-11
      zero_norm_policy: raise

The active settings are read by every Quaternion operation at call time, so
replacing them takes effect immediately for all existing values.
===============================================================================
"""

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from hamilton.core.constants import (
    EPSILON, ZERO_NORM_POLICIES, ZERO_NORM_RAISE
)


logger = logging.getLogger(__name__)

CONFIG_SECTION = "quaternion"


@dataclass(frozen=True)
class QuaternionSettings:
    """
    Numerical settings shared by all quaternions.

    Attributes:
        epsilon: Threshold used for zero-norm guards, degenerate axis/angle
                 detection and the unit/identity checks.
        zero_norm_policy: What normalize/invert do with a zero quaternion.
                          "raise" raises ZeroDivisionError, "propagate"
                          lets the division produce non-finite components.
    """
    epsilon: float = EPSILON
    zero_norm_policy: str = ZERO_NORM_RAISE

    def __post_init__(self) -> None:
        if not self.epsilon > 0.0:
            raise ValueError(f"epsilon must be positive, got {self.epsilon}")
        if self.zero_norm_policy not in ZERO_NORM_POLICIES:
            raise ValueError(
                f"Unknown zero_norm_policy: {self.zero_norm_policy}. "
                f"Valid: {list(ZERO_NORM_POLICIES)}"
            )

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'QuaternionSettings':
        """
        Build settings from a plain mapping, rejecting unknown keys.

        Parameters
        ----------
        values : dict
            Mapping of field name to value.

        Returns
        -------
        QuaternionSettings
            Validated settings.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(
                f"Unknown quaternion settings: {unknown}. Valid: {sorted(known)}"
            )
        kwargs = dict(values)
        if "epsilon" in kwargs:
            kwargs["epsilon"] = float(kwargs["epsilon"])
        return cls(**kwargs)


_settings = QuaternionSettings()


def get_settings() -> QuaternionSettings:
    """Return the active settings."""
    return _settings


def set_settings(settings: QuaternionSettings) -> None:
    """Replace the active settings."""
    global _settings
    if not isinstance(settings, QuaternionSettings):
        raise TypeError(
            f"Expected QuaternionSettings, got {type(settings).__name__}"
        )
    _settings = settings
    logger.debug("Quaternion settings updated: %s", settings)


def configure(**overrides: Any) -> QuaternionSettings:
    """
    Override individual fields of the active settings.

    Returns
    -------
    QuaternionSettings
        The new active settings.
    """
    set_settings(replace(_settings, **overrides))
    return _settings


def reset_settings() -> None:
    """Restore the default settings."""
    set_settings(QuaternionSettings())


def load_settings(path: Union[str, Path], activate: bool = True) -> QuaternionSettings:
    """
    Load settings from a YAML file.

    Parameters
    ----------
    path : str or Path
        YAML file with a top-level ``quaternion`` mapping. A file without
        that section yields the defaults.
    activate : bool, optional
        If True (default), the loaded settings become the active ones.

    Returns
    -------
    QuaternionSettings
        The loaded settings.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the section is not a mapping or holds unknown/invalid values.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Settings file not found: {path}")

    logger.info("Loading quaternion settings from: %s", path)
    with open(path, "r") as f:
        document = yaml.safe_load(f) or {}

    if not isinstance(document, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")

    section = document.get(CONFIG_SECTION) or {}
    if not isinstance(section, dict):
        raise ValueError(
            f"'{CONFIG_SECTION}' section in {path} must be a mapping, "
            f"got {type(section).__name__}"
        )

    settings = QuaternionSettings.from_dict(section)
    if activate:
        set_settings(settings)
    return settings
