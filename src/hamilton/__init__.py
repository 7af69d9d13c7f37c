"""
hamilton - Quaternion Arithmetic for 3D Rotations

A self-contained quaternion value type for composing rotations without gimbal
lock, with the supporting numerical settings:

    core.quaternion : Quaternion value type (algebra, exp/log, rotation,
                      axis-angle and Euler conversions, interpolation).
    core.config     : Process-wide numerical settings, loadable from YAML.
    core.constants  : Tolerances and angle conversion factors.
"""

__version__ = "0.1.0"

from hamilton.core.config import (
    QuaternionSettings,
    configure,
    get_settings,
    load_settings,
    reset_settings,
    set_settings,
)
from hamilton.core.constants import EPSILON
from hamilton.core.quaternion import Quaternion

__all__ = [
    'EPSILON',
    'Quaternion',
    'QuaternionSettings',
    'configure',
    'get_settings',
    'load_settings',
    'reset_settings',
    'set_settings',
]
