"""
===============================================================================
HAMILTON - Numerical Constants
===============================================================================
Central repository for the constants shared by the quaternion library.
Angles are in radians unless a name says otherwise.
===============================================================================
"""

import numpy as np


# =============================================================================
# MATHEMATICAL CONSTANTS
# =============================================================================
PI = np.pi
TWO_PI = 2.0 * np.pi
DEG2RAD = PI / 180.0
RAD2DEG = 180.0 / PI

# =============================================================================
# TOLERANCES
# =============================================================================
# Threshold below which a norm, axis length or rotation angle is treated as
# zero. Also the half-width of the unit/identity checks.
EPSILON = 1e-11

# =============================================================================
# HASHING
# =============================================================================
HASH_SEED = 13
HASH_MULTIPLIER = 31

# =============================================================================
# ZERO-NORM POLICIES
# =============================================================================
ZERO_NORM_RAISE = "raise"
ZERO_NORM_PROPAGATE = "propagate"
ZERO_NORM_POLICIES = (ZERO_NORM_RAISE, ZERO_NORM_PROPAGATE)
