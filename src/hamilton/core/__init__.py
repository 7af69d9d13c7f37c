"""
===============================================================================
HAMILTON - Core Module
===============================================================================
Quaternion value type and the numerical settings it depends on.

Modules:
    constants   -- Tolerances, angle conversions, hash parameters
    config      -- QuaternionSettings and YAML settings loader
    quaternion  -- Quaternion value type
===============================================================================
"""
