"""
Constants and Enumerations for Converted-Measurement Geometry

This module contains the angle-convention enumeration, default sensor
geometry values and numerical tolerances used throughout the package.
"""

import numpy as np
from enum import IntEnum
from dataclasses import dataclass


# ============================================================================
# ANGLE CONVENTIONS
# ============================================================================

class SystemType(IntEnum):
    """Axes from which azimuth and elevation are measured in the local frame"""
    XY_PLANE_AZIMUTH = 0   # az from local x in the x-y plane, el toward z
    ZX_PLANE_AZIMUTH = 1   # az from local z in the z-x plane, el toward y

    @property
    def description(self) -> str:
        """Human readable convention description"""
        if self is SystemType.XY_PLANE_AZIMUTH:
            return ("Azimuth counterclockwise from the x-axis in the x-y plane, "
                    "elevation up from the x-y plane toward z")
        return ("Azimuth counterclockwise from the z-axis in the z-x plane, "
                "elevation up from the z-x plane toward y")

    @classmethod
    def from_value(cls, value):
        """Get the system type for an integer code, or None if unknown"""
        for system_type in cls:
            if system_type.value == value:
                return system_type
        return None


# ============================================================================
# DEFAULT GEOMETRY
# ============================================================================

DEFAULT_SYSTEM_TYPE = SystemType.XY_PLANE_AZIMUTH

# Sites default to the origin and the receiver frame to the global frame
DEFAULT_LOCATION = np.zeros(3)
DEFAULT_ROTATION = np.eye(3)

# Shared as default arguments, so they must never change
DEFAULT_LOCATION.setflags(write=False)
DEFAULT_ROTATION.setflags(write=False)


# ============================================================================
# NUMERICAL TOLERANCES
# ============================================================================

@dataclass
class GeometryTolerances:
    """Tolerances used when checking sensor geometry"""

    # Max |M^T M - I| element before a rotation is reported as non-orthonormal
    ORTHONORMAL_TOL = 1e-9

    # Max |det(M) - 1| before a rotation is reported as a reflection
    DETERMINANT_TOL = 1e-9

    # Default central-difference step (m) for numerical Jacobians
    FINITE_DIFFERENCE_STEP = 1e-6


def wrap_to_pi(angle):
    """Wrap an angle (or array of angles) to [-pi, pi)"""
    return (np.asarray(angle) + np.pi) % (2.0 * np.pi) - np.pi
