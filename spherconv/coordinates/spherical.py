"""
Bistatic spherical <-> Cartesian conversions

This module converts between global Cartesian target positions and
spherical (range, azimuth, elevation) measurements taken by a receiver with
its own local orientation, for both monostatic and bistatic geometries.
Angles are measured in the receiver's local frame using one of the two
SystemType conventions; the range is either the full bistatic path length
or half of it.

The receiver frame is defined by a rotation M taking global displacements
into local coordinates:

    q_local = M @ (p_global - l_rx)

Author: SpherConv Project
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from ..constants import SystemType, DEFAULT_SYSTEM_TYPE, DEFAULT_LOCATION, DEFAULT_ROTATION


ArrayLike = Union[np.ndarray, list, tuple]


@dataclass(frozen=True, eq=False)
class Geometry:
    """Transmitter/receiver configuration of a converted measurement"""
    l_tx: np.ndarray = field(default_factory=lambda: DEFAULT_LOCATION.copy())
    l_rx: np.ndarray = field(default_factory=lambda: DEFAULT_LOCATION.copy())
    M: np.ndarray = field(default_factory=lambda: DEFAULT_ROTATION.copy())
    system_type: SystemType = DEFAULT_SYSTEM_TYPE
    use_half_range: bool = False

    def __post_init__(self):
        # Store private read-only copies so the geometry behaves as a value
        for name, shape in (("l_tx", (3,)), ("l_rx", (3,)), ("M", (3, 3))):
            arr = np.array(getattr(self, name), dtype=float).reshape(shape)
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)
        object.__setattr__(self, "system_type", SystemType(self.system_type))
        object.__setattr__(self, "use_half_range", bool(self.use_half_range))

    @classmethod
    def monostatic(cls, location: Optional[ArrayLike] = None,
                   M: Optional[ArrayLike] = None,
                   system_type: SystemType = DEFAULT_SYSTEM_TYPE,
                   use_half_range: bool = True) -> "Geometry":
        """Co-located transmitter and receiver, one-way range by default"""
        loc = DEFAULT_LOCATION if location is None else location
        return cls(l_tx=loc, l_rx=loc,
                   M=DEFAULT_ROTATION if M is None else M,
                   system_type=system_type,
                   use_half_range=use_half_range)

    @property
    def is_monostatic(self) -> bool:
        """True if transmitter and receiver are co-located"""
        return bool(np.array_equal(self.l_tx, self.l_rx))

    @property
    def baseline(self) -> float:
        """Distance between transmitter and receiver"""
        return float(np.linalg.norm(self.l_tx - self.l_rx))

    def as_args(self) -> Tuple[SystemType, bool, np.ndarray, np.ndarray, np.ndarray]:
        """(system_type, use_half_range, l_tx, l_rx, M) in call order"""
        return self.system_type, self.use_half_range, self.l_tx, self.l_rx, self.M


def direction_vector(azimuth: float, elevation: float,
                     system_type: SystemType = DEFAULT_SYSTEM_TYPE) -> np.ndarray:
    """
    Unit pointing vector in the local receiver frame

    Args:
        azimuth: Azimuth in radians
        elevation: Elevation in radians
        system_type: Angle convention

    Returns:
        Unit vector u of shape (3,)
    """
    cos_el = np.cos(elevation)
    sin_el = np.sin(elevation)
    cos_az = np.cos(azimuth)
    sin_az = np.sin(azimuth)

    if system_type == SystemType.XY_PLANE_AZIMUTH:
        return np.array([cos_el * cos_az, cos_el * sin_az, sin_el])
    return np.array([cos_el * sin_az, sin_el, cos_el * cos_az])


def local_angles(q_local: np.ndarray,
                 system_type: SystemType = DEFAULT_SYSTEM_TYPE) -> Tuple[float, float]:
    """
    Azimuth and elevation of a local-frame displacement

    Returns:
        (azimuth, elevation) in radians, azimuth in [-pi, pi]
    """
    x, y, z = q_local[0], q_local[1], q_local[2]

    if system_type == SystemType.XY_PLANE_AZIMUTH:
        azimuth = np.arctan2(y, x)
        elevation = np.arctan2(z, np.hypot(x, y))
    else:
        azimuth = np.arctan2(x, z)
        elevation = np.arctan2(y, np.hypot(z, x))

    return float(azimuth), float(elevation)


def bistatic_receiver_distance(r_full: float, u: np.ndarray, t_local: np.ndarray) -> float:
    """
    Receiver-to-target distance for a full bistatic path length

    Solves d + |d*u - t| = r_full for d, where u is the unit pointing
    direction and t the transmitter position, both in the receiver's local
    frame. Squaring removes the absolute value and, since |u| = 1, the
    quadratic terms cancel:

        d = (r_full^2 - |t|^2) / (2 (r_full - u.t))

    For r_full >= |t| the root is non-negative and r_full - d >= 0, so it is
    the only solution. With t = 0 this is r_full / 2.
    """
    with np.errstate(divide='ignore', invalid='ignore'):
        return (r_full**2 - np.dot(t_local, t_local)) / (2.0 * (r_full - np.dot(u, t_local)))


def spher_to_cart(z_spher: ArrayLike,
                  system_type: SystemType = DEFAULT_SYSTEM_TYPE,
                  use_half_range: bool = False,
                  l_tx: ArrayLike = DEFAULT_LOCATION,
                  l_rx: ArrayLike = DEFAULT_LOCATION,
                  M: ArrayLike = DEFAULT_ROTATION) -> np.ndarray:
    """
    Convert a spherical measurement to a global Cartesian position

    Args:
        z_spher: [range, azimuth, elevation], angles in radians
        system_type: Angle convention of the measurement
        use_half_range: True if range is half the bistatic path length
        l_tx: Transmitter location (global)
        l_rx: Receiver location (global)
        M: Rotation from global to the receiver's local frame

    Returns:
        Global Cartesian position of shape (3,)
    """
    z_spher = np.asarray(z_spher, dtype=float).reshape(3)
    l_tx = np.asarray(l_tx, dtype=float).reshape(3)
    l_rx = np.asarray(l_rx, dtype=float).reshape(3)
    M = np.asarray(M, dtype=float)

    r_full = 2.0 * z_spher[0] if use_half_range else z_spher[0]
    u = direction_vector(z_spher[1], z_spher[2], system_type)
    t_local = M @ (l_tx - l_rx)

    d = bistatic_receiver_distance(r_full, u, t_local)
    return M.T @ (d * u) + l_rx


def cart_to_spher(point: ArrayLike,
                  system_type: SystemType = DEFAULT_SYSTEM_TYPE,
                  use_half_range: bool = False,
                  l_tx: ArrayLike = DEFAULT_LOCATION,
                  l_rx: ArrayLike = DEFAULT_LOCATION,
                  M: ArrayLike = DEFAULT_ROTATION) -> np.ndarray:
    """
    Convert a global Cartesian position to a spherical measurement

    The range is |p - l_tx| + |p - l_rx| (halved if use_half_range); the
    angles are those of M @ (p - l_rx) under the chosen convention.

    Returns:
        [range, azimuth, elevation] of shape (3,)
    """
    point = np.asarray(point, dtype=float).reshape(3)
    l_tx = np.asarray(l_tx, dtype=float).reshape(3)
    l_rx = np.asarray(l_rx, dtype=float).reshape(3)
    M = np.asarray(M, dtype=float)

    range_val = np.linalg.norm(point - l_tx) + np.linalg.norm(point - l_rx)
    if use_half_range:
        range_val = range_val / 2.0

    azimuth, elevation = local_angles(M @ (point - l_rx), system_type)
    return np.array([range_val, azimuth, elevation])


def geometry_spher_to_cart(z_spher: ArrayLike, geometry: Geometry) -> np.ndarray:
    """spher_to_cart for a Geometry"""
    return spher_to_cart(z_spher, *geometry.as_args())


def geometry_cart_to_spher(point: ArrayLike, geometry: Geometry) -> np.ndarray:
    """cart_to_spher for a Geometry"""
    return cart_to_spher(point, *geometry.as_args())
