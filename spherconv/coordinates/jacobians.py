"""
Converted-measurement Jacobians for monostatic and bistatic sensors

This module provides the Jacobian of a spherical measurement
[range, azimuth, elevation] with respect to the global Cartesian target
position [x, y, z], evaluated at the position implied by a given spherical
measurement. It is the local linearization needed when tracking with
Cartesian-converted measurements while the clutter density is specified in
the measurement coordinate system.

Row i of the returned matrix holds the derivatives of the i-th spherical
component (range, azimuth, elevation); column j is the derivative with
respect to global axis j (x, y, z).

Author: SpherConv Project
"""

import logging
import numpy as np
from typing import Optional

from ..constants import (
    SystemType, GeometryTolerances, DEFAULT_SYSTEM_TYPE,
    DEFAULT_LOCATION, DEFAULT_ROTATION, wrap_to_pi
)
from ..validators import GeometryValidator, validate_measurement_inputs
from .spherical import (
    ArrayLike, Geometry, direction_vector, bistatic_receiver_distance,
    cart_to_spher, geometry_spher_to_cart
)

logger = logging.getLogger(__name__)


def calc_spher_conv_jacob_core(z_spher: np.ndarray,
                               system_type: SystemType,
                               use_half_range: bool,
                               l_tx: np.ndarray,
                               l_rx: np.ndarray,
                               M: np.ndarray) -> np.ndarray:
    """
    Jacobian of [range, azimuth, elevation] with respect to global [x, y, z]

    Inputs are trusted: z_spher, l_tx, l_rx are float arrays of shape (3,)
    and M is a 3x3 rotation from global to local coordinates. Degenerate
    geometries never raise: a target at the receiver gives non-finite
    entries, and a target at elevation +/-pi/2 (where azimuth is undefined)
    gives an azimuth row of order 1/(range * eps), since cos(el) is not
    exactly zero in floating point.

    Args:
        z_spher: [range, azimuth, elevation], angles in radians
        system_type: Angle convention of the measurement
        use_half_range: True if range is half the bistatic path length
        l_tx: Transmitter location (global)
        l_rx: Receiver location (global)
        M: Rotation from global to the receiver's local frame

    Returns:
        3x3 Jacobian matrix
    """
    r_full = 2.0 * z_spher[0] if use_half_range else z_spher[0]
    u = direction_vector(z_spher[1], z_spher[2], system_type)
    t_local = M @ (l_tx - l_rx)

    # Target in the receiver frame and in global coordinates
    d = bistatic_receiver_distance(r_full, u, t_local)
    q = d * u
    point = M.T @ q + l_rx

    J = np.empty((3, 3))
    x, y, z = q

    with np.errstate(divide='ignore', invalid='ignore'):
        diff_tx = point - l_tx
        diff_rx = point - l_rx
        J[0, :] = diff_tx / np.linalg.norm(diff_tx) + diff_rx / np.linalg.norm(diff_rx)
        if use_half_range:
            J[0, :] *= 0.5

        r2 = x * x + y * y + z * z
        if system_type == SystemType.XY_PLANE_AZIMUTH:
            # az = atan2(y, x), el = atan2(z, hypot(x, y))
            rho2 = x * x + y * y
            rho = np.sqrt(rho2)
            d_az = np.array([-y / rho2, x / rho2, 0.0])
            d_el = np.array([-x * z, -y * z, rho2]) / (r2 * rho)
        else:
            # az = atan2(x, z), el = atan2(y, hypot(z, x))
            rho2 = z * z + x * x
            rho = np.sqrt(rho2)
            d_az = np.array([z / rho2, 0.0, -x / rho2])
            d_el = np.array([-x * y, rho2, -z * y]) / (r2 * rho)

        # Chain rule through q = M @ (p - l_rx)
        J[1, :] = d_az @ M
        J[2, :] = d_el @ M

    return J


def calc_spher_conv_jacob(z_spher: ArrayLike,
                          system_type: Optional[int] = None,
                          use_half_range: Optional[bool] = None,
                          l_tx: Optional[ArrayLike] = None,
                          l_rx: Optional[ArrayLike] = None,
                          M: Optional[ArrayLike] = None) -> np.ndarray:
    """
    Validate and default inputs, then compute the converted-measurement Jacobian

    Args:
        z_spher: [range, azimuth, elevation] as shape (3,) or (3, 1)
        system_type: 0 or 1 (see SystemType); default 0
        use_half_range: Whether range is half the bistatic path; defaults to
            False if either site location is given and True otherwise
        l_tx: Transmitter location; default origin
        l_rx: Receiver location; default origin
        M: Rotation from global to receiver-local coordinates; default identity

    Returns:
        3x3 Jacobian, rows [range, azimuth, elevation], columns [x, y, z]

    Raises:
        ValidationError: If any input has the wrong shape, is not real, or
            the system type is unknown
    """
    if use_half_range is None:
        use_half_range = l_tx is None and l_rx is None
        logger.debug(f"use_half_range defaulted to {use_half_range}")

    z_spher, system_type, l_tx, l_rx, M = validate_measurement_inputs(
        z_spher,
        DEFAULT_SYSTEM_TYPE if system_type is None else system_type,
        DEFAULT_LOCATION if l_tx is None else l_tx,
        DEFAULT_LOCATION if l_rx is None else l_rx,
        DEFAULT_ROTATION if M is None else M
    )

    rotation_check = GeometryValidator.check_rotation(M)
    for message in rotation_check.warnings:
        logger.warning(message)

    return calc_spher_conv_jacob_core(z_spher, system_type, bool(use_half_range),
                                      l_tx, l_rx, M)


def jacobian_for_geometry(z_spher: ArrayLike, geometry: Geometry) -> np.ndarray:
    """Converted-measurement Jacobian for a measurement taken with a Geometry"""
    z_spher = GeometryValidator.validate_vector3(z_spher, "point")
    return calc_spher_conv_jacob_core(z_spher, *geometry.as_args())


def finite_difference_jacobian(point: ArrayLike, geometry: Geometry,
                               step: float = GeometryTolerances.FINITE_DIFFERENCE_STEP
                               ) -> np.ndarray:
    """
    Numerical Jacobian of cart_to_spher by central differences

    Azimuth differences are wrapped to [-pi, pi) so a point near the
    azimuth branch cut still gives a sensible derivative.

    Args:
        point: Global Cartesian position
        geometry: Sensor geometry
        step: Perturbation applied to each coordinate

    Returns:
        3x3 numerical Jacobian
    """
    point = GeometryValidator.validate_vector3(point, "point")
    J = np.zeros((3, 3))

    for axis in range(3):
        offset = np.zeros(3)
        offset[axis] = step
        z_plus = cart_to_spher(point + offset, *geometry.as_args())
        z_minus = cart_to_spher(point - offset, *geometry.as_args())

        delta = z_plus - z_minus
        delta[1] = wrap_to_pi(delta[1])
        J[:, axis] = delta / (2.0 * step)

    return J


def jacobian_discrepancy(z_spher: ArrayLike, geometry: Geometry,
                         step: float = GeometryTolerances.FINITE_DIFFERENCE_STEP) -> float:
    """
    Largest relative difference between analytic and numerical Jacobians

    Each row is compared relative to its own norm so that the range row
    (order 1) and the angle rows (order 1/range) are weighted alike.
    """
    J = jacobian_for_geometry(z_spher, geometry)
    J_num = finite_difference_jacobian(geometry_spher_to_cart(z_spher, geometry),
                                       geometry, step)

    row_scale = np.linalg.norm(J, axis=1)
    error = np.linalg.norm(J - J_num, axis=1) / np.where(row_scale > 0, row_scale, 1.0)
    return float(np.max(error))
