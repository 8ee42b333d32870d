"""
Converted-measurement coordinate module

This module provides the bistatic spherical <-> Cartesian conversions and the
analytic Jacobians used to linearize converted measurements for Cartesian
tracking filters.

Angle conventions (see SystemType):
- XY_PLANE_AZIMUTH (0) - Azimuth from local x in the x-y plane, elevation toward z
- ZX_PLANE_AZIMUTH (1) - Azimuth from local z in the z-x plane, elevation toward y

Range conventions:
- Full bistatic path length |p - lTx| + |p - lRx|
- Half range (one-way equivalent), the usual monostatic report
"""

from .spherical import (
    Geometry,
    direction_vector,
    local_angles,
    bistatic_receiver_distance,
    spher_to_cart,
    cart_to_spher,
    geometry_spher_to_cart,
    geometry_cart_to_spher,
)

from .jacobians import (
    calc_spher_conv_jacob_core,
    calc_spher_conv_jacob,
    jacobian_for_geometry,
    finite_difference_jacobian,
    jacobian_discrepancy,
)

__all__ = [
    # Conversions
    'Geometry',
    'direction_vector',
    'local_angles',
    'bistatic_receiver_distance',
    'spher_to_cart',
    'cart_to_spher',
    'geometry_spher_to_cart',
    'geometry_cart_to_spher',

    # Jacobians
    'calc_spher_conv_jacob_core',
    'calc_spher_conv_jacob',
    'jacobian_for_geometry',
    'finite_difference_jacobian',
    'jacobian_discrepancy',
]
