"""
SpherConv: converted-measurement Jacobians for monostatic and bistatic sensors
"""

from .constants import SystemType
from .validators import ValidationError
from .coordinates import (
    Geometry,
    spher_to_cart,
    cart_to_spher,
    calc_spher_conv_jacob,
    jacobian_for_geometry,
)

__version__ = "1.0.0"

__all__ = [
    "SystemType",
    "ValidationError",
    "Geometry",
    "spher_to_cart",
    "cart_to_spher",
    "calc_spher_conv_jacob",
    "jacobian_for_geometry",
]
