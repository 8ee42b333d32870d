"""
Test suite for the converted-measurement coordinate module.

Test Structure:
- test_spherical.py: Tests for the bistatic spherical <-> Cartesian conversions
- test_jacobians.py: Tests for the analytic Jacobian, its binding layer and
  the finite-difference oracle

To run all tests:
    pytest spherconv/coordinates/tests/

To run with coverage:
    pytest spherconv/coordinates/tests/ --cov=spherconv.coordinates --cov-report=html

Author: SpherConv Project
"""

__all__ = [
    'test_spherical',
    'test_jacobians',
]
