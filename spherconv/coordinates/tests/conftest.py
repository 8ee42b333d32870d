"""
Pytest configuration and shared fixtures for coordinate tests.

This module provides sensor geometries and target positions used across
the conversion and Jacobian tests.

Author: SpherConv Project
"""

import pytest
import numpy as np
from scipy.spatial.transform import Rotation

from ..spherical import Geometry
from ...constants import SystemType

np.seterr(all='warn')


@pytest.fixture
def random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
    return 42


@pytest.fixture
def receiver_rotation():
    """Global-to-local rotation of a tilted, yawed receiver."""
    attitude = Rotation.from_euler('zyx', [40.0, -15.0, 10.0], degrees=True)
    return attitude.as_matrix().T


@pytest.fixture
def monostatic_geometry():
    """Monostatic sensor at the origin reporting one-way range."""
    return Geometry.monostatic()


@pytest.fixture
def bistatic_geometry(receiver_rotation):
    """Bistatic pair with a 5 km baseline and a rotated receiver."""
    return Geometry(
        l_tx=np.array([-3000.0, 4000.0, 10.0]),
        l_rx=np.array([0.0, 0.0, 25.0]),
        M=receiver_rotation,
        system_type=SystemType.XY_PLANE_AZIMUTH,
        use_half_range=False
    )


@pytest.fixture
def bistatic_boresight_geometry(receiver_rotation):
    """Bistatic pair using the z-axis boresight convention and half range."""
    return Geometry(
        l_tx=np.array([1500.0, -800.0, 0.0]),
        l_rx=np.array([200.0, 100.0, -30.0]),
        M=receiver_rotation,
        system_type=SystemType.ZX_PLANE_AZIMUTH,
        use_half_range=True
    )


@pytest.fixture
def target_positions():
    """Global target positions away from every sensor axis."""
    return [
        np.array([8000.0, 3000.0, 1500.0]),
        np.array([-2500.0, 6000.0, 400.0]),
        np.array([1200.0, -4500.0, -300.0]),
        np.array([15000.0, 12000.0, 5000.0]),
    ]


@pytest.fixture
def global_rotation():
    """Arbitrary proper rotation applied to a whole scene."""
    return Rotation.from_euler('zyz', [123.0, 47.0, -80.0], degrees=True).as_matrix()
