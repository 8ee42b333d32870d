"""
Input Validation Module for Converted-Measurement Geometry

This module validates the arguments handed to the Jacobian and coordinate
conversion routines: vector and matrix shapes, real-valued data, the
angle-convention code and the conditioning of the receiver rotation.
The numerical core trusts its inputs, so everything here runs before it.
"""

import numpy as np
from typing import List, Tuple
from dataclasses import dataclass

from .constants import SystemType, GeometryTolerances


# ============================================================================
# CUSTOM EXCEPTIONS
# ============================================================================

class ValidationError(Exception):
    """Base exception for validation errors"""
    pass

class DimensionError(ValidationError):
    """Raised when a vector or matrix has the wrong dimensionality"""
    def __init__(self, param_name: str, expected: Tuple[int, ...], actual: Tuple[int, ...]):
        self.param_name = param_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"The {param_name} has the wrong dimensionality: "
            f"expected {expected}, got {actual}"
        )

class InvalidSystemTypeError(ValidationError):
    """Raised when an unknown angle convention is requested"""
    def __init__(self, value):
        self.value = value
        valid = [int(s) for s in SystemType]
        super().__init__(f"Invalid system type specified: {value!r} (valid: {valid})")

class NonRealInputError(ValidationError):
    """Raised when an input is complex or not numeric"""
    pass


# ============================================================================
# VALIDATION RESULTS
# ============================================================================

@dataclass
class ValidationResult:
    """Container for validation results"""
    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def add_error(self, message: str):
        """Add an error message"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str):
        """Add a warning message"""
        self.warnings.append(message)

    def raise_if_invalid(self):
        """Raise exception if validation failed"""
        if not self.is_valid:
            raise ValidationError("\n".join(self.errors))


# ============================================================================
# GEOMETRY VALIDATORS
# ============================================================================

class GeometryValidator:
    """Validates measurement geometry inputs"""

    @staticmethod
    def as_real_array(value, param_name: str) -> np.ndarray:
        """
        Convert an input to a float64 array, rejecting complex or non-numeric data

        Args:
            value: Array-like input
            param_name: Name used in error messages

        Returns:
            Float64 numpy array
        """
        try:
            arr = np.asarray(value)
        except (TypeError, ValueError) as e:
            # Ragged nested sequences
            raise NonRealInputError(f"The {param_name} is not a numeric array: {e}") from e
        if np.iscomplexobj(arr):
            raise NonRealInputError(f"The {param_name} must be real, got complex data")
        if arr.dtype == bool or not np.issubdtype(arr.dtype, np.number):
            raise NonRealInputError(
                f"The {param_name} must be numeric, got dtype {arr.dtype}"
            )
        return arr.astype(np.float64)

    @staticmethod
    def validate_vector3(value, param_name: str = "point") -> np.ndarray:
        """
        Validate a 3-component vector given as shape (3,) or a (3, 1) column

        Returns:
            Flattened float64 array of shape (3,)
        """
        arr = GeometryValidator.as_real_array(value, param_name)
        if arr.shape not in ((3,), (3, 1)):
            raise DimensionError(param_name, (3, 1), arr.shape)
        return arr.reshape(3)

    @staticmethod
    def validate_matrix3x3(value, param_name: str = "rotation matrix") -> np.ndarray:
        """Validate a 3x3 matrix"""
        arr = GeometryValidator.as_real_array(value, param_name)
        if arr.shape != (3, 3):
            raise DimensionError(param_name, (3, 3), arr.shape)
        return arr

    @staticmethod
    def validate_system_type(value) -> SystemType:
        """
        Validate an angle-convention code

        Args:
            value: SystemType member or integer code

        Returns:
            The corresponding SystemType
        """
        if isinstance(value, SystemType):
            return value
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidSystemTypeError(value)
        system_type = SystemType.from_value(int(value))
        if system_type is None:
            raise InvalidSystemTypeError(value)
        return system_type

    @staticmethod
    def check_rotation(M: np.ndarray, strict: bool = False) -> ValidationResult:
        """
        Check that M is a proper rotation matrix

        Non-orthonormal matrices are reported as warnings unless strict is set,
        in which case they are errors and an exception is raised.
        """
        result = ValidationResult(is_valid=True, errors=[], warnings=[])
        report = result.add_error if strict else result.add_warning

        if not np.all(np.isfinite(M)):
            report("Rotation matrix contains non-finite values")
        else:
            deviation = np.max(np.abs(M.T @ M - np.eye(3)))
            if deviation > GeometryTolerances.ORTHONORMAL_TOL:
                report(f"Rotation matrix is not orthonormal (max |M'M - I| = {deviation:.3e})")
            else:
                det = np.linalg.det(M)
                if abs(det - 1.0) > GeometryTolerances.DETERMINANT_TOL:
                    report(f"Rotation matrix has determinant {det:.6f}, not a proper rotation")

        if strict and not result.is_valid:
            result.raise_if_invalid()

        return result

    @staticmethod
    def check_bistatic_range(range_val: float, use_half_range: bool,
                             l_tx: np.ndarray, l_rx: np.ndarray) -> ValidationResult:
        """
        Check that a range is reachable for the given transmitter/receiver baseline

        A full bistatic path can never be shorter than the baseline between
        the two sites; such a range has no real target position.
        """
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        r_full = 2.0 * range_val if use_half_range else range_val
        baseline = float(np.linalg.norm(l_tx - l_rx))

        if r_full < 0:
            result.add_warning(f"Range {range_val} is negative")
        elif r_full < baseline:
            result.add_warning(
                f"Bistatic path length {r_full:.3f} is shorter than the "
                f"baseline {baseline:.3f}; no real target position exists"
            )

        return result


def validate_measurement_inputs(z_spher, system_type, l_tx, l_rx, M
                                ) -> Tuple[np.ndarray, SystemType, np.ndarray,
                                           np.ndarray, np.ndarray]:
    """
    Validate a full set of Jacobian/conversion inputs

    Optional arguments must already have been defaulted (no None values).

    Returns:
        (z_spher, system_type, l_tx, l_rx, M) as validated arrays/enum
    """
    z_spher = GeometryValidator.validate_vector3(z_spher, "point")
    system_type = GeometryValidator.validate_system_type(system_type)
    l_tx = GeometryValidator.validate_vector3(l_tx, "transmitter location")
    l_rx = GeometryValidator.validate_vector3(l_rx, "receiver location")
    M = GeometryValidator.validate_matrix3x3(M, "rotation matrix")
    return z_spher, system_type, l_tx, l_rx, M


def collect_warnings(results: List[ValidationResult]) -> List[str]:
    """Flatten the warnings of several validation results"""
    warnings: List[str] = []
    for result in results:
        warnings.extend(result.warnings)
    return warnings

