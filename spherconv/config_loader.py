#!/usr/bin/env python3
"""
Configuration loader for converted-measurement geometry scenarios
Handles YAML parsing, validation, and geometry setup
"""

import yaml
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from pathlib import Path
from scipy.spatial.transform import Rotation
import logging

from .constants import DEFAULT_SYSTEM_TYPE
from .validators import GeometryValidator, ValidationError, collect_warnings
from .coordinates.spherical import Geometry

logger = logging.getLogger(__name__)


@dataclass
class MeasurementConfig:
    """Spherical measurement configuration"""
    name: str
    range: float
    azimuth: float
    elevation: float
    degrees: bool = False

    def to_spherical(self) -> np.ndarray:
        """[range, azimuth, elevation] with angles in radians"""
        if self.degrees:
            return np.array([self.range, np.radians(self.azimuth), np.radians(self.elevation)])
        return np.array([self.range, self.azimuth, self.elevation], dtype=float)


@dataclass
class GeometryConfig:
    """Sensor geometry configuration"""
    system_type: int = int(DEFAULT_SYSTEM_TYPE)
    use_half_range: Optional[bool] = None
    transmitter: Optional[List[float]] = None
    receiver: Optional[List[float]] = None
    orientation: Optional[Dict[str, Any]] = None

    def resolved_half_range(self) -> bool:
        """Half range defaults to True only when neither site is given"""
        if self.use_half_range is not None:
            return bool(self.use_half_range)
        return self.transmitter is None and self.receiver is None

    def rotation_matrix(self) -> np.ndarray:
        """Global-to-local rotation M described by the orientation block"""
        return rotation_from_orientation(self.orientation)

    def to_geometry(self) -> Geometry:
        """Build the Geometry value used by the conversions"""
        l_tx = np.zeros(3) if self.transmitter is None else \
            GeometryValidator.validate_vector3(self.transmitter, "transmitter location")
        l_rx = np.zeros(3) if self.receiver is None else \
            GeometryValidator.validate_vector3(self.receiver, "receiver location")

        return Geometry(
            l_tx=l_tx,
            l_rx=l_rx,
            M=self.rotation_matrix(),
            system_type=GeometryValidator.validate_system_type(self.system_type),
            use_half_range=self.resolved_half_range()
        )


@dataclass
class ScenarioConfig:
    """Complete scenario configuration"""
    name: str
    description: str
    geometry: GeometryConfig
    measurements: List[MeasurementConfig] = field(default_factory=list)
    output: Optional[Dict] = None


def rotation_from_orientation(orientation: Optional[Dict[str, Any]]) -> np.ndarray:
    """
    Convert an orientation block to the global-to-local rotation M

    Accepted forms:
        {'matrix': [[...], [...], [...]]}   M given directly
        {'euler': {'sequence': 'zyx', 'angles': [...], 'degrees': True}}
            receiver attitude (local -> global); M is its transpose
    """
    if orientation is None:
        return np.eye(3)

    if 'matrix' in orientation:
        return GeometryValidator.validate_matrix3x3(orientation['matrix'], "orientation matrix")

    if 'euler' in orientation:
        euler = orientation['euler']
        if not isinstance(euler, dict):
            raise ValidationError(f"Euler orientation must be a mapping, got {euler!r}")
        sequence = euler.get('sequence', 'zyx')
        if not isinstance(sequence, str):
            raise ValidationError(f"Euler sequence must be a string, got {sequence!r}")
        try:
            angles = np.asarray(euler['angles'], dtype=float).ravel()
            if angles.size != len(sequence):
                raise ValueError(f"{len(sequence)} angles required, got {angles.size}")
            # A single-axis sequence takes a scalar for one rotation
            attitude = Rotation.from_euler(
                sequence,
                angles if angles.size > 1 else angles[0],
                degrees=euler.get('degrees', True)
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Invalid euler orientation {euler}: {e}") from e
        return attitude.as_matrix().T

    raise ValidationError(
        f"Orientation must contain 'matrix' or 'euler', got keys {list(orientation)}"
    )


class ConfigLoader:
    """Load and validate geometry scenario configurations"""

    def __init__(self, config_dir: str = "configs"):
        """
        Initialize configuration loader

        Args:
            config_dir: Directory containing configuration files
        """
        self.config_dir = Path(config_dir)
        self.scenarios_dir = self.config_dir / "geometries"

    def resolve_path(self, scenario_name: str) -> Path:
        """Map a scenario name or path to a YAML file path"""
        filepath = Path(scenario_name)
        if filepath.suffix in ('.yaml', '.yml') and filepath.exists():
            return filepath

        if not scenario_name.endswith(('.yaml', '.yml')):
            scenario_name += '.yaml'
        return self.scenarios_dir / scenario_name

    def load_scenario(self, scenario_name: str) -> ScenarioConfig:
        """
        Load a scenario configuration from YAML

        Args:
            scenario_name: Name of scenario file (with or without .yaml) or a path

        Returns:
            ScenarioConfig object
        """
        filepath = self.resolve_path(scenario_name)

        if not filepath.exists():
            raise FileNotFoundError(f"Scenario file not found: {filepath}")

        logger.info(f"Loading scenario: {filepath}")

        with open(filepath, 'r') as f:
            config_dict = yaml.safe_load(f)

        return self.parse_scenario(config_dict)

    def parse_scenario(self, config_dict: Dict) -> ScenarioConfig:
        """Parse scenario dictionary into configuration objects"""
        if not isinstance(config_dict, dict):
            raise ValidationError("Scenario file must contain a mapping")

        scenario = config_dict.get('scenario') or {}
        if not isinstance(scenario, dict):
            raise ValidationError("Scenario header must be a mapping")

        # Parse geometry
        geo_cfg = config_dict.get('geometry') or {}
        if not isinstance(geo_cfg, dict):
            raise ValidationError(f"Geometry must be a mapping, got {type(geo_cfg).__name__}")
        orientation = geo_cfg.get('orientation')
        if orientation is not None and not isinstance(orientation, dict):
            raise ValidationError("Geometry orientation must be a mapping")

        geometry = GeometryConfig(
            system_type=geo_cfg.get('system_type', int(DEFAULT_SYSTEM_TYPE)),
            use_half_range=geo_cfg.get('use_half_range'),
            transmitter=geo_cfg.get('transmitter'),
            receiver=geo_cfg.get('receiver'),
            orientation=orientation
        )
        # Fail fast on a bad system type, site or orientation
        GeometryValidator.validate_system_type(geometry.system_type)
        geometry.to_geometry()

        # Parse measurements
        meas_list = config_dict.get('measurements') or []
        if not isinstance(meas_list, list):
            raise ValidationError(f"Measurements must be a list, got {type(meas_list).__name__}")

        measurements = []
        for i, meas_cfg in enumerate(meas_list):
            if not isinstance(meas_cfg, dict):
                raise ValidationError(f"Measurement {i} must be a mapping, got {meas_cfg!r}")
            try:
                measurement = MeasurementConfig(
                    name=str(meas_cfg.get('name', f"measurement_{i}")),
                    range=float(meas_cfg['range']),
                    azimuth=float(meas_cfg.get('azimuth', 0.0)),
                    elevation=float(meas_cfg.get('elevation', 0.0)),
                    degrees=bool(meas_cfg.get('degrees', False))
                )
            except KeyError as e:
                raise ValidationError(f"Measurement {i} is missing required key {e}") from e
            except (TypeError, ValueError) as e:
                raise ValidationError(f"Measurement {i} has a non-numeric value: {e}") from e
            measurements.append(measurement)

        if not measurements:
            raise ValidationError("Scenario defines no measurements")

        return ScenarioConfig(
            name=scenario.get('name', 'unnamed'),
            description=scenario.get('description', ''),
            geometry=geometry,
            measurements=measurements,
            output=config_dict.get('output')
        )

    def list_scenarios(self) -> List[str]:
        """List available scenario files"""
        scenarios = []
        for file in self.scenarios_dir.glob("*.yaml"):
            scenarios.append(file.stem)
        return sorted(scenarios)

    def validate_scenario(self, scenario: ScenarioConfig) -> List[str]:
        """
        Validate scenario configuration

        Returns:
            List of validation warnings
        """
        geometry = scenario.geometry.to_geometry()

        results = [GeometryValidator.check_rotation(geometry.M)]
        for measurement in scenario.measurements:
            result = GeometryValidator.check_bistatic_range(
                measurement.range, geometry.use_half_range, geometry.l_tx, geometry.l_rx
            )
            result.warnings = [f"{measurement.name}: {w}" for w in result.warnings]
            results.append(result)

        warnings = collect_warnings(results)

        if geometry.use_half_range and not geometry.is_monostatic:
            warnings.append("Half-range convention used with separated transmitter and receiver")

        # Both conventions measure elevation out of the azimuth plane
        for measurement in scenario.measurements:
            el = measurement.to_spherical()[2]
            if abs(abs(el) - np.pi / 2) < 1e-9:
                warnings.append(f"{measurement.name}: azimuth undefined at elevation +/-90 deg")

        return warnings

    def save_scenario(self, scenario: ScenarioConfig, filename: str) -> Path:
        """Save scenario configuration to YAML file"""

        if not filename.endswith('.yaml'):
            filename += '.yaml'

        self.scenarios_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.scenarios_dir / filename

        config_dict = {
            'scenario': {
                'name': scenario.name,
                'description': scenario.description
            },
            'geometry': self._geometry_to_dict(scenario.geometry),
            'measurements': [self._measurement_to_dict(m) for m in scenario.measurements]
        }

        if scenario.output:
            config_dict['output'] = scenario.output

        with open(filepath, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved scenario to {filepath}")
        return filepath

    def _geometry_to_dict(self, geometry: GeometryConfig) -> Dict:
        """Convert geometry config to dictionary"""
        result = {'system_type': int(geometry.system_type)}

        if geometry.use_half_range is not None:
            result['use_half_range'] = bool(geometry.use_half_range)
        if geometry.transmitter is not None:
            result['transmitter'] = [float(v) for v in geometry.transmitter]
        if geometry.receiver is not None:
            result['receiver'] = [float(v) for v in geometry.receiver]
        if geometry.orientation is not None:
            result['orientation'] = geometry.orientation

        return result

    def _measurement_to_dict(self, measurement: MeasurementConfig) -> Dict:
        """Convert measurement config to dictionary"""
        return {
            'name': measurement.name,
            'range': measurement.range,
            'azimuth': measurement.azimuth,
            'elevation': measurement.elevation,
            'degrees': measurement.degrees
        }
