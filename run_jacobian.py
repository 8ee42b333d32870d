#!/usr/bin/env python3
"""
Configurable Jacobian runner for converted-measurement geometries
Loads YAML configurations and evaluates Jacobians with optional plots
"""

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional
import logging
import yaml

from spherconv.config_loader import ConfigLoader, ScenarioConfig
from spherconv.coordinates import (
    geometry_spher_to_cart, jacobian_for_geometry, jacobian_discrepancy
)
from spherconv.validators import ValidationError
from spherconv.visualization import GeometryVisualizer

logger = logging.getLogger(__name__)


class JacobianRunner:
    """Evaluate converted-measurement Jacobians for a scenario"""

    def __init__(self, config: ScenarioConfig):
        """
        Initialize Jacobian runner

        Args:
            config: Scenario configuration object
        """
        self.config = config
        self.geometry = config.geometry.to_geometry()

        # Storage for results
        self.results = {
            'measurements': [],
            'max_discrepancy': None
        }

    def run(self, check: bool = False) -> Dict:
        """
        Evaluate every measurement in the scenario

        Args:
            check: Also compare each Jacobian against finite differences

        Returns:
            Dictionary with per-measurement positions and Jacobians
        """
        logger.info(f"Starting scenario: {self.config.name}")
        logger.info(
            f"System type: {self.geometry.system_type.name}, "
            f"half range: {self.geometry.use_half_range}, "
            f"baseline: {self.geometry.baseline:.1f} m"
        )
        logger.info(f"Angle convention: {self.geometry.system_type.description}")

        entries = []
        discrepancies = []

        for measurement in self.config.measurements:
            z_spher = measurement.to_spherical()
            point = geometry_spher_to_cart(z_spher, self.geometry)
            J = jacobian_for_geometry(z_spher, self.geometry)

            entry = {
                'name': measurement.name,
                'spherical': z_spher,
                'position': point,
                'jacobian': J,
                'finite': bool(np.all(np.isfinite(J)))
            }

            if not entry['finite']:
                logger.warning(f"{measurement.name}: Jacobian has non-finite entries (degenerate geometry)")

            if check:
                entry['discrepancy'] = jacobian_discrepancy(z_spher, self.geometry)
                discrepancies.append(entry['discrepancy'])
                logger.info(f"{measurement.name}: finite-difference discrepancy {entry['discrepancy']:.2e}")

            entries.append(entry)

        self.results['measurements'] = entries
        if discrepancies:
            self.results['max_discrepancy'] = float(np.nanmax(discrepancies))

        return self.results

    def save_results(self, filepath: Path) -> Path:
        """Write results to a YAML file"""
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        output = {
            'scenario': self.config.name,
            'geometry': {
                'system_type': int(self.geometry.system_type),
                'use_half_range': self.geometry.use_half_range,
                'transmitter': self.geometry.l_tx.tolist(),
                'receiver': self.geometry.l_rx.tolist(),
                'rotation': self.geometry.M.tolist()
            },
            'measurements': [
                {
                    'name': entry['name'],
                    'spherical': entry['spherical'].tolist(),
                    'position': entry['position'].tolist(),
                    'jacobian': entry['jacobian'].tolist(),
                    **({'discrepancy': entry['discrepancy']} if 'discrepancy' in entry else {})
                }
                for entry in self.results['measurements']
            ]
        }

        with open(filepath, 'w') as f:
            yaml.dump(output, f, default_flow_style=None, sort_keys=False)

        logger.info(f"Saved results to {filepath}")
        return filepath

    def visualize_results(self, save_path: Path) -> Path:
        """Plot the scenario geometry and save it"""
        visualizer = GeometryVisualizer()
        entries = self.results['measurements']

        fig = visualizer.plot_geometry(
            self.geometry,
            points=[e['position'] for e in entries if e['finite']],
            labels=[e['name'] for e in entries if e['finite']],
            title=f"Geometry: {self.config.name}"
        )
        fig.savefig(save_path, dpi=120, bbox_inches='tight')
        plt.close(fig)

        logger.info(f"Saved geometry plot to {save_path}")
        return Path(save_path)

    def visualize_jacobians(self, save_path: Path) -> List[Path]:
        """
        Save a heat map of each finite Jacobian next to the geometry plot

        Files are named <stem>_<measurement>_jacobian<suffix>.
        """
        save_path = Path(save_path)
        visualizer = GeometryVisualizer()
        paths = []

        for entry in self.results['measurements']:
            if not entry['finite']:
                continue
            fig = visualizer.plot_jacobian(entry['jacobian'], title=f"Jacobian: {entry['name']}")
            path = save_path.with_name(f"{save_path.stem}_{entry['name']}_jacobian{save_path.suffix}")
            fig.savefig(path, dpi=120, bbox_inches='tight')
            plt.close(fig)
            paths.append(path)

        logger.info(f"Saved {len(paths)} Jacobian heat maps")
        return paths


def format_jacobian(J: np.ndarray) -> List[str]:
    """Format a Jacobian as labelled text rows"""
    lines = []
    for name, row in zip(('range', 'azimuth', 'elevation'), J):
        lines.append(f"  d{name:<9}/d(x,y,z) = [" + ", ".join(f"{v: .6e}" for v in row) + "]")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for Jacobian runner"""

    parser = argparse.ArgumentParser(description='Evaluate converted-measurement Jacobians from YAML configs')
    parser.add_argument('scenario', nargs='?', help='Scenario name (without .yaml extension) or path')
    parser.add_argument('--list', action='store_true', help='List available scenarios')
    parser.add_argument('--validate', action='store_true', help='Validate scenario without running')
    parser.add_argument('--check', action='store_true', help='Compare against finite differences')
    parser.add_argument('--output', help='YAML file for results')
    parser.add_argument('--plot', help='Image file for the geometry plot (Jacobian heat maps are saved beside it)')
    parser.add_argument('--config-dir', default='configs', help='Configuration directory')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(levelname)s - %(message)s')

    # Initialize config loader
    loader = ConfigLoader(args.config_dir)

    # List scenarios if requested
    if args.list:
        print("Available scenarios:")
        for scenario in loader.list_scenarios():
            print(f"  - {scenario}")
        return 0

    if not args.scenario:
        parser.error("a scenario is required unless --list is given")

    try:
        config = loader.load_scenario(args.scenario)
        print(f"\nLoaded scenario: {config.name}")
        print(f"Description: {config.description}")

        warnings = loader.validate_scenario(config)
        if warnings:
            print("\nValidation warnings:")
            for warning in warnings:
                print(f"  - {warning}")

        if args.validate:
            print("\nValidation complete.")
            return 0

        runner = JacobianRunner(config)
        results = runner.run(check=args.check)

        print("\n" + "=" * 60)
        print("Jacobians")
        print("=" * 60)
        for entry in results['measurements']:
            x, y, z = entry['position']
            print(f"\n{entry['name']}: position = ({x:.3f}, {y:.3f}, {z:.3f})")
            for line in format_jacobian(entry['jacobian']):
                print(line)

        if results['max_discrepancy'] is not None:
            print(f"\nMax finite-difference discrepancy: {results['max_discrepancy']:.2e}")

        if args.output:
            runner.save_results(Path(args.output))

        if args.plot:
            runner.visualize_results(Path(args.plot))
            runner.visualize_jacobians(Path(args.plot))

    except FileNotFoundError as e:
        logger.error(f"{e}")
        print("Use --list to see available scenarios")
        return 1
    except ValidationError as e:
        logger.error(f"Invalid scenario: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
