"""
Tests for the Jacobian runner and geometry plots
"""

import logging
from pathlib import Path

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pytest
import numpy as np
import numpy.testing as npt
import yaml

from run_jacobian import JacobianRunner, format_jacobian, main
from spherconv.config_loader import ConfigLoader
from spherconv.coordinates import Geometry, spher_to_cart
from spherconv.visualization import GeometryVisualizer

REPO_CONFIGS = Path(__file__).resolve().parent.parent / "configs"


@pytest.fixture
def loader():
    return ConfigLoader(str(REPO_CONFIGS))


class TestJacobianRunner:
    """Test scenario evaluation."""

    def test_monostatic_results(self, loader):
        runner = JacobianRunner(loader.load_scenario('monostatic'))
        results = runner.run()

        first = results['measurements'][0]
        assert first['name'] == 'boresight_1km'
        npt.assert_allclose(first['position'], [1000.0, 0.0, 0.0], atol=1e-9)
        npt.assert_allclose(first['jacobian'][0], [1.0, 0.0, 0.0], atol=1e-12)
        assert results['max_discrepancy'] is None

    def test_check_reports_discrepancy(self, loader):
        runner = JacobianRunner(loader.load_scenario('bistatic_baseline'))
        results = runner.run(check=True)

        assert all(entry['finite'] for entry in results['measurements'])
        assert results['max_discrepancy'] < 1e-4

    def test_save_results(self, loader, tmp_path):
        runner = JacobianRunner(loader.load_scenario('boresight_sonar'))
        runner.run()
        path = runner.save_results(tmp_path / 'out' / 'results.yaml')

        with open(path) as f:
            saved = yaml.safe_load(f)

        assert saved['scenario'] == 'boresight_sonar'
        assert saved['geometry']['system_type'] == 1
        assert len(saved['measurements']) == 2
        assert np.array(saved['measurements'][0]['jacobian']).shape == (3, 3)

    def test_visualize_results(self, loader, tmp_path):
        runner = JacobianRunner(loader.load_scenario('bistatic_baseline'))
        runner.run()
        path = runner.visualize_results(tmp_path / 'geometry.png')
        assert path.exists()

    def test_visualize_jacobians(self, loader, tmp_path):
        runner = JacobianRunner(loader.load_scenario('boresight_sonar'))
        runner.run()
        paths = runner.visualize_jacobians(tmp_path / 'geometry.png')

        assert [p.name for p in paths] == ['geometry_dead_ahead_jacobian.png',
                                           'geometry_off_axis_jacobian.png']
        assert all(p.exists() for p in paths)

    def test_logs_angle_convention(self, loader, caplog):
        runner = JacobianRunner(loader.load_scenario('boresight_sonar'))
        with caplog.at_level(logging.INFO, logger='run_jacobian'):
            runner.run()
        assert 'from the z-axis in the z-x plane' in caplog.text

    def test_format_jacobian(self):
        lines = format_jacobian(np.eye(3))
        assert len(lines) == 3
        assert 'range' in lines[0]
        assert 'elevation' in lines[2]


class TestMain:
    """Test the command-line entry point."""

    def test_list(self, capsys):
        assert main(['--list', '--config-dir', str(REPO_CONFIGS)]) == 0
        out = capsys.readouterr().out
        assert 'monostatic' in out
        assert 'bistatic_baseline' in out

    def test_run_with_outputs(self, tmp_path, capsys):
        output = tmp_path / 'results.yaml'
        plot = tmp_path / 'geometry.png'
        code = main(['monostatic', '--config-dir', str(REPO_CONFIGS), '--check',
                     '--output', str(output), '--plot', str(plot)])

        assert code == 0
        assert output.exists()
        assert plot.exists()
        assert (tmp_path / 'geometry_boresight_1km_jacobian.png').exists()
        assert 'Max finite-difference discrepancy' in capsys.readouterr().out

    def test_validate_only(self, tmp_path, capsys):
        output = tmp_path / 'results.yaml'
        code = main(['bistatic_baseline', '--config-dir', str(REPO_CONFIGS), '--validate',
                     '--output', str(output)])
        assert code == 0
        assert not output.exists()
        assert 'Validation complete' in capsys.readouterr().out

    def test_missing_scenario(self, tmp_path):
        assert main(['does_not_exist', '--config-dir', str(tmp_path)]) == 1

    def test_invalid_scenario(self, tmp_path):
        scenarios = tmp_path / 'geometries'
        scenarios.mkdir()
        with open(scenarios / 'bad.yaml', 'w') as f:
            yaml.dump({'geometry': {'system_type': 7}, 'measurements': [{'range': 1.0}]}, f)
        assert main(['bad', '--config-dir', str(tmp_path)]) == 1

    @pytest.mark.parametrize("content", [
        {'geometry': [1, 2], 'measurements': [{'range': 1.0}]},
        {'measurements': [5000.0]},
        {'measurements': [{'range': 'far'}]},
        {'geometry': {'orientation': {'euler': [30, 0, 0]}}, 'measurements': [{'range': 1.0}]},
    ])
    def test_malformed_scenario_exits_cleanly(self, tmp_path, content):
        scenarios = tmp_path / 'geometries'
        scenarios.mkdir()
        with open(scenarios / 'bad.yaml', 'w') as f:
            yaml.dump(content, f)
        assert main(['bad', '--config-dir', str(tmp_path)]) == 1

    def test_scenario_required(self):
        with pytest.raises(SystemExit):
            main(['--config-dir', str(REPO_CONFIGS)])


class TestGeometryVisualizer:
    """Test geometry plots."""

    def test_plot_geometry(self):
        geometry = Geometry(l_tx=[0.0, 0.0, 0.0], l_rx=[500.0, 0.0, 0.0])
        points = [spher_to_cart([3000.0, 0.5, 0.1], 0, False, geometry.l_tx, geometry.l_rx)]

        fig = GeometryVisualizer().plot_geometry(geometry, points, labels=['t1'])
        ax = fig.axes[0]
        assert ax.get_title() == 'Measurement Geometry'
        # baseline, three local axes and two legs to the target
        assert len(ax.lines) == 6
        plt.close(fig)

    def test_plot_monostatic_without_points(self):
        fig = GeometryVisualizer().plot_geometry(Geometry.monostatic())
        assert len(fig.axes[0].lines) == 3
        plt.close(fig)

    def test_plot_jacobian(self):
        J = np.array([[1.0, 0.0, 0.0], [0.0, 1e-3, 0.0], [0.0, 0.0, 0.0]])
        fig = GeometryVisualizer().plot_jacobian(J)
        assert len(fig.axes) == 2
        plt.close(fig)
