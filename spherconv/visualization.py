"""
Visualization utilities for converted-measurement geometry
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, Tuple, Sequence
from mpl_toolkits.mplot3d import Axes3D  # noqa: F401

from .coordinates.spherical import Geometry


class GeometryVisualizer:
    """Sensor geometry visualization tools"""

    def __init__(self, figsize: Tuple[int, int] = (10, 8)):
        """
        Initialize visualizer

        Args:
            figsize: Default figure size
        """
        self.figsize = figsize
        self.axis_colors = ('r', 'g', 'b')

    def plot_geometry(self, geometry: Geometry,
                      points: Optional[Sequence[np.ndarray]] = None,
                      labels: Optional[Sequence[str]] = None,
                      axis_length: Optional[float] = None,
                      title: str = "Measurement Geometry") -> plt.Figure:
        """
        Plot transmitter, receiver, receiver-local axes and target points in 3D

        Args:
            geometry: Sensor geometry
            points: Global Cartesian target positions
            labels: Optional label per target
            axis_length: Length of the drawn local axes (default: a quarter
                of the scene extent)
            title: Plot title

        Returns:
            Figure object
        """
        points = [] if points is None else [np.asarray(p, dtype=float) for p in points]

        fig = plt.figure(figsize=self.figsize)
        ax = fig.add_subplot(111, projection='3d')

        ax.scatter(*geometry.l_rx, c='k', marker='^', s=80, label='Receiver')
        if not geometry.is_monostatic:
            ax.scatter(*geometry.l_tx, c='m', marker='s', s=80, label='Transmitter')
            ax.plot(*np.column_stack([geometry.l_tx, geometry.l_rx]), 'm:', linewidth=1)

        if axis_length is None:
            extent = [np.linalg.norm(p - geometry.l_rx) for p in points]
            extent.append(geometry.baseline)
            axis_length = 0.25 * max(max(extent), 1.0)

        # Rows of M are the local axes expressed in global coordinates
        for axis, (row, color) in enumerate(zip(geometry.M, self.axis_colors)):
            end = geometry.l_rx + axis_length * row
            ax.plot(*np.column_stack([geometry.l_rx, end]), color=color, linewidth=2,
                    label=f"Local {'xyz'[axis]}")

        for i, point in enumerate(points):
            label = labels[i] if labels is not None else None
            ax.scatter(*point, c='orange', marker='o', s=40,
                       label='Targets' if i == 0 else None)
            ax.plot(*np.column_stack([geometry.l_rx, point]), 'k--', linewidth=0.5, alpha=0.5)
            if not geometry.is_monostatic:
                ax.plot(*np.column_stack([geometry.l_tx, point]), 'm--', linewidth=0.5, alpha=0.5)
            if label:
                ax.text(*point, label, fontsize=8)

        ax.set_xlabel('X (m)')
        ax.set_ylabel('Y (m)')
        ax.set_zlabel('Z (m)')
        ax.set_title(title)
        ax.legend(loc='upper left', fontsize=8)

        return fig

    def plot_jacobian(self, J: np.ndarray, title: str = "Converted-Measurement Jacobian") -> plt.Figure:
        """
        Heat map of a Jacobian with each row normalized to its largest entry

        Rows are (range, azimuth, elevation) and columns (x, y, z).
        """
        scale = np.max(np.abs(J), axis=1, keepdims=True)
        normalized = np.divide(J, scale, out=np.zeros_like(J), where=scale > 0)

        fig, ax = plt.subplots(figsize=(5, 4))
        im = ax.imshow(normalized, cmap='RdBu_r', vmin=-1, vmax=1)

        ax.set_xticks(range(3))
        ax.set_xticklabels(['x', 'y', 'z'])
        ax.set_yticks(range(3))
        ax.set_yticklabels(['range', 'azimuth', 'elevation'])

        for i in range(3):
            for j in range(3):
                ax.text(j, i, f"{J[i, j]:.3g}", ha='center', va='center', fontsize=8)

        ax.set_title(title)
        fig.colorbar(im, ax=ax, label='Row-normalized value')

        return fig
