"""Observable metric extraction from engine state."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from quantum_playground.utils.math_helpers import grid_coordinates, wave_numbers

if TYPE_CHECKING:
    from quantum_playground.core.engine import SplitOperatorEngine


class MetricExtractor:
    """Extract observables from a split-operator engine.

    Only the engine's read-only accessors are used, so extracting metrics
    never disturbs the simulation.
    """

    def __init__(self, engine: SplitOperatorEngine) -> None:
        self.engine = engine

    def _density(self) -> tuple[NDArray[np.float64], float]:
        density = self.engine.probability_density()
        return density, float(np.sum(density))

    def position_expectation(self) -> tuple[float, float]:
        """<x>, <y> treating the domain as the plain box [0, L)."""
        density, total = self._density()
        x, y = grid_coordinates(self.engine.grid_size, self.engine.dx)
        return float(np.sum(density * x) / total), float(np.sum(density * y) / total)

    def periodic_position_expectation(self) -> tuple[float, float]:
        """Circular mean position, stable when the packet straddles an edge."""
        density, _ = self._density()
        length = self.engine.domain_size
        x, y = grid_coordinates(self.engine.grid_size, self.engine.dx)

        def circular_mean(coord: NDArray[np.float64]) -> float:
            angle = 2.0 * np.pi * coord / length
            mean_angle = np.arctan2(np.sum(density * np.sin(angle)), np.sum(density * np.cos(angle)))
            return float((mean_angle * length / (2.0 * np.pi)) % length)

        return circular_mean(x), circular_mean(y)

    def spatial_variance(self) -> float:
        """<(x - <x>)^2 + (y - <y>)^2>; grows as a free packet disperses."""
        density, total = self._density()
        x, y = grid_coordinates(self.engine.grid_size, self.engine.dx)
        mx, my = self.position_expectation()
        return float(np.sum(density * ((x - mx) ** 2 + (y - my) ** 2)) / total)

    def momentum_expectation(self) -> tuple[float, float]:
        """<px>, <py> = hbar <k> from the momentum-space density."""
        psi_k = self.engine.fft.forward_array(self.engine.wavefunction.to_complex())
        weights = np.abs(psi_k) ** 2
        total = float(np.sum(weights))
        k = wave_numbers(self.engine.grid_size, self.engine.dx)
        hbar = self.engine.config.hbar
        px = hbar * float(np.sum(weights * k[None, :]) / total)
        py = hbar * float(np.sum(weights * k[:, None]) / total)
        return px, py

    def peak_cell(self) -> tuple[int, int]:
        """(ix, iy) of the highest-density cell."""
        density, _ = self._density()
        iy, ix = np.unravel_index(int(np.argmax(density)), density.shape)
        return int(ix), int(iy)

    def region_probability(
        self,
        x_range: tuple[float, float],
        y_range: tuple[float, float] | None = None,
    ) -> float:
        """Probability inside an axis-aligned physical box (half-open ranges)."""
        density, _ = self._density()
        x, y = grid_coordinates(self.engine.grid_size, self.engine.dx)
        mask = (x >= x_range[0]) & (x < x_range[1])
        if y_range is not None:
            mask &= (y >= y_range[0]) & (y < y_range[1])
        return float(np.sum(density[mask]))

    def full_report(self) -> dict:
        """All metrics plus the engine clock in one dict."""
        mx, my = self.position_expectation()
        cx, cy = self.periodic_position_expectation()
        px, py = self.momentum_expectation()
        ix, iy = self.peak_cell()
        return {
            "time": self.engine.time,
            "steps": self.engine.step_count,
            "total_probability": self.engine.total_probability,
            "mean_x": mx,
            "mean_y": my,
            "periodic_mean_x": cx,
            "periodic_mean_y": cy,
            "variance": self.spatial_variance(),
            "momentum_x": px,
            "momentum_y": py,
            "peak_ix": ix,
            "peak_iy": iy,
            "peak_density": float(self.engine.probability_density()[iy, ix]),
        }
