"""Matplotlib-based 2D plots of engine state for offline inspection."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend by default

import matplotlib.pyplot as plt
import numpy as np

if TYPE_CHECKING:
    from quantum_playground.core.engine import SplitOperatorEngine
    from quantum_playground.core.potential import PotentialField
    from quantum_playground.utils.types import MeasurementResult


class PlotSuite:
    """Static snapshots of density, phase, potential and run history."""

    def __init__(self, save_dir: str = "plots") -> None:
        self.save_dir = os.path.expanduser(save_dir)

    def _save_or_show(
        self, fig: plt.Figure, name: str, show: bool, save: bool
    ) -> plt.Figure:
        if save:
            os.makedirs(self.save_dir, exist_ok=True)
            path = os.path.join(self.save_dir, f"qp_{name}.png")
            fig.savefig(path, dpi=150, bbox_inches="tight")
        if show:
            plt.show()
        else:
            plt.close(fig)
        return fig

    @staticmethod
    def _extent(domain_size: float) -> list[float]:
        return [0.0, domain_size, 0.0, domain_size]

    def probability_density(
        self,
        engine: SplitOperatorEngine,
        measurement: MeasurementResult | None = None,
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Heatmap of |psi|^2 in physical coordinates.

        If a measurement is given (or the engine has one) its detector
        radius is drawn as a circle.
        """
        density = engine.probability_density()
        fig, ax = plt.subplots(figsize=(7, 6))
        im = ax.imshow(
            density,
            origin="lower",
            extent=self._extent(engine.domain_size),
            cmap="inferno",
            interpolation="nearest",
        )
        fig.colorbar(im, ax=ax, label="|psi|^2")

        measurement = measurement or engine.last_measurement
        if measurement is not None:
            color = "#2ecc71" if measurement.found else "#e74c3c"
            ax.add_patch(
                plt.Circle((measurement.x, measurement.y), measurement.radius, fill=False, color=color, lw=2)
            )

        ax.set_xlabel("x")
        ax.set_ylabel("y")
        ax.set_title(f"Probability density (t={engine.time:.4f})")
        return self._save_or_show(fig, "density", show, save)

    def phase_map(
        self,
        engine: SplitOperatorEngine,
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """arg(psi) on a cyclic colormap, faded where |psi|^2 is negligible."""
        phase = engine.phase()
        density = engine.probability_density()
        alpha = np.clip(density / density.max(), 0.0, 1.0) if density.max() > 0 else None

        fig, ax = plt.subplots(figsize=(7, 6))
        im = ax.imshow(
            phase,
            origin="lower",
            extent=self._extent(engine.domain_size),
            cmap="twilight",
            vmin=-np.pi,
            vmax=np.pi,
            alpha=alpha,
            interpolation="nearest",
        )
        fig.colorbar(im, ax=ax, label="Phase (rad)")
        ax.set_xlabel("x")
        ax.set_ylabel("y")
        ax.set_title("Wavefunction phase")
        return self._save_or_show(fig, "phase", show, save)

    def potential_map(
        self,
        potential: PotentialField,
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Heatmap of V(x, y)."""
        fig, ax = plt.subplots(figsize=(7, 6))
        im = ax.imshow(
            potential.values,
            origin="lower",
            extent=self._extent(potential.domain_size),
            cmap="viridis",
            interpolation="nearest",
        )
        fig.colorbar(im, ax=ax, label="V")
        ax.set_xlabel("x")
        ax.set_ylabel("y")
        ax.set_title(f"Potential ({potential.potential_type.value})")
        return self._save_or_show(fig, "potential", show, save)

    def probability_history(
        self,
        history: list[dict],
        show: bool = False,
        save: bool = True,
    ) -> plt.Figure:
        """Total probability deviation from 1 over simulation time."""
        if not history:
            fig, ax = plt.subplots()
            ax.text(0.5, 0.5, "No data", ha="center", va="center")
            return self._save_or_show(fig, "probability_history", show, save)

        times = [h["time"] for h in history]
        drift = [h["total_probability"] - 1.0 for h in history]

        fig, ax = plt.subplots(figsize=(10, 4))
        ax.plot(times, drift, color="blue")
        ax.axhline(y=0.0, color="red", linestyle="--", alpha=0.5)
        ax.set_xlabel("Time")
        ax.set_ylabel("sum |psi|^2 - 1")
        ax.set_title("Norm conservation")
        ax.grid(True, alpha=0.3)

        fig.tight_layout()
        return self._save_or_show(fig, "probability_history", show, save)
