"""Dataclass definitions for the quantum playground simulation."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from quantum_playground.errors import InvalidConfiguration, InvalidGridSize
from quantum_playground.utils.constants import (
    DEFAULT_DT,
    DEFAULT_DX,
    DEFAULT_GRID_SIZE,
    DEFAULT_TIME_SCALE,
    HBAR,
    MASS,
    PACKET_WIDTH_FRACTION,
    PERIODIC,
)
from quantum_playground.utils.math_helpers import is_power_of_two


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable configuration for a split-operator engine.

    The propagators are precomputed from these values, so a different
    configuration means a new engine. ``domain_size`` is always derived
    from ``grid_size * dx`` and never stored.
    """

    grid_size: int = DEFAULT_GRID_SIZE
    dx: float = DEFAULT_DX
    dt: float = DEFAULT_DT
    hbar: float = HBAR
    mass: float = MASS
    boundary_condition: str = PERIODIC
    time_scale: float = DEFAULT_TIME_SCALE
    dealias_filter: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.grid_size, bool) or not isinstance(self.grid_size, (int, np.integer)):
            raise InvalidConfiguration(
                f"grid_size must be an integer, got {type(self.grid_size).__name__}"
            )
        if not is_power_of_two(int(self.grid_size)):
            raise InvalidGridSize(int(self.grid_size))
        for name in ("dx", "dt", "hbar", "mass", "time_scale"):
            value = getattr(self, name)
            if not np.isfinite(value) or value <= 0:
                raise InvalidConfiguration(f"{name} must be a finite positive number, got {value}")
        if self.boundary_condition != PERIODIC:
            raise InvalidConfiguration(
                f"Only periodic boundaries are supported, got {self.boundary_condition!r}"
            )

    @property
    def domain_size(self) -> float:
        """Physical side length L = N * dx."""
        return self.grid_size * self.dx

    @property
    def dt_effective(self) -> float:
        """Time advanced by one step: dt * time_scale."""
        return self.dt * self.time_scale

    @property
    def stability_limit(self) -> float:
        """Explicit-scheme heuristic 2 m dx^2 / hbar for the effective step."""
        return 2.0 * self.mass * self.dx**2 / self.hbar


@dataclass(frozen=True)
class WavepacketParams:
    """Gaussian wavepacket parameters, all in physical units.

    ``None`` fields fall back to the domain-relative defaults
    (centre of the domain, width L/20) when resolved against a config.
    """

    center_x: float | None = None
    center_y: float | None = None
    width: float | None = None
    momentum_x: float = 0.0
    momentum_y: float = 0.0

    def resolve(self, config: SimulationConfig) -> WavepacketParams:
        """Return a copy with every default filled in for ``config``."""
        half = config.domain_size / 2.0
        width = self.width if self.width is not None else config.domain_size * PACKET_WIDTH_FRACTION
        if not np.isfinite(width) or width <= 0:
            raise InvalidConfiguration(f"Wavepacket width must be positive, got {width}")
        for name in ("center_x", "center_y", "momentum_x", "momentum_y"):
            value = getattr(self, name)
            if value is not None and not np.isfinite(value):
                raise InvalidConfiguration(f"Wavepacket {name} must be finite, got {value}")
        return WavepacketParams(
            center_x=half if self.center_x is None else float(self.center_x),
            center_y=half if self.center_y is None else float(self.center_y),
            width=float(width),
            momentum_x=float(self.momentum_x),
            momentum_y=float(self.momentum_y),
        )


@dataclass(frozen=True)
class MeasurementResult:
    """Outcome of a soft Born-rule position measurement."""

    found: bool
    probability: float
    x: float
    y: float
    radius: float


@dataclass(frozen=True, eq=False)
class EngineState:
    """Self-contained snapshot of an engine, safe to hand to another thread.

    Arrays are deep copies; nothing here aliases live engine buffers.
    """

    grid_size: int
    dx: float
    dt: float
    hbar: float
    mass: float
    time_scale: float
    dealias_filter: bool
    psi: NDArray[np.complex128]
    potential: NDArray[np.float64]
    potential_type: str
    time: float
    metadata: dict = field(default_factory=dict)  # type: ignore[type-arg]

    @property
    def config(self) -> SimulationConfig:
        return SimulationConfig(
            grid_size=self.grid_size,
            dx=self.dx,
            dt=self.dt,
            hbar=self.hbar,
            mass=self.mass,
            time_scale=self.time_scale,
            dealias_filter=self.dealias_filter,
        )

    def to_dict(self) -> dict:
        """Plain-dict form with copied buffers."""
        return {
            "grid_size": self.grid_size,
            "dx": self.dx,
            "dt": self.dt,
            "hbar": self.hbar,
            "mass": self.mass,
            "time_scale": self.time_scale,
            "dealias_filter": self.dealias_filter,
            "psi": self.psi.copy(),
            "potential": self.potential.copy(),
            "potential_type": self.potential_type,
            "time": self.time,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict) -> EngineState:
        n = int(data["grid_size"])
        psi = np.array(data["psi"], dtype=np.complex128).reshape(n, n)
        potential = np.array(data["potential"], dtype=np.float64).reshape(n, n)
        return cls(
            grid_size=n,
            dx=float(data["dx"]),
            dt=float(data["dt"]),
            hbar=float(data.get("hbar", HBAR)),
            mass=float(data.get("mass", MASS)),
            time_scale=float(data.get("time_scale", DEFAULT_TIME_SCALE)),
            dealias_filter=bool(data.get("dealias_filter", False)),
            psi=psi,
            potential=potential,
            potential_type=str(data.get("potential_type", "none")),
            time=float(data["time"]),
            metadata=dict(data.get("metadata", {})),
        )
