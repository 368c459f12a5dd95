"""Split-operator engine for the 2D time-dependent Schrodinger equation.

One step is the symmetric (Strang) splitting

    psi <- P * IFFT( K * FFT( P * psi ) )

with P = exp(-i V dt' / 2 hbar) in position space and
K = exp(-i hbar k^2 dt' / 2m) in momentum space, dt' = dt * time_scale.
Both are unit-modulus phase fields, so stepping conserves sum |psi|^2.
Measurement is a separate, non-unitary operation with a soft Gaussian
detector followed by renormalization.
"""

from __future__ import annotations

import logging
from dataclasses import replace

import numpy as np
from numpy.typing import NDArray

from quantum_playground.core.complex_grid import ComplexGrid
from quantum_playground.core.fft import FFT2D
from quantum_playground.core.potential import (
    PotentialField,
    PotentialParams,
    PotentialType,
)
from quantum_playground.errors import (
    CollapseDegenerate,
    DegenerateWavepacket,
    InvalidConfiguration,
)
from quantum_playground.utils.constants import (
    DEALIAS_CUTOFF_FRACTION,
    DEFAULT_MEASUREMENT_RADIUS,
    FREEHAND_ATTENUATION,
    MAX_MEASUREMENT_RADIUS,
    MIN_MEASUREMENT_RADIUS,
    NORM_EPSILON,
)
from quantum_playground.utils.math_helpers import (
    gaussian_profile,
    grid_coordinates,
    periodic_r2,
    wave_numbers,
)
from quantum_playground.utils.types import (
    EngineState,
    MeasurementResult,
    SimulationConfig,
    WavepacketParams,
)

logger = logging.getLogger(__name__)


class SplitOperatorEngine:
    """Owns the wavefunction, potential and propagators of one simulation.

    External collaborators read the state through read-only accessors and
    drive it with ``initialize``, ``step`` and ``measure``. Changing the
    grid, spacing or time step means building a new engine.
    """

    def __init__(
        self,
        config: SimulationConfig | None = None,
        potential: PotentialParams | PotentialType | str | PotentialField | None = None,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        self.config = config or SimulationConfig()
        self.rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)

        n = self.config.grid_size
        self.fft = FFT2D(n)
        self._psi = ComplexGrid(n)

        if self.config.dt_effective >= self.config.stability_limit:
            logger.warning(
                "Time step dt*time_scale = %g exceeds stability limit %g; "
                "consider reducing dt or time_scale",
                self.config.dt_effective,
                self.config.stability_limit,
            )

        self.kinetic_propagator = self._build_kinetic_propagator()
        self._potential = self._resolve_potential(potential)
        self.potential_propagator = self._build_potential_propagator()

        self.measurement_radius: float = DEFAULT_MEASUREMENT_RADIUS
        self.time: float = 0.0
        self.step_count: int = 0
        self.last_measurement: MeasurementResult | None = None
        self.history: list[dict] = []

        logger.debug(
            "Engine ready: N=%d dx=%g L=%g dt'=%g potential=%s",
            n,
            self.config.dx,
            self.config.domain_size,
            self.config.dt_effective,
            self._potential.potential_type.value,
        )

    # -- Scalar state --

    @property
    def grid_size(self) -> int:
        return self.config.grid_size

    @property
    def dx(self) -> float:
        return self.config.dx

    @property
    def dt(self) -> float:
        return self.config.dt

    @property
    def time_scale(self) -> float:
        return self.config.time_scale

    @property
    def domain_size(self) -> float:
        return self.config.domain_size

    @property
    def total_probability(self) -> float:
        """Sum of |psi|^2; stays ~1.0 outside of a measurement."""
        return self._psi.norm_squared_sum()

    # -- Read-only field access --

    @property
    def wavefunction(self) -> ComplexGrid:
        """Read-only view of psi. Writes through it raise."""
        return self._psi.read_only()

    @property
    def potential(self) -> PotentialField:
        return self._potential

    @property
    def potential_values(self) -> NDArray[np.float64]:
        return self._potential.values

    def probability_density(self) -> NDArray[np.float64]:
        """|psi|^2 as a fresh (N, N) array indexed [iy, ix]."""
        return self._psi.abs2()

    def phase(self) -> NDArray[np.float64]:
        return self._psi.phase()

    def parameters(self) -> dict:
        """Flat dict of configuration and clock, for displays and reports."""
        return {
            "grid_size": self.grid_size,
            "dx": self.dx,
            "dt": self.dt,
            "dt_effective": self.config.dt_effective,
            "hbar": self.config.hbar,
            "mass": self.config.mass,
            "boundary_condition": self.config.boundary_condition,
            "time_scale": self.time_scale,
            "domain_size": self.domain_size,
            "dealias_filter": self.config.dealias_filter,
            "potential_type": self._potential.potential_type.value,
            "measurement_radius": self.measurement_radius,
            "time": self.time,
        }

    # -- Propagators --

    def _build_kinetic_propagator(self) -> ComplexGrid:
        """K(kx, ky) = exp(-i hbar (kx^2 + ky^2) dt' / 2m) in FFT order.

        With ``dealias_filter`` the highest modes (|k| > 0.9 k_max) are
        additionally damped, which makes K non-unitary.
        """
        cfg = self.config
        k = wave_numbers(cfg.grid_size, cfg.dx)
        k2 = k[None, :] ** 2 + k[:, None] ** 2
        factor = -cfg.hbar * cfg.dt_effective / (2.0 * cfg.mass)
        propagator = np.exp(1j * factor * k2)

        if cfg.dealias_filter:
            k_max = np.pi / cfg.dx
            k_filter = DEALIAS_CUTOFF_FRACTION * k_max
            k_abs = np.sqrt(k2)
            damping = np.where(
                k_abs > k_filter,
                np.exp(-(((k_abs - k_filter) / (k_max - k_filter)) ** 2)),
                1.0,
            )
            propagator = propagator * damping

        return ComplexGrid.from_complex(propagator)

    def _build_potential_propagator(self) -> ComplexGrid:
        """P(x, y) = exp(-i V dt' / 2 hbar), the half-step potential phase."""
        factor = -self.config.dt_effective / (2.0 * self.config.hbar)
        return ComplexGrid.from_complex(np.exp(1j * factor * self._potential.values))

    def _resolve_potential(
        self, potential: PotentialParams | PotentialType | str | PotentialField | None
    ) -> PotentialField:
        if isinstance(potential, PotentialField):
            if potential.grid_size != self.grid_size or not np.isclose(potential.dx, self.dx):
                raise InvalidConfiguration(
                    f"Potential built for N={potential.grid_size}, dx={potential.dx} "
                    f"does not match engine N={self.grid_size}, dx={self.dx}"
                )
            return potential
        return PotentialField.build(self.config, potential)

    def set_potential(
        self, potential: PotentialParams | PotentialType | str | PotentialField | None
    ) -> PotentialField:
        """Replace the potential wholesale and recompute P. psi is left untouched."""
        self._potential = self._resolve_potential(potential)
        self.potential_propagator = self._build_potential_propagator()
        logger.debug("Potential set to %s", self._potential.potential_type.value)
        return self._potential

    # -- Physics --

    def initialize(self, params: WavepacketParams | None = None, **overrides: float) -> None:
        """Seed psi with a normalized Gaussian wavepacket and reset the clock.

        psi(x, y) = exp(-r^2 / 4 sigma^2) * exp(i (px x + py y) / hbar),
        with r measured from (center_x, center_y) without wrapping.
        Keyword overrides (``center_x=...``) are applied on top of ``params``.

        Raises:
            DegenerateWavepacket: the packet has ~zero norm on this grid,
                e.g. sigma far below dx with the centre between cells.
        """
        params = params or WavepacketParams()
        if overrides:
            try:
                params = replace(params, **overrides)
            except TypeError as exc:
                raise InvalidConfiguration(f"Unknown wavepacket parameter in {sorted(overrides)}") from exc
        p = params.resolve(self.config)

        x, y = grid_coordinates(self.grid_size, self.dx)
        envelope = np.exp(-((x - p.center_x) ** 2 + (y - p.center_y) ** 2) / (4.0 * p.width**2))
        if self._potential.potential_type is PotentialType.FREEHAND:
            # Keep the packet out of painted walls
            envelope = envelope * np.exp(-FREEHAND_ATTENUATION * np.abs(self._potential.values))
        phase = (p.momentum_x * x + p.momentum_y * y) / self.config.hbar
        packet = envelope * np.exp(1j * phase)

        norm = float(np.sqrt(np.sum(np.abs(packet) ** 2)))
        if not norm > NORM_EPSILON:
            raise DegenerateWavepacket(
                norm, "Wavepacket vanishes on the grid; increase width relative to dx"
            )
        self._psi.assign_complex(packet)
        self.renormalize()

        self.time = 0.0
        self.step_count = 0
        self.last_measurement = None
        self.history = []
        logger.debug(
            "Initialized packet at (%.4g, %.4g) sigma=%.4g p=(%.4g, %.4g)",
            p.center_x,
            p.center_y,
            p.width,
            p.momentum_x,
            p.momentum_y,
        )

    def step(self) -> None:
        """Advance psi by dt * time_scale with one Strang-split step."""
        psi = self._psi
        apply_potential = not self._potential.is_zero

        if apply_potential:
            psi.multiply(self.potential_propagator)
        self.fft.forward(psi)
        psi.multiply(self.kinetic_propagator)
        self.fft.inverse(psi)
        if apply_potential:
            psi.multiply(self.potential_propagator)

        self.time += self.config.dt_effective
        self.step_count += 1

    def run(self, num_steps: int, record_interval: int | None = 1) -> list[dict]:
        """Call ``step`` ``num_steps`` times. Return history.

        A record is appended every ``record_interval`` steps; pass ``None``
        to skip recording.
        """
        for i in range(num_steps):
            self.step()
            if record_interval and (i + 1) % record_interval == 0:
                self._record_history()
        return self.history

    def _record_history(self) -> None:
        self.history.append({
            "step": self.step_count,
            "time": self.time,
            "total_probability": self.total_probability,
        })

    def renormalize(self) -> float:
        """Rescale psi so that sum |psi|^2 = 1. Return the norm before scaling.

        Raises:
            CollapseDegenerate: the norm is below ``NORM_EPSILON``; psi is
                left as it was.
        """
        norm = float(np.sqrt(self._psi.norm_squared_sum()))
        if not norm > NORM_EPSILON:
            raise CollapseDegenerate(norm, "Cannot renormalize a vanishing wavefunction")
        self._psi.scale(1.0 / norm)
        return norm

    def set_measurement_radius(self, radius: float) -> float:
        """Set the default detector radius, clamped to [0.05, 2.0]."""
        self.measurement_radius = float(np.clip(radius, MIN_MEASUREMENT_RADIUS, MAX_MEASUREMENT_RADIUS))
        return self.measurement_radius

    def _resolve_radius(self, radius: float | None) -> float:
        if radius is None:
            return self.measurement_radius
        if not np.isfinite(radius) or radius <= 0:
            raise InvalidConfiguration(f"Measurement radius must be positive, got {radius}")
        return float(radius)

    def detector_response(self, x: float, y: float, radius: float | None = None) -> NDArray[np.float64]:
        """Gaussian detector weight exp(-r^2 / 2 radius^2), periodic r, shape (N, N)."""
        if not (np.isfinite(x) and np.isfinite(y)):
            raise InvalidConfiguration(f"Detector position must be finite, got ({x}, {y})")
        radius = self._resolve_radius(radius)
        r2 = periodic_r2(self.grid_size, self.dx, x, y)
        return gaussian_profile(r2, radius)

    def measurement_probability(self, x: float, y: float, radius: float | None = None) -> float:
        """Detector-weighted probability clamp(sum w |psi|^2, 0, 1), no collapse."""
        weight = self.detector_response(x, y, radius)
        return float(np.clip(np.sum(weight * self._psi.abs2()), 0.0, 1.0))

    def measure(self, x: float, y: float, radius: float | None = None) -> MeasurementResult:
        """Soft position measurement at physical (x, y) with Born-rule outcome.

        Found: psi *= w (posterior concentrated under the detector).
        Not found: psi *= 1 - w (probability removed from under it).
        psi is renormalized afterwards; time does not advance.

        Raises:
            CollapseDegenerate: the collapsed state has ~zero norm. psi is
                left unchanged in that case.
        """
        radius = self._resolve_radius(radius)
        weight = self.detector_response(x, y, radius)
        density = self._psi.abs2()
        probability = float(np.clip(np.sum(weight * density), 0.0, 1.0))

        found = bool(self.rng.random() < probability)
        factor = weight if found else 1.0 - weight

        remaining = float(np.sqrt(np.sum(factor**2 * density)))
        if not remaining > NORM_EPSILON:
            raise CollapseDegenerate(
                remaining,
                f"{'Positive' if found else 'Negative'} collapse at ({x}, {y}) r={radius} leaves no probability",
            )
        self._psi.multiply_real(factor)
        self.renormalize()

        result = MeasurementResult(found=found, probability=probability, x=float(x), y=float(y), radius=radius)
        self.last_measurement = result
        logger.debug("Measured at (%.4g, %.4g) r=%.4g: p=%.6f found=%s", x, y, radius, probability, found)
        return result

    # -- Hand-off --

    def export_state(self) -> EngineState:
        """Deep-copied snapshot of everything needed to rebuild this engine."""
        return EngineState(
            grid_size=self.grid_size,
            dx=self.dx,
            dt=self.dt,
            hbar=self.config.hbar,
            mass=self.config.mass,
            time_scale=self.time_scale,
            dealias_filter=self.config.dealias_filter,
            psi=self._psi.to_complex(),
            potential=np.array(self._potential.values),
            potential_type=self._potential.potential_type.value,
            time=self.time,
            metadata={"step_count": self.step_count, "measurement_radius": self.measurement_radius},
        )

    @classmethod
    def from_state(
        cls, state: EngineState, rng: np.random.Generator | int | None = None
    ) -> SplitOperatorEngine:
        """Rebuild an engine from an ``EngineState`` without sharing buffers."""
        config = state.config
        field = PotentialField(state.potential, PotentialType.parse(state.potential_type), config.dx)
        engine = cls(config, potential=field, rng=rng)
        engine.restore(state)
        return engine

    def restore(self, state: EngineState) -> None:
        """Replace psi and the clock from a snapshot of a same-grid engine.

        The potential and propagators are kept; use ``from_state`` to
        rebuild those as well.
        """
        if state.grid_size != self.grid_size or not np.isclose(state.dx, self.dx):
            raise InvalidConfiguration(
                f"State for N={state.grid_size}, dx={state.dx} does not match "
                f"engine N={self.grid_size}, dx={self.dx}"
            )
        self._psi.assign_complex(state.psi)
        self.time = float(state.time)
        self.step_count = int(state.metadata.get("step_count", 0))
        if "measurement_radius" in state.metadata:
            self.measurement_radius = float(state.metadata["measurement_radius"])
