"""Potential landscapes V(x, y) on the periodic simulation grid.

Each landscape is a ``PotentialType`` tag plus one frozen parameter
dataclass per variant. ``PotentialField.build`` dispatches on the tag once
and evaluates the whole field with numpy; nothing is switched per cell.
All distances use the periodic minimum image, including the harmonic
well (whose r^2 therefore peaks at the domain edges rather than growing
without bound).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, ClassVar, Union

import numpy as np
from numpy.typing import NDArray

from quantum_playground.errors import InvalidConfiguration, UnknownPotentialType
from quantum_playground.utils.constants import (
    DEFAULT_POTENTIAL_STRENGTH,
    DEFAULT_POTENTIAL_WIDTH,
    DOUBLE_WELL_NARROWING,
    SINUSOID_PERIODS,
)
from quantum_playground.utils.math_helpers import (
    gaussian_profile,
    grid_coordinates,
    periodic_r2,
)

if TYPE_CHECKING:
    from quantum_playground.utils.types import SimulationConfig

logger = logging.getLogger(__name__)


class PotentialType(str, Enum):
    """Tag identifying the shape of a potential landscape."""

    NONE = "none"
    GAUSSIAN_WELL = "gaussianWell"
    BARRIER = "barrier"
    HARMONIC = "harmonic"
    DOUBLE_WELL = "doubleWell"
    SINUSOID = "sinusoid"
    FREEHAND = "freehand"

    @classmethod
    def parse(cls, tag: PotentialType | str) -> PotentialType:
        """Resolve a tag such as ``"gaussianWell"``, ``"gaussian_well"`` or ``"single"``."""
        if isinstance(tag, cls):
            return tag
        if not isinstance(tag, str):
            raise UnknownPotentialType(tag)
        key = tag.strip().replace("_", "").replace("-", "").lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        if key in _LEGACY_TAGS:
            return _LEGACY_TAGS[key]
        raise UnknownPotentialType(tag)


# Older short tag names, accepted as aliases.
_LEGACY_TAGS = {
    "single": PotentialType.GAUSSIAN_WELL,
    "double": PotentialType.DOUBLE_WELL,
    "quadratic": PotentialType.HARMONIC,
}


def _check_width(width: float) -> None:
    if not np.isfinite(width) or width <= 0:
        raise InvalidConfiguration(f"Potential width must be positive, got {width}")


@dataclass(frozen=True)
class NoPotential:
    """Free particle: V = 0 everywhere."""

    kind: ClassVar[PotentialType] = PotentialType.NONE


@dataclass(frozen=True)
class GaussianWell:
    """Attractive bump V = -strength * exp(-r^2 / (2 width^2)).

    ``strength`` is the well depth; ``None`` centres sit at the domain centre.
    """

    center_x: float | None = None
    center_y: float | None = None
    width: float = DEFAULT_POTENTIAL_WIDTH
    strength: float = DEFAULT_POTENTIAL_STRENGTH

    kind: ClassVar[PotentialType] = PotentialType.GAUSSIAN_WELL


@dataclass(frozen=True)
class Barrier:
    """Repulsive bump V = +strength * exp(-r^2 / (2 width^2))."""

    center_x: float | None = None
    center_y: float | None = None
    width: float = DEFAULT_POTENTIAL_WIDTH / 2.0
    strength: float = DEFAULT_POTENTIAL_STRENGTH

    kind: ClassVar[PotentialType] = PotentialType.BARRIER


@dataclass(frozen=True)
class Harmonic:
    """Quadratic confinement V = strength * r^2 about the centre."""

    center_x: float | None = None
    center_y: float | None = None
    strength: float = DEFAULT_POTENTIAL_STRENGTH / (2.0 * DEFAULT_POTENTIAL_WIDTH**2)

    kind: ClassVar[PotentialType] = PotentialType.HARMONIC


@dataclass(frozen=True)
class DoubleWell:
    """Two Gaussian wells of equal depth.

    Default centres are (L/2, L/3) and (L/2, 2L/3), each well narrower
    than a single well by ``DOUBLE_WELL_NARROWING``.
    """

    first_center: tuple[float, float] | None = None
    second_center: tuple[float, float] | None = None
    width: float = DEFAULT_POTENTIAL_WIDTH / DOUBLE_WELL_NARROWING
    strength: float = DEFAULT_POTENTIAL_STRENGTH

    kind: ClassVar[PotentialType] = PotentialType.DOUBLE_WELL


@dataclass(frozen=True)
class Sinusoid:
    """Stripes along y: V = -strength * cos(2 pi periods y / L).

    An integer number of periods keeps V continuous across the wrap.
    """

    periods: int = SINUSOID_PERIODS
    strength: float = DEFAULT_POTENTIAL_STRENGTH

    kind: ClassVar[PotentialType] = PotentialType.SINUSOID


@dataclass(frozen=True)
class Freehand:
    """User-painted landscape; starts flat at ``base`` and grows by brush strokes."""

    base: float = 0.0

    kind: ClassVar[PotentialType] = PotentialType.FREEHAND


PotentialParams = Union[NoPotential, GaussianWell, Barrier, Harmonic, DoubleWell, Sinusoid, Freehand]

_DEFAULT_PARAMS: dict[PotentialType, Callable[[], PotentialParams]] = {
    PotentialType.NONE: NoPotential,
    PotentialType.GAUSSIAN_WELL: GaussianWell,
    PotentialType.BARRIER: Barrier,
    PotentialType.HARMONIC: Harmonic,
    PotentialType.DOUBLE_WELL: DoubleWell,
    PotentialType.SINUSOID: Sinusoid,
    PotentialType.FREEHAND: Freehand,
}


def default_params(tag: PotentialType | str) -> PotentialParams:
    """Default parameter object for a potential tag."""
    return _DEFAULT_PARAMS[PotentialType.parse(tag)]()


# -- Builders: one per variant, each returns an (N, N) array indexed [iy, ix] --


def _center(config: SimulationConfig, cx: float | None, cy: float | None) -> tuple[float, float]:
    half = config.domain_size / 2.0
    return (half if cx is None else cx, half if cy is None else cy)


def _bump(config: SimulationConfig, cx: float, cy: float, width: float, amplitude: float) -> NDArray[np.float64]:
    _check_width(width)
    r2 = periodic_r2(config.grid_size, config.dx, cx, cy)
    return amplitude * gaussian_profile(r2, width)


def _build_none(config: SimulationConfig, params: NoPotential) -> NDArray[np.float64]:
    return np.zeros((config.grid_size, config.grid_size), dtype=np.float64)


def _build_gaussian_well(config: SimulationConfig, params: GaussianWell) -> NDArray[np.float64]:
    cx, cy = _center(config, params.center_x, params.center_y)
    return _bump(config, cx, cy, params.width, -params.strength)


def _build_barrier(config: SimulationConfig, params: Barrier) -> NDArray[np.float64]:
    cx, cy = _center(config, params.center_x, params.center_y)
    return _bump(config, cx, cy, params.width, params.strength)


def _build_harmonic(config: SimulationConfig, params: Harmonic) -> NDArray[np.float64]:
    cx, cy = _center(config, params.center_x, params.center_y)
    return params.strength * periodic_r2(config.grid_size, config.dx, cx, cy)


def _build_double_well(config: SimulationConfig, params: DoubleWell) -> NDArray[np.float64]:
    length = config.domain_size
    first = params.first_center or (length / 2.0, length / 3.0)
    second = params.second_center or (length / 2.0, 2.0 * length / 3.0)
    return _bump(config, first[0], first[1], params.width, -params.strength) + _bump(
        config, second[0], second[1], params.width, -params.strength
    )


def _build_sinusoid(config: SimulationConfig, params: Sinusoid) -> NDArray[np.float64]:
    _, y = grid_coordinates(config.grid_size, config.dx)
    return -params.strength * np.cos(2.0 * np.pi * params.periods * y / config.domain_size)


def _build_freehand(config: SimulationConfig, params: Freehand) -> NDArray[np.float64]:
    return np.full((config.grid_size, config.grid_size), float(params.base), dtype=np.float64)


_BUILDERS: dict[PotentialType, Callable[..., NDArray[np.float64]]] = {
    PotentialType.NONE: _build_none,
    PotentialType.GAUSSIAN_WELL: _build_gaussian_well,
    PotentialType.BARRIER: _build_barrier,
    PotentialType.HARMONIC: _build_harmonic,
    PotentialType.DOUBLE_WELL: _build_double_well,
    PotentialType.SINUSOID: _build_sinusoid,
    PotentialType.FREEHAND: _build_freehand,
}


class PotentialField:
    """Real-valued N x N potential plus the tag and parameters it came from.

    Instances are immutable: ``values`` is a read-only array and painting
    with ``with_brush`` returns a new freehand field.
    """

    def __init__(
        self,
        values: NDArray[np.float64],
        potential_type: PotentialType,
        dx: float,
        params: PotentialParams | None = None,
    ) -> None:
        values = np.array(values, dtype=np.float64)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise InvalidConfiguration(f"Potential must be a square 2D array, got shape {values.shape}")
        if not np.all(np.isfinite(values)):
            raise InvalidConfiguration("Potential values must be finite; check strength, centres and periods")
        values.flags.writeable = False
        self._values = values
        self.potential_type = PotentialType.parse(potential_type)
        self.dx = float(dx)
        self.params = params if params is not None else default_params(self.potential_type)

    @classmethod
    def build(
        cls,
        config: SimulationConfig,
        params: PotentialParams | PotentialType | str | None = None,
    ) -> PotentialField:
        """Evaluate a landscape on the grid described by ``config``.

        ``params`` may be a parameter object, a tag (defaults filled in),
        or ``None`` for a free particle.
        """
        if params is None:
            params = NoPotential()
        elif isinstance(params, (PotentialType, str)):
            params = default_params(params)

        kind = getattr(params, "kind", None)
        if kind not in _BUILDERS:
            raise UnknownPotentialType(type(params).__name__)

        field = cls(_BUILDERS[kind](config, params), kind, config.dx, params)
        logger.debug("Built %s potential: min=%.4g max=%.4g", kind.value, field.values.min(), field.values.max())
        return field

    @property
    def values(self) -> NDArray[np.float64]:
        """Read-only (N, N) array indexed [iy, ix]."""
        return self._values

    @property
    def grid_size(self) -> int:
        return self._values.shape[0]

    @property
    def domain_size(self) -> float:
        return self.grid_size * self.dx

    @property
    def is_zero(self) -> bool:
        return not np.any(self._values)

    def value_at(self, ix: int, iy: int) -> float:
        return float(self._values[iy, ix])

    def with_brush(self, x: float, y: float, strength: float, radius: float) -> PotentialField:
        """New freehand field with a Gaussian stroke added at physical (x, y).

        Negative ``strength`` erases. The stroke wraps across the edges like
        every other distance on the grid.
        """
        _check_width(radius)
        r2 = periodic_r2(self.grid_size, self.dx, x, y)
        values = self._values + strength * gaussian_profile(r2, radius)
        return PotentialField(values, PotentialType.FREEHAND, self.dx, Freehand())

    def __repr__(self) -> str:
        return f"PotentialField(type={self.potential_type.value}, size={self.grid_size})"
