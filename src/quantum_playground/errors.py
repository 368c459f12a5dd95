"""Exception hierarchy for the quantum playground engine.

Every failure in the engine is a deterministic function of its inputs,
so nothing here is retried internally. Each error also subclasses the
closest built-in so callers catching ``ValueError`` / ``IndexError`` /
``ArithmeticError`` keep working.
"""

from __future__ import annotations


class QuantumPlaygroundError(Exception):
    """Base class for all engine errors."""


class InvalidConfiguration(QuantumPlaygroundError, ValueError):
    """Constructor or operation parameters out of their valid range."""


class InvalidGridSize(InvalidConfiguration):
    """Grid size is not a power of two (required by the radix-2 FFT)."""

    def __init__(self, size: int) -> None:
        super().__init__(f"Grid size must be a power of 2 (>= 2), got {size}")
        self.size = size


class UnknownPotentialType(QuantumPlaygroundError, ValueError):
    """Potential type tag that the field builder does not know."""

    def __init__(self, tag: object) -> None:
        super().__init__(f"Unknown potential type {tag!r}")
        self.tag = tag


class IndexOutOfRange(QuantumPlaygroundError, IndexError):
    """Grid cell access outside [0, N) in either axis."""

    def __init__(self, x: int, y: int, size: int) -> None:
        super().__init__(f"Cell ({x}, {y}) outside {size}x{size} grid")
        self.x = x
        self.y = y
        self.size = size


class DegenerateNormError(QuantumPlaygroundError, ArithmeticError):
    """Total probability is too close to zero to renormalize."""

    def __init__(self, norm: float, message: str) -> None:
        super().__init__(f"{message} (norm={norm:.3e})")
        self.norm = norm


class DegenerateWavepacket(DegenerateNormError):
    """Initial wavepacket has ~zero norm before normalization."""


class CollapseDegenerate(DegenerateNormError):
    """Wavefunction has ~zero norm after a measurement collapse."""
