"""N x N complex amplitude grid backed by two flat float64 arrays."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from quantum_playground.errors import InvalidConfiguration, IndexOutOfRange


class ComplexGrid:
    """Dense N x N grid of complex amplitudes psi[y][x] = (re, im).

    Storage is two contiguous row-major arrays of length N^2 so that row
    scans (FFT passes, rendering) walk memory sequentially. Cell (x, y)
    lives at flat index ``y * N + x``.
    """

    def __init__(self, size: int) -> None:
        if size < 1:
            raise InvalidConfiguration(f"Grid size must be positive, got {size}")
        self.size = int(size)
        self.real = np.zeros(self.size * self.size, dtype=np.float64)
        self.imag = np.zeros(self.size * self.size, dtype=np.float64)

    @classmethod
    def from_complex(cls, values: NDArray[np.complex128]) -> ComplexGrid:
        """Build a grid from an (N, N) complex array indexed [y, x]."""
        values = np.asarray(values)
        if values.ndim != 2 or values.shape[0] != values.shape[1]:
            raise InvalidConfiguration(f"Expected a square 2D array, got shape {values.shape}")
        grid = cls(values.shape[0])
        grid.assign_complex(values)
        return grid

    @property
    def shape(self) -> tuple[int, int]:
        return (self.size, self.size)

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise IndexOutOfRange(x, y, self.size)
        return y * self.size + x

    # -- Element access --

    def get(self, x: int, y: int) -> tuple[float, float]:
        """Return (re, im) at cell (x, y)."""
        i = self._index(x, y)
        return float(self.real[i]), float(self.imag[i])

    def set(self, x: int, y: int, re: float, im: float) -> None:
        i = self._index(x, y)
        self.real[i] = re
        self.imag[i] = im

    def abs2_at(self, x: int, y: int) -> float:
        """|psi|^2 at a single cell."""
        re, im = self.get(x, y)
        return re * re + im * im

    # -- Whole-grid operations --

    def copy_from(self, other: ComplexGrid) -> None:
        """Deep element-wise copy of ``other`` into this grid."""
        if other.size != self.size:
            raise InvalidConfiguration(
                f"Cannot copy {other.size}x{other.size} grid into {self.size}x{self.size}"
            )
        np.copyto(self.real, other.real)
        np.copyto(self.imag, other.imag)

    def clone(self) -> ComplexGrid:
        result = ComplexGrid(self.size)
        result.copy_from(self)
        return result

    def zero(self) -> None:
        self.real[:] = 0.0
        self.imag[:] = 0.0

    def norm_squared_sum(self) -> float:
        """Sum of |psi|^2 over all cells (discrete total probability)."""
        return float(np.dot(self.real, self.real) + np.dot(self.imag, self.imag))

    def scale(self, factor: float) -> None:
        self.real *= factor
        self.imag *= factor

    def multiply(self, other: ComplexGrid) -> None:
        """Pointwise complex product: self *= other."""
        re = self.real * other.real - self.imag * other.imag
        im = self.real * other.imag + self.imag * other.real
        self.real[:] = re
        self.imag[:] = im

    def multiply_real(self, weights: NDArray[np.float64]) -> None:
        """Pointwise scaling by a real (N, N) or flat field."""
        w = np.asarray(weights, dtype=np.float64).ravel()
        self.real *= w
        self.imag *= w

    # -- Views and conversions --

    def abs2(self) -> NDArray[np.float64]:
        """Probability density |psi|^2 as an (N, N) array."""
        return (self.real**2 + self.imag**2).reshape(self.shape)

    def phase(self) -> NDArray[np.float64]:
        """arg(psi) in [-pi, pi] as an (N, N) array."""
        return np.arctan2(self.imag, self.real).reshape(self.shape)

    def to_complex(self) -> NDArray[np.complex128]:
        """New (N, N) complex128 array indexed [y, x]."""
        out = np.empty(self.shape, dtype=np.complex128)
        out.real = self.real.reshape(self.shape)
        out.imag = self.imag.reshape(self.shape)
        return out

    def assign_complex(self, values: NDArray[np.complex128]) -> None:
        """Overwrite the grid from an (N, N) complex array indexed [y, x]."""
        values = np.asarray(values)
        if values.shape != self.shape:
            raise InvalidConfiguration(f"Expected shape {self.shape}, got {values.shape}")
        self.real[:] = values.real.ravel()
        self.imag[:] = values.imag.ravel()

    def read_only(self) -> ComplexGrid:
        """View sharing this grid's buffers but refusing writes."""
        view = ComplexGrid.__new__(ComplexGrid)
        view.size = self.size
        view.real = self.real.view()
        view.imag = self.imag.view()
        view.real.flags.writeable = False
        view.imag.flags.writeable = False
        return view

    def __repr__(self) -> str:
        return f"ComplexGrid(size={self.size}, norm2={self.norm_squared_sum():.6f})"
