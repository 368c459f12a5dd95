"""Coordinate transforms and math utilities for the quantum playground.

All field arrays are laid out ``[iy, ix]`` (row-major, y outer), matching
``ComplexGrid`` storage where cell (x, y) sits at flat index ``y * N + x``.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


def is_power_of_two(n: int) -> bool:
    """True for 2, 4, 8, ... (1 is rejected: a radix-2 FFT needs a split)."""
    return n >= 2 and (n & (n - 1)) == 0


def frequency_indices(n: int) -> NDArray[np.int64]:
    """Unshifted FFT frequency order: 0, 1, ..., N/2-1, -N/2, ..., -1."""
    i = np.arange(n, dtype=np.int64)
    return np.where(i < n // 2, i, i - n)


def wave_numbers(n: int, dx: float) -> NDArray[np.float64]:
    """Angular wavenumbers k_i = 2*pi*freqIndex(i) / (N*dx) in FFT order."""
    return 2.0 * np.pi * frequency_indices(n) / (n * dx)


def grid_coordinates(
    grid_size: int, dx: float
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Physical (X, Y) positions of every cell, each of shape (N, N).

    Cell (ix, iy) sits at (ix * dx, iy * dx).
    """
    axis = np.arange(grid_size, dtype=np.float64) * dx
    return np.meshgrid(axis, axis, indexing="xy")


def periodic_delta(
    coords: float | NDArray[np.float64],
    center: float,
    domain_size: float,
) -> NDArray[np.float64]:
    """Minimum-image distance along one axis: min(|d| mod L, L - |d| mod L)."""
    d = np.abs(np.asarray(coords, dtype=np.float64) - center) % domain_size
    return np.minimum(d, domain_size - d)


def periodic_r2(
    grid_size: int,
    dx: float,
    center_x: float,
    center_y: float,
) -> NDArray[np.float64]:
    """Squared periodic distance from (center_x, center_y) to every cell."""
    length = grid_size * dx
    axis = np.arange(grid_size, dtype=np.float64) * dx
    ddx = periodic_delta(axis, center_x, length)
    ddy = periodic_delta(axis, center_y, length)
    return ddy[:, None] ** 2 + ddx[None, :] ** 2


def gaussian_profile(r2: NDArray[np.float64], sigma: float) -> NDArray[np.float64]:
    """exp(-r^2 / (2 sigma^2)), the bump shape shared by potentials and detectors."""
    return np.exp(-r2 / (2.0 * sigma * sigma))


def physical_to_grid(value: float | NDArray[np.float64], dx: float) -> NDArray[np.float64]:
    """Physical coordinate -> fractional grid index (x / dx)."""
    return np.asarray(value, dtype=np.float64) / dx


def grid_to_physical(index: float | NDArray[np.float64], dx: float) -> NDArray[np.float64]:
    """Grid index -> physical coordinate (i * dx)."""
    return np.asarray(index, dtype=np.float64) * dx


def nearest_cell(x: float, y: float, grid_size: int, dx: float) -> tuple[int, int]:
    """Grid cell nearest to a physical point, wrapped onto the periodic grid."""
    ix = int(np.rint(x / dx)) % grid_size
    iy = int(np.rint(y / dx)) % grid_size
    return ix, iy
