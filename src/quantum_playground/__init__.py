"""Quantum playground: split-operator simulation of a 2D quantum particle with measurement."""

from quantum_playground.core.complex_grid import ComplexGrid
from quantum_playground.core.engine import SplitOperatorEngine
from quantum_playground.core.fft import FFT1D, FFT2D
from quantum_playground.core.potential import PotentialField, PotentialType
from quantum_playground.utils.types import (
    EngineState,
    MeasurementResult,
    SimulationConfig,
    WavepacketParams,
)

__version__ = "0.1.0"

__all__ = [
    "ComplexGrid",
    "EngineState",
    "FFT1D",
    "FFT2D",
    "MeasurementResult",
    "PotentialField",
    "PotentialType",
    "SimulationConfig",
    "SplitOperatorEngine",
    "WavepacketParams",
    "__version__",
]
