"""Default parameters and numerical constants for the quantum playground."""

# -- Simulation grid --
DEFAULT_GRID_SIZE: int = 64
DEFAULT_DX: float = 0.1
DEFAULT_DT: float = 0.005
DEFAULT_TIME_SCALE: float = 1.0
PERIODIC: str = "periodic"

# -- Physics (natural units) --
HBAR: float = 1.0
MASS: float = 1.0

# -- Wavepacket --
PACKET_WIDTH_FRACTION: float = 1.0 / 20.0  # sigma as a fraction of domain size

# -- Potentials (fixed physical scales, independent of domain size) --
DEFAULT_POTENTIAL_WIDTH: float = 2.0
DEFAULT_POTENTIAL_STRENGTH: float = 1.0
DOUBLE_WELL_NARROWING: float = 3.0  # each well is width / 3
SINUSOID_PERIODS: int = 3
FREEHAND_ATTENUATION: float = 10.0  # psi *= exp(-a * |V|) on initialize

# -- Measurement --
DEFAULT_MEASUREMENT_RADIUS: float = 0.2
MIN_MEASUREMENT_RADIUS: float = 0.05
MAX_MEASUREMENT_RADIUS: float = 2.0

# -- Numerics --
NORM_EPSILON: float = 1e-10  # below this sqrt(sum |psi|^2) counts as zero
DEALIAS_CUTOFF_FRACTION: float = 0.9  # filter starts at 0.9 * k_max
