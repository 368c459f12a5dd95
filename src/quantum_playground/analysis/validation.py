"""Statistical validation of measurement outcomes and norm conservation."""

from __future__ import annotations

import numpy as np
from scipy.stats import binom

from quantum_playground.core.engine import SplitOperatorEngine
from quantum_playground.utils.types import MeasurementResult


def sample_measurements(
    engine: SplitOperatorEngine,
    x: float,
    y: float,
    radius: float | None = None,
    trials: int = 1000,
    rng: np.random.Generator | int | None = None,
) -> list[MeasurementResult]:
    """Measure ``trials`` independent copies of the engine's current state.

    The engine itself is not touched: every trial restores a private replica
    engine from one snapshot before measuring.
    """
    state = engine.export_state()
    replica = SplitOperatorEngine.from_state(state, rng=rng)
    results = []
    for _ in range(trials):
        replica.restore(state)
        results.append(replica.measure(x, y, radius))
    return results


class BornRuleValidator:
    """Compare empirical detection rates against the predicted probability.

    Under the Born rule the number of ``found`` outcomes in n independent
    trials is Binomial(n, p), so the empirical rate should fall inside the
    binomial interval around p.
    """

    def __init__(self, predicted_probability: float, outcomes: list[bool]) -> None:
        self.predicted = float(predicted_probability)
        self.outcomes = [bool(o) for o in outcomes]

    @classmethod
    def from_results(cls, results: list[MeasurementResult]) -> BornRuleValidator:
        """Build from measurement results sharing one predicted probability."""
        if not results:
            return cls(0.0, [])
        return cls(results[0].probability, [r.found for r in results])

    @property
    def trials(self) -> int:
        return len(self.outcomes)

    def found_count(self) -> int:
        return sum(self.outcomes)

    def found_rate(self) -> float:
        """Fraction of trials that detected the particle (0.0 to 1.0)."""
        if self.trials == 0:
            return 0.0
        return self.found_count() / self.trials

    def confidence_interval(self, alpha: float = 0.999) -> tuple[float, float]:
        """Binomial interval for the found rate expected under p.

        Returns (lower, upper) bounds as fractions in [0, 1].
        """
        n = self.trials
        if n == 0:
            return (0.0, 0.0)
        lo, hi = binom.interval(alpha, n, self.predicted)
        return (float(lo) / n, float(hi) / n)

    def z_score(self) -> float:
        """Deviation of the found count from n p in binomial standard deviations."""
        n = self.trials
        sigma = np.sqrt(n * self.predicted * (1.0 - self.predicted))
        if sigma == 0:
            return 0.0 if np.isclose(self.found_count(), n * self.predicted) else float("inf")
        return float((self.found_count() - n * self.predicted) / sigma)

    def is_consistent(self, alpha: float = 0.999) -> bool:
        lo, hi = self.confidence_interval(alpha)
        return lo <= self.found_rate() <= hi

    def summary(self, alpha: float = 0.999) -> dict:
        """Full validation summary."""
        return {
            "trials": self.trials,
            "predicted_probability": self.predicted,
            "found_count": self.found_count(),
            "found_rate": self.found_rate(),
            "confidence_interval": self.confidence_interval(alpha),
            "z_score": self.z_score(),
            "consistent": self.is_consistent(alpha),
        }


def norm_drift(history: list[dict], reference: float = 1.0) -> float:
    """Largest |total_probability - reference| over a run history."""
    if not history:
        return 0.0
    return float(max(abs(h["total_probability"] - reference) for h in history))
