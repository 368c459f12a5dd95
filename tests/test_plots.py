"""Tests for the matplotlib plot suite."""

import os

import matplotlib
matplotlib.use("Agg")

import matplotlib.pyplot as plt
import pytest

from quantum_playground.core.engine import SplitOperatorEngine
from quantum_playground.utils.types import SimulationConfig, WavepacketParams
from quantum_playground.visualization.plots import PlotSuite


@pytest.fixture
def tmp_save_dir(tmp_path):
    return str(tmp_path)


@pytest.fixture
def plot_suite(tmp_save_dir):
    return PlotSuite(save_dir=tmp_save_dir)


@pytest.fixture
def small_engine():
    engine = SplitOperatorEngine(SimulationConfig(grid_size=32, dx=0.1, dt=0.001), potential="harmonic", rng=0)
    engine.initialize(WavepacketParams(width=0.3, momentum_x=2.0))
    engine.run(10, record_interval=2)
    return engine


class TestProbabilityDensity:
    def test_creates_file(self, plot_suite, small_engine, tmp_save_dir):
        fig = plot_suite.probability_density(small_engine)
        assert isinstance(fig, plt.Figure)
        assert os.path.exists(os.path.join(tmp_save_dir, "qp_density.png"))

    def test_with_measurement(self, plot_suite, small_engine):
        result = small_engine.measure(1.6, 1.6, 0.3)
        fig = plot_suite.probability_density(small_engine, measurement=result)
        assert len(fig.axes[0].patches) == 1

    def test_uses_last_measurement(self, plot_suite, small_engine):
        small_engine.measure(1.6, 1.6, 0.3)
        fig = plot_suite.probability_density(small_engine)
        assert len(fig.axes[0].patches) == 1

    def test_no_save(self, plot_suite, small_engine, tmp_save_dir):
        plot_suite.probability_density(small_engine, save=False)
        assert not os.path.exists(os.path.join(tmp_save_dir, "qp_density.png"))


class TestPhaseMap:
    def test_creates_file(self, plot_suite, small_engine, tmp_save_dir):
        fig = plot_suite.phase_map(small_engine)
        assert isinstance(fig, plt.Figure)
        assert os.path.exists(os.path.join(tmp_save_dir, "qp_phase.png"))

    def test_empty_wavefunction(self, plot_suite):
        engine = SplitOperatorEngine(SimulationConfig(grid_size=8))
        fig = plot_suite.phase_map(engine)
        assert isinstance(fig, plt.Figure)


class TestPotentialMap:
    def test_creates_file(self, plot_suite, small_engine, tmp_save_dir):
        fig = plot_suite.potential_map(small_engine.potential)
        assert isinstance(fig, plt.Figure)
        assert os.path.exists(os.path.join(tmp_save_dir, "qp_potential.png"))


class TestProbabilityHistory:
    def test_creates_file(self, plot_suite, small_engine, tmp_save_dir):
        fig = plot_suite.probability_history(small_engine.history)
        assert isinstance(fig, plt.Figure)
        assert os.path.exists(os.path.join(tmp_save_dir, "qp_probability_history.png"))

    def test_empty_history(self, plot_suite):
        fig = plot_suite.probability_history([])
        assert isinstance(fig, plt.Figure)


class TestSaveDir:
    def test_creates_missing_directory(self, tmp_path, small_engine):
        target = tmp_path / "nested" / "plots"
        PlotSuite(save_dir=str(target)).potential_map(small_engine.potential)
        assert (target / "qp_potential.png").exists()
