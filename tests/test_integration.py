"""Integration tests: full pipeline end-to-end and the command line."""

import csv
import os

import numpy as np
import pytest

from quantum_playground import (
    PotentialField,
    PotentialType,
    SimulationConfig,
    SplitOperatorEngine,
    WavepacketParams,
)
from quantum_playground.__main__ import build_engine, build_parser, main
from quantum_playground.analysis.metrics import MetricExtractor
from quantum_playground.analysis.validation import BornRuleValidator, norm_drift, sample_measurements
from quantum_playground.core.potential import DoubleWell


class TestFullPipeline:
    """Configure, evolve, measure, hand off and analyse one simulation."""

    def test_end_to_end(self):
        config = SimulationConfig(grid_size=64, dx=0.1, dt=0.002)
        engine = SplitOperatorEngine(config, potential=DoubleWell(), rng=42)
        engine.initialize(WavepacketParams(center_x=3.2, center_y=2.2, width=0.3, momentum_y=1.0))
        assert engine.total_probability == pytest.approx(1.0, abs=1e-9)

        history = engine.run(60, record_interval=10)
        assert len(history) == 6
        assert norm_drift(history) < 1e-9

        report = MetricExtractor(engine).full_report()
        assert report["steps"] == 60
        assert report["time"] == pytest.approx(0.12)

        # Hand the state to a second engine and keep going in lockstep
        twin = SplitOperatorEngine.from_state(engine.export_state(), rng=1)
        engine.run(10, record_interval=None)
        twin.run(10, record_interval=None)
        np.testing.assert_allclose(twin.wavefunction.to_complex(), engine.wavefunction.to_complex(), atol=1e-14)

        result = engine.measure(3.2, 2.2, radius=0.5)
        assert engine.total_probability == pytest.approx(1.0, abs=1e-9)
        assert result.probability == pytest.approx(twin.measurement_probability(3.2, 2.2, 0.5))

        summary = BornRuleValidator.from_results(
            sample_measurements(twin, 3.2, 2.2, 0.5, trials=400, rng=9)
        ).summary()
        assert summary["trials"] == 400
        assert summary["consistent"]

    def test_painting_then_evolving(self):
        config = SimulationConfig(grid_size=32, dx=0.1, dt=0.001)
        engine = SplitOperatorEngine(config)
        engine.initialize(WavepacketParams(width=0.3))
        painted = engine.potential.with_brush(2.4, 1.6, strength=5.0, radius=0.2)
        engine.set_potential(painted)
        assert engine.potential.potential_type is PotentialType.FREEHAND
        engine.run(50, record_interval=None)
        assert abs(engine.total_probability - 1.0) < 1e-9

    def test_package_exports(self):
        field = PotentialField.build(SimulationConfig(grid_size=8), "sinusoid")
        assert field.grid_size == 8


class TestCLI:
    def test_parser_defaults(self):
        args = build_parser().parse_args(["simulate"])
        assert args.command == "simulate"
        assert args.grid_size == 64
        assert args.steps == 100
        assert args.potential == "none"

    def test_measure_requires_position(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["measure", "--x", "1.0"])

    def test_build_engine_overrides(self):
        args = build_parser().parse_args(
            ["simulate", "--grid-size", "32", "--potential", "gaussianWell", "--strength", "3.0",
             "--potential-width", "0.5", "--center-x", "1.0"]
        )
        engine = build_engine(args)
        assert engine.grid_size == 32
        assert engine.potential.params.strength == 3.0
        assert engine.potential.params.width == 0.5
        assert MetricExtractor(engine).peak_cell()[0] == 10

    def test_simulate(self, capsys):
        assert main(["simulate", "--grid-size", "32", "--steps", "5", "--record-interval", "1"]) == 0
        out = capsys.readouterr().out
        assert "RESULTS" in out
        assert "Total probability" in out

    def test_simulate_csv_and_plots(self, tmp_path):
        csv_path = tmp_path / "report.csv"
        plot_dir = tmp_path / "plots"
        code = main([
            "simulate", "--grid-size", "32", "--steps", "4", "--potential", "harmonic",
            "--csv", str(csv_path), "--plots", str(plot_dir),
        ])
        assert code == 0
        with open(csv_path) as f:
            rows = {row[0]: row[1] for row in csv.reader(f)}
        assert rows["metric"] == "value"
        assert rows["param_grid_size"] == "32"
        assert float(rows["total_probability"]) == pytest.approx(1.0)
        assert os.path.exists(plot_dir / "qp_density.png")
        assert os.path.exists(plot_dir / "qp_probability_history.png")

    def test_measure(self, capsys):
        code = main([
            "measure", "--grid-size", "32", "--width", "0.4", "--x", "1.6", "--y", "1.6",
            "--radius", "0.3", "--trials", "200", "--seed", "7",
        ])
        assert code == 0
        assert "Found rate" in capsys.readouterr().out

    def test_invalid_grid_size_exits_with_error(self, caplog):
        assert main(["simulate", "--grid-size", "48", "--steps", "1"]) == 2
        assert "power of 2" in caplog.text

    def test_unknown_potential_exits_with_error(self):
        assert main(["simulate", "--grid-size", "32", "--potential", "triangle"]) == 2

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_help_lists_freehand(self, capsys):
        with pytest.raises(SystemExit):
            main(["simulate", "--help"])
        assert "freehand" in capsys.readouterr().out

    def test_simulate_freehand(self, capsys):
        assert main(["simulate", "--grid-size", "32", "--steps", "2", "--potential", "freehand"]) == 0
        assert "RESULTS" in capsys.readouterr().out
