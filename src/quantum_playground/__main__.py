"""Main entry point: python -m quantum_playground"""

from __future__ import annotations

import argparse
import csv
import logging
import sys
from dataclasses import replace

from quantum_playground import __version__
from quantum_playground.analysis.metrics import MetricExtractor
from quantum_playground.analysis.validation import (
    BornRuleValidator,
    norm_drift,
    sample_measurements,
)
from quantum_playground.core.engine import SplitOperatorEngine
from quantum_playground.core.potential import PotentialType, default_params
from quantum_playground.errors import QuantumPlaygroundError
from quantum_playground.utils.constants import (
    DEFAULT_DT,
    DEFAULT_DX,
    DEFAULT_GRID_SIZE,
    DEFAULT_TIME_SCALE,
    HBAR,
    MASS,
)
from quantum_playground.utils.types import SimulationConfig, WavepacketParams

logger = logging.getLogger("quantum_playground")


def _add_engine_args(parser: argparse.ArgumentParser) -> None:
    grid = parser.add_argument_group("grid and physics")
    grid.add_argument("--grid-size", type=int, default=DEFAULT_GRID_SIZE, help="Cells per side (power of 2)")
    grid.add_argument("--dx", type=float, default=DEFAULT_DX, help="Cell spacing (physical units)")
    grid.add_argument("--dt", type=float, default=DEFAULT_DT, help="Time step")
    grid.add_argument("--hbar", type=float, default=HBAR)
    grid.add_argument("--mass", type=float, default=MASS)
    grid.add_argument("--time-scale", type=float, default=DEFAULT_TIME_SCALE, help="Multiplier on dt")
    grid.add_argument("--dealias", action="store_true", help="Damp the highest momenta (not norm-preserving)")
    grid.add_argument("--seed", type=int, help="Seed for measurement outcomes")

    pot = parser.add_argument_group("potential")
    pot.add_argument(
        "--potential",
        default=PotentialType.NONE.value,
        help="none, gaussianWell, barrier, harmonic, doubleWell, sinusoid, freehand",
    )
    pot.add_argument("--strength", type=float, help="Override the potential strength")
    pot.add_argument("--potential-width", type=float, help="Override the potential width")

    packet = parser.add_argument_group("wavepacket")
    packet.add_argument("--center-x", type=float, help="Packet centre x (default L/2)")
    packet.add_argument("--center-y", type=float, help="Packet centre y (default L/2)")
    packet.add_argument("--width", type=float, help="Packet sigma (default L/20)")
    packet.add_argument("--momentum-x", type=float, default=0.0)
    packet.add_argument("--momentum-y", type=float, default=0.0)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quantum-playground",
        description="Split-operator simulation of a 2D quantum particle with soft position measurement",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command")

    # simulate
    sim = sub.add_parser("simulate", help="Evolve a wavepacket and report observables")
    _add_engine_args(sim)
    sim.add_argument("--steps", type=int, default=100, help="Number of time steps")
    sim.add_argument("--record-interval", type=int, default=10, help="Steps between history records")
    sim.add_argument("--csv", type=str, help="Write the report to this CSV path")
    sim.add_argument("--plots", type=str, help="Directory for PNG plots")

    # measure
    meas = sub.add_parser("measure", help="Repeat independent measurements and check Born-rule statistics")
    _add_engine_args(meas)
    meas.add_argument("--x", type=float, required=True, help="Detector x (physical units)")
    meas.add_argument("--y", type=float, required=True, help="Detector y (physical units)")
    meas.add_argument("--radius", type=float, help="Detector radius (default 0.2)")
    meas.add_argument("--trials", type=int, default=1000, help="Independent measurements")
    meas.add_argument("--steps", type=int, default=0, help="Steps to evolve before measuring")

    return parser


def build_engine(args: argparse.Namespace) -> SplitOperatorEngine:
    """Engine and initial packet from parsed arguments."""
    config = SimulationConfig(
        grid_size=args.grid_size,
        dx=args.dx,
        dt=args.dt,
        hbar=args.hbar,
        mass=args.mass,
        time_scale=args.time_scale,
        dealias_filter=args.dealias,
    )

    params = default_params(args.potential)
    overrides = {}
    if args.strength is not None and hasattr(params, "strength"):
        overrides["strength"] = args.strength
    if args.potential_width is not None and hasattr(params, "width"):
        overrides["width"] = args.potential_width
    if overrides:
        params = replace(params, **overrides)

    engine = SplitOperatorEngine(config, potential=params, rng=args.seed)
    engine.initialize(
        WavepacketParams(
            center_x=args.center_x,
            center_y=args.center_y,
            width=args.width,
            momentum_x=args.momentum_x,
            momentum_y=args.momentum_y,
        )
    )
    return engine


def run_simulation(args: argparse.Namespace) -> dict:
    """Full pipeline: config -> engine -> evolve -> metrics -> report."""
    engine = build_engine(args)
    n = engine.grid_size

    print(f"Grid: {n}x{n} | dx={engine.dx} | L={engine.domain_size:.4f}")
    print(f"Potential: {engine.potential.potential_type.value} | Steps: {args.steps}")
    print()

    history = engine.run(args.steps, record_interval=args.record_interval)
    report = MetricExtractor(engine).full_report()
    report["norm_drift"] = norm_drift(history)

    print("=" * 50)
    print(" RESULTS")
    print("=" * 50)
    print(f"  Time:                {report['time']:.6f}")
    print(f"  Total probability:   {report['total_probability']:.12f}")
    print(f"  Max norm drift:      {report['norm_drift']:.3e}")
    print(f"  <x>, <y>:            ({report['mean_x']:.4f}, {report['mean_y']:.4f})")
    print(f"  Periodic mean:       ({report['periodic_mean_x']:.4f}, {report['periodic_mean_y']:.4f})")
    print(f"  Spatial variance:    {report['variance']:.6f}")
    print(f"  <px>, <py>:          ({report['momentum_x']:.4f}, {report['momentum_y']:.4f})")
    print(f"  Peak cell:           ({report['peak_ix']}, {report['peak_iy']})")
    print("=" * 50)

    if args.csv:
        export_csv(args.csv, engine.parameters(), report)

    if args.plots:
        from quantum_playground.visualization.plots import PlotSuite

        plots = PlotSuite(save_dir=args.plots)
        plots.probability_density(engine)
        plots.phase_map(engine)
        plots.potential_map(engine.potential)
        plots.probability_history(history)
        print(f"Plots saved to {plots.save_dir}")

    return report


def run_measurement(args: argparse.Namespace) -> dict:
    """Born-rule check: many measurements of one prepared state."""
    engine = build_engine(args)
    if args.steps:
        engine.run(args.steps, record_interval=None)

    results = sample_measurements(engine, args.x, args.y, args.radius, trials=args.trials, rng=args.seed)
    summary = BornRuleValidator.from_results(results).summary()
    lo, hi = summary["confidence_interval"]

    print(f"Detector at ({args.x}, {args.y}) r={results[0].radius if results else args.radius}")
    print(f"  Predicted probability: {summary['predicted_probability']:.6f}")
    print(f"  Found rate:            {summary['found_rate']:.6f} ({summary['found_count']}/{summary['trials']})")
    print(f"  99.9% interval:        ({lo:.4f}, {hi:.4f})")
    print(f"  z-score:               {summary['z_score']:.2f}")
    print(f"  Consistent:            {summary['consistent']}")
    return summary


def export_csv(path: str, parameters: dict, report: dict) -> None:
    """Write parameters and report as metric,value rows."""
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["metric", "value"])
        for k, v in parameters.items():
            writer.writerow([f"param_{k}", v])
        for k, v in report.items():
            writer.writerow([k, v])

    print(f"Results exported to {path}")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "simulate":
            run_simulation(args)
        elif args.command == "measure":
            run_measurement(args)
        else:
            parser.print_help()
    except QuantumPlaygroundError as exc:
        logger.error("%s", exc)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
