#!/usr/bin/env python3
"""
Monte Carlo driver script for fusion-evaporation reactions

Examples:
    python monte_carlo.py --config configs/si26_decay.json --events 100000
    python monte_carlo.py --config configs/si26_decay.json --events 10000 --seed 42 --output summary.csv
"""

import argparse
import logging
from pathlib import Path

from fusion import HistogramSink, MassTable, load_setup, simulate_batch
from fusion.exceptions import ConfigError

DEFAULT_MASSES = Path(__file__).resolve().parent / "data" / "mass.dat"


def print_reaction(config):
    print("\n📋 Reaction")
    print("=" * 60)
    beam = config.beam
    print(f"Beam             : A={beam.nuclide.A}, Z={beam.nuclide.Z} at {beam.energy:.3f} MeV "
          f"(M = {beam.nuclide.mass:.4f} MeV)")
    print(f"Target           : A={config.target.A}, Z={config.target.Z} (M = {config.target.mass:.4f} MeV)")
    print(f"Q-value          : {config.q_value:.4f} MeV")
    print("Products:")
    for i, p in enumerate(config.products):
        table = config.excited_table(p)
        states = f", {len(table)} excited states" if table is not None else ""
        print(f"  [{i}] {p.name:10s}: A={p.A:3d}, Z={p.Z:3d}, M = {p.mass:.4f} MeV{states}")
    if config.decay is not None:
        daughters = " + ".join(d.name for d in config.decay.products)
        print(f"Decay            : {config.decay_parent.name} → {daughters}")
    channels = config.reconstruction.channels
    print(f"Reconstruction   : {', '.join(channels) if channels else 'none'}")
    print("=" * 60)


def print_summary(sink, output=None):
    summary = sink.summary()
    print("\n📊 Observables")
    print("=" * 60)
    if summary.empty:
        print("No observations recorded.")
    else:
        print(summary.to_string(index=False, float_format=lambda v: f"{v:.4f}"))
    print("=" * 60 + "\n")

    if output:
        summary.to_csv(output, index=False)
        print(f"📄 Exported {len(summary)} categories to {output}")


def build_parser():
    return argparse.ArgumentParser(
        description="Fusion-evaporation reaction Monte Carlo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  python monte_carlo.py --config configs/si26_decay.json --events 100000
  python monte_carlo.py --config configs/si26_decay.json --events 10000 --seed 42
  python monte_carlo.py --config configs/si26_decay.json --workers 4 --verbose --output summary.csv"""
    )


def main():
    parser = build_parser()
    parser.add_argument("--config", required=True, help="Reaction configuration (JSON)")
    parser.add_argument("--masses", default=str(DEFAULT_MASSES), help="Mass table file (A Z mass)")
    parser.add_argument("--events", type=int, default=10000, help="Number of events (default 10000)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    parser.add_argument("--independent-streams", action="store_true",
                        help="Derive one random stream per event from the seed")
    parser.add_argument("--workers", type=int, default=1, help="Worker threads (default 1)")
    parser.add_argument("--verbose", action="store_true", help="Show progress output")
    parser.add_argument("--output", type=str, help="Export the observable summary to a CSV file")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("\n" + "=" * 60)
    print("🔥 Fusion-Evaporation Monte Carlo")
    print("=" * 60)
    print(f"Configuration    : {args.config}")
    print(f"Mass table       : {args.masses}")
    print(f"Number of Events : {args.events}")
    print(f"Random Seed      : {args.seed if args.seed is not None else 'None'}")
    print(f"Workers          : {args.workers}")
    print("=" * 60)

    try:
        masses = MassTable.from_file(args.masses)
        config = load_setup(args.config).build(masses)
    except ConfigError as e:
        parser.exit(2, f"❌ Configuration error: {e}\n")

    print_reaction(config)

    sink = HistogramSink()
    results = simulate_batch(
        config,
        args.events,
        sink,
        seed=args.seed,
        independent_streams=args.independent_streams,
        workers=args.workers,
    )

    print("\n" + "=" * 60)
    print("✅ Generation Complete")
    print("=" * 60)
    print(f"Successful events       : {results['success']}/{results['total']}")
    print(f"Skipped (phase space)   : {results['skipped']}")
    if config.unweight:
        print(f"Rejected (unweighting)  : {results['rejected']}")
    if config.decay is not None:
        print(f"Decays skipped (Q <= 0) : {results['decay_skipped']}")
    print(f"Conservation violations : {results['conservation_violations']}")
    print("=" * 60)

    print_summary(sink, args.output)


if __name__ == "__main__":
    main()
