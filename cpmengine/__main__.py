"""
CPM Scheduling Engine
=====================

Critical path scheduling, completion date simulation and conflict detection.
"""

import argparse
import sys

from .examples.simple_project import create_sample_project


def main(argv=None):
    parser = argparse.ArgumentParser(description="CPM Scheduling Engine")
    parser.add_argument(
        "--example", action="store_true", help="Run the example project"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="schedule_gantt.png",
        help="Output filename for the Gantt chart",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=1000,
        help="Monte Carlo iterations",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Seed for the Monte Carlo simulation"
    )

    args = parser.parse_args(argv)
    if args.iterations < 1:
        parser.error("--iterations must be at least 1")

    if args.example:
        print("Running example project...")
        create_sample_project(
            output=args.output, iterations=args.iterations, seed=args.seed
        )
        print(f"Gantt chart saved to {args.output}")
        return 0
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
