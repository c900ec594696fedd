#!/usr/bin/env python
# tune_main.py
"""
CLI entry point for tabu search parameter tuning.

Usage:
    python tune_main.py --objective mypipeline.scoring:score \
                        --space mypipeline.scoring:SEARCH_SPACE \
                        [--mode adaptive] [--threads 3] [--max-iterations 500]

--objective names a callable taking a dict of parameter values and returning
a score (higher is better). --space names a dict in the format described in
tune/search_space.py.

Outputs:
  - Best params and score printed to stdout when done
  - --plot PATH: PNG chart of search progress
"""

import argparse
import logging
import sys


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Tabu search over a discretised parameter space"
    )
    parser.add_argument("--objective",      type=str,   required=True, help="Objective as module:callable")
    parser.add_argument("--space",          type=str,   required=True, help="Search space dict as module:attribute")
    parser.add_argument("--mode",           type=str,   default="parallel", choices=["parallel", "adaptive"])
    parser.add_argument("--threads",        type=int,   default=1,    help="Number of search threads")
    parser.add_argument("--hood-size",      type=int,   default=5,    help="Neighbours per exploration round")
    parser.add_argument("--window",         type=int,   default=10,   help="Recent-score window length")
    parser.add_argument("--significance",   type=float, default=0.05, help="Convergence test significance level")
    parser.add_argument("--max-iterations", type=int,   default=1000, help="Iteration cap")
    parser.add_argument("--seed",           type=int,   default=None, help="Random seed")
    parser.add_argument("--minimize",       action="store_true",      help="Treat lower objective values as better")
    parser.add_argument("--plot",           type=str,   default=None, help="Write a progress chart to this path")
    parser.add_argument("--progress-every", type=int,   default=0,    help="Print progress every N iterations")
    parser.add_argument("--verbose",        action="store_true",      help="Enable debug logging")
    return parser.parse_args(argv)


def build_config(args):
    from config import ConvergenceConfig, NeighbourhoodConfig, TabuSearchConfig

    return TabuSearchConfig(
        threads=args.threads,
        seed=args.seed,
        mode=args.mode,
        neighbourhood=NeighbourhoodConfig(hood_size=args.hood_size),
        convergence=ConvergenceConfig(window=args.window, significance=args.significance),
    )


def main(argv=None):
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    from optimizer.errors import TabuSearchError
    from reporting.search_report import print_search_results
    from tune.objective import minimize, resolve
    from tune.runner import run_search
    from tune.search_space import build_ranges

    try:
        objective = resolve(args.objective)
        ranges = build_ranges(resolve(args.space))
        config = build_config(args)
    except (ImportError, ValueError, TabuSearchError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.minimize:
        objective = minimize(objective)

    print(f"Starting tabu search: up to {args.max_iterations} iterations")
    print(f"  Mode:      {config.mode}")
    print(f"  Threads:   {config.threads}")
    print(f"  Domain:    " + ", ".join(f"{k}[{len(v)}]" for k, v in ranges.items()) + "\n")

    try:
        result = run_search(
            objective,
            ranges,
            config=config,
            max_iterations=args.max_iterations,
            progress_every=args.progress_every,
        )
    except TabuSearchError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print_search_results(result)

    if args.plot:
        from reporting.charts import plot_search_progress

        plot_search_progress(result.search, args.plot)
        print(f"\nChart saved to {args.plot}")


if __name__ == "__main__":
    main()
