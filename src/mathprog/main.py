"""
Entry point for solving the example programs.

This script provides a command-line interface to build one of the example
programs, solve it with a registered engine and optionally export it in
CPLEX LP format.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .examples import EXAMPLES
from .parameters import DoubleParameter, IntParameter, SolverParameters, StringParameter
from .solvers import SOLVER_REGISTRY, create_solver
from .writers import write_lp_file


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, set logging level to DEBUG
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description='Solve an example mathematical program',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        '--example',
        choices=sorted(EXAMPLES),
        default='one-four-three',
        help='Example program to solve'
    )

    parser.add_argument(
        '--solver',
        choices=sorted(SOLVER_REGISTRY),
        default='scipy',
        help='Engine used to solve the program'
    )

    parser.add_argument(
        '--max-wall-seconds',
        type=float,
        default=None,
        help='Wall time limit (excludes --max-cpu-seconds)'
    )

    parser.add_argument(
        '--max-cpu-seconds',
        type=float,
        default=None,
        help='CPU time limit (excludes --max-wall-seconds)'
    )

    parser.add_argument(
        '--max-threads',
        type=int,
        default=None,
        help='Maximum number of engine threads'
    )

    parser.add_argument(
        '--deterministic',
        action='store_true',
        help='Ask the engine for reproducible runs'
    )

    parser.add_argument(
        '--work-dir',
        type=str,
        default=None,
        help='Directory for temporary engine files'
    )

    parser.add_argument(
        '--write-lp',
        type=str,
        default=None,
        help='Also write the program to this LP file'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output folder for the solution values'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose (debug) logging'
    )

    return parser.parse_args(argv)


def build_parameters(args: argparse.Namespace) -> SolverParameters:
    """Solver parameters from the command-line arguments."""
    parameters = SolverParameters()
    parameters.set_value(DoubleParameter.MAX_WALL_SECONDS, args.max_wall_seconds)
    parameters.set_value(DoubleParameter.MAX_CPU_SECONDS, args.max_cpu_seconds)
    parameters.set_value(IntParameter.MAX_THREADS, args.max_threads)
    parameters.set_value(IntParameter.DETERMINISTIC, 1 if args.deterministic else 0)
    parameters.set_value(StringParameter.WORK_DIR, args.work_dir)
    return parameters


def save_solution(result, output_folder: Path) -> None:
    output_folder.mkdir(parents=True, exist_ok=True)
    with open(output_folder / "variables.txt", 'w') as f:
        f.write("var_name\tvalue\n")
        for variable, value in result.solution.values.items():
            f.write(f"{variable.description}\t{value:.6f}\n")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = parse_arguments(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        parameters = build_parameters(args)
        mp = EXAMPLES[args.example]()
        logger.info(f"Built example {mp}")

        if args.write_lp:
            write_lp_file(mp, args.write_lp, parameters)

        solver = create_solver(args.solver, mp, parameters)
        result = solver.solve()

        if args.output and result.solution is not None:
            save_solution(result, Path(args.output))

        print("\n" + "="*60)
        print("SOLUTION SUMMARY")
        print("="*60)
        print(f"Problem:             {mp.name}")
        print(f"Solver:              {args.solver}")
        print(f"Status:              {result.status.name}")
        print(f"Wall time:           {result.duration.wall_seconds:.3f} seconds")
        if result.solution is not None:
            print(f"Objective value:     {result.solution.objective_value:.2f}")
            for variable, value in result.solution.values.items():
                print(f"  {variable.description:<18} {value:g}")
        print("="*60)

        return 0

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 1

    except Exception as e:
        logger.exception(f"Error occurred: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
