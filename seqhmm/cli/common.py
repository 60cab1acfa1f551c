"""Shared argparse argument factories for seqhmm CLI tools.

Each function adds a group of related arguments to an ArgumentParser.
Default values can be overridden per-script where needed.
"""

import argparse
from typing import Optional

from seqhmm.config import get_config


def add_input_args(parser: argparse.ArgumentParser,
                   required: bool = True) -> None:
    """Add -i/--input argument."""
    parser.add_argument(
        '-i', '--input', required=required,
        help="Training file: one sequence per line, whitespace-separated tokens"
    )


def add_output_args(parser: argparse.ArgumentParser,
                    required: bool = True,
                    help_text: str = "Output model path (.hmm)") -> None:
    """Add -o/--output argument."""
    parser.add_argument(
        '-o', '--output', required=required,
        help=help_text
    )


def add_training_args(parser: argparse.ArgumentParser,
                      delta: float = 1e-5,
                      max_iters: Optional[int] = None) -> None:
    """Add EM stopping arguments (--delta, --max-iters)."""
    parser.add_argument(
        '--delta', type=float, default=delta,
        help=f"Convergence threshold on the log likelihood change (default: {delta})"
    )
    parser.add_argument(
        '--max-iters', type=int, default=max_iters,
        help=f"Maximum EM iterations (default: {max_iters or 'no limit'})"
    )


def add_states_args(parser: argparse.ArgumentParser,
                    default: int = 10) -> None:
    """Add -s/--states argument."""
    parser.add_argument(
        '-s', '--states', type=int, default=default,
        help=f"Number of hidden states (default: {default})"
    )


def add_seed_args(parser: argparse.ArgumentParser,
                  default: Optional[int] = None) -> None:
    """Add --seed argument (default: initialization.random_seed from config)."""
    if default is None:
        default = get_config('initialization', 'random_seed')
    parser.add_argument(
        '--seed', type=int, default=default,
        help=f"Random seed for initialization (default: {default})"
    )


def add_parallel_args(parser: argparse.ArgumentParser,
                      default_cores: int = 1) -> None:
    """Add --cores argument."""
    parser.add_argument(
        '--cores', '-c', type=int, default=default_cores,
        help=f"Number of worker threads (0=auto, default: {default_cores})"
    )


def add_verbose_args(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag."""
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help="Verbose output"
    )


def add_version_args(parser: argparse.ArgumentParser) -> None:
    """Add --version flag."""
    from seqhmm import __version__
    parser.add_argument(
        '--version', action='version',
        version=f'%(prog)s {__version__}'
    )
