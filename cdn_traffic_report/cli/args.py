"""
Argument parsing utilities for cdn_traffic_report CLI.

Provides standard argument patterns shared by subcommands.
"""

import argparse
import math


def add_logging_arguments(parser):
    """
    Add --log-file and --verbose arguments to an ArgumentParser.

    Args:
        parser: argparse.ArgumentParser instance
    """
    parser.add_argument(
        "--log-file",
        action="store_true",
        help="Also write a detailed log to logs/<command>_<timestamp>.log",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Show debug messages on the console",
    )


def positive_float(value: str) -> float:
    """argparse type for a finite float > 0."""
    number = float(value)
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError(f"must be a finite number > 0, got {value}")
    return number


def positive_int(value: str) -> int:
    """argparse type for an int >= 1."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return number
