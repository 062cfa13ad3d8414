"""
CLI utilities for cdn_traffic_report.

This package provides:
- Logging setup
- Argument parsing
- Command entry points
"""

from cdn_traffic_report.cli.args import add_logging_arguments
from cdn_traffic_report.cli.commands import main, run_services, run_traffic, run_users
from cdn_traffic_report.cli.logging import print_header, setup_logging

__all__ = [
    # Logging
    "setup_logging",
    "print_header",
    # Arguments
    "add_logging_arguments",
    # Commands
    "main",
    "run_traffic",
    "run_services",
    "run_users",
]
