"""Allow `python -m cdn_traffic_report`."""

from cdn_traffic_report.cli.commands import run_main

run_main()
