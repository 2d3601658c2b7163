"""Entry point for the scheduler CLI.

Usage: python -m cadence.scheduler {start TASKS.json [--daemon] | status | stop [--force]}
"""

import argparse
import sys

from cadence.scheduler.cli import (
    handle_scheduler_start,
    handle_scheduler_status,
    handle_scheduler_stop,
)
from cadence.settings import get_settings


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="cadence", description="Cadence - process-based periodic task scheduler"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Fork workers for every task in a task file")
    start.add_argument("tasks_file", help="JSON file listing task definitions")
    start.add_argument(
        "--daemon", "-d", action="store_true", help="Detach into the background"
    )

    subparsers.add_parser("status", help="Show the workers of the running daemon")

    stop = subparsers.add_parser("stop", help="Stop the running daemon")
    stop.add_argument(
        "--force", "-f", action="store_true", help="SIGKILL instead of SIGTERM"
    )

    args = parser.parse_args(argv)
    settings = get_settings()

    if args.command == "start":
        if args.daemon:
            settings = settings.model_copy(update={"daemon": True})
        ok = handle_scheduler_start(args.tasks_file, settings)
    elif args.command == "status":
        ok = handle_scheduler_status(settings)
    else:
        ok = handle_scheduler_stop(args.force, settings)
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
