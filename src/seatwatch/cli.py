"""
Command-line interface for SeatWatch.

Usage: seatwatch TERM COURSE_ID [COURSE_ID ...] [options]
"""

import argparse
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from seatwatch.exceptions import UsageError
from seatwatch.models import AlertResetPolicy

NUMERIC = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class CliArgs:
    """Validated command-line arguments."""
    term: int
    course_ids: List[int]
    poll_period: Optional[float] = None
    refresh_period: Optional[float] = None
    reset_policy: Optional[AlertResetPolicy] = None
    log_level: Optional[str] = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seatwatch",
        description="Watch university class sections and alert when a seat opens.",
    )
    parser.add_argument(
        "numbers",
        nargs="*",
        metavar="TERM COURSE_ID",
        help="Term code followed by one or more class numbers",
    )
    parser.add_argument(
        "-p", "--poll-period",
        type=float,
        help="Seconds between poll cycles (default: 200.5)",
    )
    parser.add_argument(
        "-r", "--refresh-period",
        type=float,
        help="Seconds between access token refreshes (default: 600)",
    )
    parser.add_argument(
        "--reset-policy",
        choices=[policy.value for policy in AlertResetPolicy],
        help="When a class may alert again (default: seats_gone)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (default: INFO)",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    The first positional is the term; the rest are class numbers. Every
    positional must be purely numeric.

    Raises:
        UsageError: If fewer than two positionals are given or any is not numeric
    """
    args = build_parser().parse_intermixed_args(argv)
    numbers: List[str] = args.numbers

    if len(numbers) < 2:
        raise UsageError(
            "Not enough arguments. The first argument is the term, followed by "
            "every class number you would like to monitor."
        )

    for value in numbers:
        if not NUMERIC.fullmatch(value):
            raise UsageError(f'One of your arguments ("{value}") is not a number.')

    return CliArgs(
        term=int(numbers[0]),
        course_ids=list(dict.fromkeys(int(value) for value in numbers[1:])),
        poll_period=args.poll_period,
        refresh_period=args.refresh_period,
        reset_policy=AlertResetPolicy(args.reset_policy) if args.reset_policy else None,
        log_level=args.log_level,
    )
