"""Command line interface for reshaping CSV files.

This module provides a command line interface that loads a CSV file
in a :class:`pivotground.dataframe.Dataframe`, widens or lengthens it
and then writes the result to a new CSV file or prints it to the
console in a tabular format using the :mod:`pivotground.utils.tabulate` module.
"""

import argparse
import sys
from typing import Any

from pivotground.compute import ReshapeError
from pivotground.dataframe import Dataframe
from pivotground.utils import tabulate
from pivotground.utils.logging import configure_logging, get_logger

log = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pivotground-reshape",
        description="Reshape CSV files between long and wide format.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level, defaults to the PIVOTGROUND_LOG_LEVEL environment variable.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    widen = commands.add_parser("widen", help="Spread a key/value pair of columns.")
    widen.add_argument("filename", help="The CSV file in long format.")
    widen.add_argument("--key", required=True, help="Column whose values become columns.")
    widen.add_argument("--value", required=True, help="Column whose values fill the new columns.")
    widen.add_argument(
        "--id",
        action="append",
        help="Identifier column. Can be provided multiple times, defaults to all other columns.",
    )
    widen.add_argument("--fill", type=parse_value, help="Value for the missing combinations.")
    widen.add_argument("-o", "--output", help="Write the result to this CSV file.")

    lengthen = commands.add_parser("lengthen", help="Gather columns into key/value pairs.")
    lengthen.add_argument("filename", help="The CSV file in wide format.")
    lengthen.add_argument("--key-name", default="key", help="Name of the new key column.")
    lengthen.add_argument("--value-name", default="value", help="Name of the new value column.")
    lengthen.add_argument(
        "--id",
        action="append",
        help="Identifier column. Can be provided multiple times.",
    )
    lengthen.add_argument(
        "--gather",
        action="append",
        help="Column to gather. Can be provided multiple times, defaults to all non identifiers.",
    )
    lengthen.add_argument("-o", "--output", help="Write the result to this CSV file.")
    return parser


def parse_value(text: str) -> Any:
    """Convert a command line value to a number when possible.

    >>> [parse_value(v) for v in ("0", "2.5", "none")]
    [0, 2.5, 'none']
    """
    for convert in (int, float):
        try:
            return convert(text)
        except ValueError:
            pass
    return text


def main(argv: list[str] | None = None) -> int:
    """Parse the command line arguments and reshape the file."""
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    df = Dataframe.open_csv(args.filename)
    if args.command == "widen":
        df = df.widen(args.id, args.key, args.value, fill_value=args.fill)
    else:
        df = df.lengthen(args.id, args.key_name, args.value_name, args.gather)

    try:
        if args.output:
            df.to_csv(args.output)
            log.info("Reshaped %s into %s", args.filename, args.output)
        else:
            print(tabulate.tabulate(df.to_arrow()))
    except (ReshapeError, ValueError) as e:
        print(f"Unable to reshape, {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
