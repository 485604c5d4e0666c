"""
Command-line driver: ``demesh <input.yaml>``.

On failure a single line ``<program>: <message>`` is printed to stderr and
the process exits with the error's code.
"""

from typing import List, Optional
import argparse
import sys

from demesh.errors import DemeshError, ErrorCode
from demesh.logging_config import setup_logging
from demesh.pipeline import run_pipeline


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with ErrorCode.USAGE."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(int(ErrorCode.USAGE), f"{self.prog}: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="demesh",
        description="Generate a column mesh from DEM samples and a YAML configuration",
    )
    parser.add_argument('input', help='YAML input file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Log progress (-v) or debugging detail (-vv)')
    parser.add_argument('--log-file', default=None,
                        help='Write a full debug log of the run to this file')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        setup_logging(args.verbose, args.log_file)
        run_pipeline(args.input)
    except DemeshError as e:
        print(f"{parser.prog}: {e.message}", file=sys.stderr)
        return int(e.code)
    return int(ErrorCode.SUCCESS)


if __name__ == '__main__':
    sys.exit(main())
