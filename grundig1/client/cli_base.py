#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
CLI base infrastructure.

Provides the root parser (device URL, debug and color switches),
output styling and subcommand registration.
"""

import logging
import sys
from argparse import ArgumentParser, Namespace, RawDescriptionHelpFormatter

from grundig1.client.output import Output
from grundig1.log import Log
from grundig1.version import __version__


class Grundig1CLI:
    """
    Base CLI handler.

    Usage:
        cli = Grundig1CLI()
        subparsers = cli.add_subparsers()
        # Register commands...
        args = cli.parse_args()
    """

    def __init__(self):
        self.out = Output()
        self.parser = self._create_parser()
        self._subparsers = None

    def _create_parser(self) -> ArgumentParser:
        parser = ArgumentParser(
            prog="grundig1",
            description="Remote control for the Grundig1 DSP console",
            formatter_class=RawDescriptionHelpFormatter,
            epilog=self._epilog(),
        )

        parser.add_argument(
            "-v",
            "--version",
            action="version",
            version=f"grundig1 {__version__}",
        )
        parser.add_argument(
            "-u",
            "--url",
            type=str,
            metavar="URL",
            help="device base URL for this run (default: saved URL)",
        )
        parser.add_argument(
            "--debug",
            action="store_true",
            help="enable debug output",
        )
        parser.add_argument(
            "--no-color",
            action="store_true",
            help="disable colored output",
        )

        return parser

    def _epilog(self) -> str:
        return """\
Examples:
  grundig1 url http://10.0.0.7     Save the device address
  grundig1 status                  Show device status
  grundig1 master 60               Set the master level to 60%
  grundig1 preset geq 3            Load graphic EQ curve 3
  grundig1 preset --list           List the factory presets
  grundig1 watch                   Follow the device state
"""

    def add_subparsers(self):
        """
        Add subparser container for commands. Returns the same
        subparsers object on subsequent calls.
        """
        if self._subparsers is None:
            self._subparsers = self.parser.add_subparsers(
                title="commands",
                dest="command",
                metavar="COMMAND",
            )
        return self._subparsers

    def parse_args(self, args: list[str] | None = None) -> Namespace:
        """
        Parse command line arguments, and apply the output and
        logging switches.
        """
        if args is None:
            args = sys.argv[1:]

        parsed = self.parser.parse_args(args)

        if parsed.no_color:
            self.out = Output(force_color=False)

        Log.enable_color(self.out.color_enabled)
        if parsed.debug:
            Log.set_level(logging.DEBUG)

        return parsed

    # ─────────────────────────────────────────────────────────────────────────
    # Output helpers
    # ─────────────────────────────────────────────────────────────────────────

    def error(self, message: str) -> None:
        """Print error message and exit with code 1."""
        print(self.out.error(message), file=sys.stderr)
        sys.exit(1)

    def print_success(self, message: str) -> None:
        print(self.out.success(message))

    def print_warning(self, message: str) -> None:
        print(self.out.warning(message))
