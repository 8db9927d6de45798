#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Master command: get/set the master level.
"""

from argparse import ArgumentParser, Namespace
from typing import ClassVar

from grundig1.actions import SetMaster
from grundig1.client.commands.base import Command
from grundig1.gateway import DeviceError
from grundig1.state import RANGES


class MasterCommand(Command):
    """Get or set the master level."""

    name = "master"
    help = "Get or set the master level"
    aliases: ClassVar[list[str]] = ["vol"]

    def configure_parser(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "value",
            type=float,
            nargs="?",
            metavar="PERCENT",
            help="master level (0-100), omit to query",
        )

    def run(self, args: Namespace) -> int:
        service = self.service(args)
        try:
            if args.value is None:
                state = service.fetch_state()
            else:
                state = service.apply(SetMaster(value=args.value))
        except DeviceError as e:
            return self.error(f"{service.base_url}: {e}")

        master = state.global_.master
        bar = self.out.level_bar(master, *RANGES["master"])
        if args.value is None:
            self.print(f"{self.out.key('master')} {bar} {self.out.value(f'{master:g}%')}")
            return 0
        return self.success(f"Master level set to {master:g}%")
