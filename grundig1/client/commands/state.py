#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
State command: dump the device state as YAML.
"""

import sys
from argparse import ArgumentParser, Namespace
from typing import ClassVar

from ruamel.yaml import YAML

from grundig1.client.commands.base import Command
from grundig1.gateway import DeviceError
from grundig1.state import state_to_dict

SECTIONS = ("global", "sequencer", "input", "outputs", "generators")


class StateCommand(Command):
    """Pull the device state and print it."""

    name = "state"
    help = "Dump the device state as YAML"
    aliases: ClassVar[list[str]] = ["dump"]

    def configure_parser(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "section",
            nargs="?",
            choices=SECTIONS,
            help="only print this section",
        )

    def run(self, args: Namespace) -> int:
        service = self.service(args)
        try:
            state = service.fetch_state()
        except DeviceError as e:
            return self.error(f"{service.base_url}: {e}")

        data = state_to_dict(state)
        if args.section is not None:
            data = {args.section: data[args.section]}

        yaml = YAML(typ="safe", pure=True)
        yaml.default_flow_style = False
        yaml.dump(data, sys.stdout)
        return 0
