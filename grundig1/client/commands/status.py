#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Status command: show the short device status.
"""

from argparse import ArgumentParser, Namespace
from collections.abc import Mapping
from typing import ClassVar

from grundig1.client.commands.base import Command
from grundig1.gateway import DeviceError


class StatusCommand(Command):
    """Show the device status."""

    name = "status"
    help = "Show device status"
    aliases: ClassVar[list[str]] = ["st"]

    def configure_parser(self, parser: ArgumentParser) -> None:
        pass

    def run(self, args: Namespace) -> int:
        service = self.service(args)
        try:
            status = service.status()
        except DeviceError as e:
            return self.error(f"{service.base_url}: {e}")

        self.print(self.out.header(service.base_url))
        if isinstance(status, Mapping):
            items = [(str(k), self.out.value(v)) for k, v in status.items()]
            for line in self.out.columns(items):
                self.print(line)
        else:
            self.print(f"  {self.out.value(status)}")
        return 0
