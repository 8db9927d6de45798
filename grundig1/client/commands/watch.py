#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Watch command: follow the device state live.
"""

from argparse import ArgumentParser, Namespace
from datetime import datetime
from typing import ClassVar

from grundig1.client.commands.base import Command
from grundig1.state import RANGES, CanonicalState, SyncStatus


class WatchCommand(Command):
    """Run the sync controller and print every device update."""

    name = "watch"
    help = "Follow the device state until interrupted"
    aliases: ClassVar[list[str]] = ["monitor"]

    def configure_parser(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "-n",
            "--count",
            type=int,
            default=0,
            metavar="N",
            help="stop after N device updates (0 = infinite)",
        )

    def _timestamp(self) -> str:
        return self.out.muted(datetime.now().strftime("%H:%M:%S"))

    def _on_state(self, state: CanonicalState):
        glob = state.global_
        parts = [
            self._timestamp(),
            f"{self.out.key('master')} {self.out.level_bar(glob.master, *RANGES['master'], width=10)}"
            f" {self.out.value(f'{glob.master:g}%')}",
            self.out.kv("geq", glob.presets.graphic_eq),
            self.out.kv("xover", glob.presets.crossover),
            self.out.kv("battery", f"{glob.voltmeter.live:.1f}V"),
        ]
        if glob.password_locked:
            parts.append(self.out.warning("locked"))
        self.print("  ".join(parts))

    def _on_status(self, status: SyncStatus):
        if status.connected:
            self.print(f"{self._timestamp()}  {self.out.success('connected')}")
        else:
            self.print(f"{self._timestamp()}  {self.out.error(status.error or 'disconnected')}")

    def run(self, args: Namespace) -> int:
        service = self.service(args)
        self.print(self.out.header(f"Watching {service.base_url}"))

        try:
            service.watch(self._on_state, self._on_status, count=args.count)
        except KeyboardInterrupt:
            self.print()
            self.print(self.out.muted("Watch stopped"))
        return 0
