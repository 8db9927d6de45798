#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Preset command: list or load the factory presets.
"""

from argparse import ArgumentParser, Namespace
from typing import ClassVar

from grundig1.actions import LoadPreset
from grundig1.client.commands.base import Command
from grundig1.gateway import DeviceError
from grundig1.presets import (
    CROSSOVER_PRESETS,
    GRAPHIC_EQ_PRESETS,
    get_crossover_preset,
    get_graphic_eq_preset,
)
from grundig1.types import PresetType

KINDS = {
    "geq": (PresetType.GRAPHIC_EQ, GRAPHIC_EQ_PRESETS, get_graphic_eq_preset),
    "xover": (PresetType.CROSSOVER, CROSSOVER_PRESETS, get_crossover_preset),
}


class PresetCommand(Command):
    """Load a graphic EQ curve or crossover configuration."""

    name = "preset"
    help = "List or load factory presets"
    aliases: ClassVar[list[str]] = ["pr"]

    def configure_parser(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "kind",
            nargs="?",
            choices=sorted(KINDS),
            help="geq (graphic EQ curve) or xover (crossover configuration)",
        )
        parser.add_argument(
            "index",
            type=int,
            nargs="?",
            help="preset number, see --list",
        )
        parser.add_argument(
            "-l",
            "--list",
            action="store_true",
            help="list the available presets",
        )

    def run(self, args: Namespace) -> int:
        if args.list or args.kind is None:
            return self._list(args.kind)

        preset_type, _, lookup = KINDS[args.kind]
        if args.index is None:
            return self.error("Missing preset number")

        preset = lookup(args.index)
        if preset is None:
            return self.error(f"No {args.kind} preset {args.index}")

        service = self.service(args)
        try:
            service.apply(LoadPreset(preset_type=preset_type.value, index=args.index))
        except DeviceError as e:
            return self.error(f"{service.base_url}: {e}")

        return self.success(f"Loaded {args.kind} preset {args.index}: {preset.name}")

    def _list(self, kind: str | None) -> int:
        for name in sorted(KINDS) if kind is None else [kind]:
            _, catalog, _ = KINDS[name]
            self.print(self.out.header(name))
            items = [(str(idx), self.out.value(preset.name)) for idx, preset in enumerate(catalog)]
            for line in self.out.columns(items, key_width=3):
                self.print(line)
        return 0
