#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
CLI command implementations.

Each command module registers itself via the COMMANDS list.
"""

from grundig1.client.commands.base import Command
from grundig1.client.commands.master import MasterCommand
from grundig1.client.commands.preset import PresetCommand
from grundig1.client.commands.state import StateCommand
from grundig1.client.commands.status import StatusCommand
from grundig1.client.commands.url import UrlCommand
from grundig1.client.commands.watch import WatchCommand

# Order determines help output order
COMMANDS: list[type[Command]] = [
    UrlCommand,
    StatusCommand,
    StateCommand,
    MasterCommand,
    PresetCommand,
    WatchCommand,
]

__all__ = ["COMMANDS", "Command"]
