#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Base command class for CLI commands.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace
from typing import ClassVar

from grundig1.client.cli_base import Grundig1CLI
from grundig1.client.console_service import ConsoleService, get_console_service


class Command(ABC):
    """
    Base class for CLI commands.

    Subclasses must implement:
    - name: Command name (used as subparser name)
    - help: Short help text
    - configure_parser(): Add command-specific arguments
    - run(): Execute the command
    """

    name: ClassVar[str]
    help: ClassVar[str]
    aliases: ClassVar[list[str]] = []

    def __init__(self, cli: Grundig1CLI):
        self.cli = cli

    @property
    def out(self):
        return self.cli.out

    @classmethod
    def register(cls, cli: Grundig1CLI, subparsers) -> "Command":
        """
        Register this command with the CLI.

        Creates the subparser and returns a command instance.
        """
        instance = cls(cli)

        parser = subparsers.add_parser(
            cls.name,
            help=cls.help,
            aliases=cls.aliases,
        )
        instance.configure_parser(parser)
        parser.set_defaults(cmd_instance=instance)

        return instance

    @abstractmethod
    def configure_parser(self, parser: ArgumentParser) -> None:
        """Add command-specific arguments to the parser."""
        ...

    @abstractmethod
    def run(self, args: Namespace) -> int:
        """
        Execute the command.

        Returns:
            Exit code (0 for success)
        """
        ...

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def service(self, args: Namespace) -> ConsoleService:
        """
        The console service, pointed at the --url given on the command line
        """
        service = get_console_service()
        service.override_url(getattr(args, "url", None))
        return service

    def print(self, *args, **kwargs):
        print(*args, **kwargs)

    def error(self, message: str) -> int:
        """Print error and return exit code 1."""
        print(self.out.error(message))
        return 1

    def success(self, message: str) -> int:
        """Print success and return exit code 0."""
        print(self.out.success(message))
        return 0
