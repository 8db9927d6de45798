#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
Url command: show or save the device address.
"""

from argparse import ArgumentParser, Namespace
from typing import ClassVar

from grundig1.client.commands.base import Command


class UrlCommand(Command):
    """Show or save the device base URL."""

    name = "url"
    help = "Show or save the device address"
    aliases: ClassVar[list[str]] = ["address"]

    def configure_parser(self, parser: ArgumentParser) -> None:
        parser.add_argument(
            "new_url",
            type=str,
            nargs="?",
            metavar="URL",
            help="base URL to save, e.g. http://192.168.1.42 (omit to query)",
        )

    def run(self, args: Namespace) -> int:
        service = self.service(args)
        prefs = service.prefs

        if args.new_url is None:
            self.print(self.out.url(service.base_url))
            return 0

        if not args.new_url.strip():
            return self.error("URL must not be empty")

        prefs.base_url = args.new_url
        return self.success(f"Device address set to {prefs.base_url}")
