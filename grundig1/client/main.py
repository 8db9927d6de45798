#
# Copyright (C) 2026 Grundig1 Developers — LGPL-3.0-or-later
#
"""
CLI main entry point.

Run with:
    python -m grundig1.client.main
    or via the 'grundig1' console script
"""

import sys

from grundig1.client.cli_base import Grundig1CLI
from grundig1.client.commands import COMMANDS
from grundig1.gateway import DeviceError


def main(args: list[str] | None = None) -> int:
    """
    Main CLI entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    cli = Grundig1CLI()

    subparsers = cli.add_subparsers()
    for cmd_cls in COMMANDS:
        cmd_cls.register(cli, subparsers)

    parsed = cli.parse_args(args)

    if not hasattr(parsed, "cmd_instance"):
        cli.parser.print_help()
        return 0

    try:
        return parsed.cmd_instance.run(parsed)
    except KeyboardInterrupt:
        print()
        return 130
    except DeviceError as e:
        if parsed.debug:
            raise
        print(cli.out.error(str(e)), file=sys.stderr)
        return 1


def cli_entry() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
