"""
bufformat command-line entry point.

Usage:
    bufformat format <files...> [-f NAME ...] [--range L:C-L:C] [--check]
    bufformat info [file] [-f NAME ...] [--json]

Architecture:
    This module only dispatches; the cli/ package implements the commands:
    - cli/commands/: Command handlers (thin orchestration layer)
    - cli/parsers.py: Argument parsing configuration
    - cli/helpers.py: Shared utilities (logging, config loading)
"""

import sys
from typing import List, Optional

from .cli import create_argument_parser, FormatCommand, InfoCommand
from .cli.helpers import configure_console


# Command mapping from command name to Command class
COMMAND_MAP = {
    'format': FormatCommand,
    'info': InfoCommand,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Parses command-line arguments and dispatches to the appropriate
    command handler.

    Returns:
        Process exit code.
    """
    configure_console()
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    command_class = COMMAND_MAP.get(args.command)
    if command_class is None:
        print(f"Error: Unknown command '{args.command}'")
        parser.print_help()
        return 2

    config_path = getattr(args, 'config', None)
    command = command_class(config_path=config_path)
    return command.execute(args)


if __name__ == '__main__':
    sys.exit(main())
