"""
Argument parsing configuration for the bufformat CLI.
"""

import argparse

from .. import __version__


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--config', '-c',
        help='Path to configuration file (default: ./bufformat.json)'
    )


def _add_formatter_argument(parser: argparse.ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        '--formatter', '-f',
        dest='formatters',
        action='append',
        metavar='NAME',
        help=help_text
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser with the format and info subcommands.
    """
    parser = argparse.ArgumentParser(
        prog='bufformat',
        description='Run external code formatters over files without losing your place',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  bufformat format app.py
  bufformat format app.py -f isort -f black
  bufformat format app.py --range 10:0-24:0 -f ruff_format
  bufformat format src/*.py --check
  bufformat info
  bufformat info -f black app.py
""",
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    # Format command
    format_parser = subparsers.add_parser(
        'format',
        help='Format files in place'
    )
    format_parser.add_argument('files', nargs='+', help='Files to format')
    _add_formatter_argument(
        format_parser,
        'Formatter to run (repeatable; NAME1,NAME2 runs the first available). '
        'Defaults to the formatters configured for the file extension.'
    )
    format_parser.add_argument(
        '--range', '-r',
        help='Only format this range, as LINE[:COL]-LINE[:COL] (single file only)'
    )
    format_parser.add_argument(
        '--timeout-ms',
        type=int,
        help='Deadline for each file in milliseconds (default from config, 1000)'
    )
    format_parser.add_argument(
        '--async',
        dest='async_',
        action='store_true',
        help='Run formatters on the event loop without a deadline'
    )
    format_parser.add_argument(
        '--check',
        action='store_true',
        help='Report files that would change without writing them'
    )
    format_parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Only print errors'
    )
    _add_config_argument(format_parser)

    # Info command
    info_parser = subparsers.add_parser(
        'info',
        help='Show formatter availability'
    )
    info_parser.add_argument(
        'file',
        nargs='?',
        help='File to check formatters against (default: current directory)'
    )
    _add_formatter_argument(info_parser, 'Only show this formatter (repeatable)')
    info_parser.add_argument(
        '--json',
        action='store_true',
        help='Print the report as JSON'
    )
    _add_config_argument(info_parser)

    return parser
