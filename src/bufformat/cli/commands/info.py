"""
Info command: report which formatters can run and why the others cannot.
"""

import argparse
import json
import logging

from ...buffer.document import TextDocument
from ...config.loader import build_registry
from ...models.formatter import Single
from ..helpers import print_rule, print_section
from .base import EXIT_OK, EXIT_USAGE, BaseCommand

logger = logging.getLogger(__name__)


class InfoCommand(BaseCommand):
    """
    Show formatter availability.

    Usage:
        info [file] [-f NAME ...] [--json] [--config PATH]
    """

    def execute(self, args: argparse.Namespace) -> int:
        try:
            config = self.load_configuration()
        except (ValueError, FileNotFoundError) as e:
            print(f"✗ {e}")
            return EXIT_USAGE
        log_file = self.setup_logging_from_config(config)

        registry = build_registry(config)
        # Only the path matters for availability; the file need not exist
        document = TextDocument("", path=args.file) if args.file else TextDocument()

        if args.formatters:
            names = []
            for unit in self.parse_formatter_names(args.formatters):
                names.extend([unit] if isinstance(unit, str) else unit)
        elif args.file:
            names = []
            for unit in config.units_for(args.file):
                names.extend([unit.name] if isinstance(unit, Single) else unit.names)
            names = names or registry.names()
        else:
            names = registry.names()

        infos = [registry.get_formatter_info(name, document) for name in dict.fromkeys(names)]

        if args.json:
            print(json.dumps([info.to_dict() for info in infos], indent=2))
            registry.teardown()
            return EXIT_OK

        print_section("BUFFORMAT INFO")
        print(f"Config file: {self.config_path or 'default'}")
        print(f"Log file:    {log_file or 'console only'}")
        print(f"Timeout:     {config.timeout_ms}ms")
        print()
        for info in infos:
            if info.available:
                print(f"✓ {info.name}")
            else:
                print(f"✗ {info.name} ({info.available_msg})")
            print(f"    command: {info.command}")
            if info.cwd:
                print(f"    cwd:     {info.cwd}")
            spec = registry.get_formatter_config(info.name, document)
            if spec is not None and spec.meta.url:
                print(f"    url:     {spec.meta.url}")
        print_rule()

        registry.teardown()
        return EXIT_OK
