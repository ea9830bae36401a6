"""
Format command: run formatters over files and write the results back.
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

from tqdm import tqdm

from ... import api
from ...buffer.document import TextDocument
from ...config.loader import Config, build_registry
from ...config.registry import FormatterRegistry
from ...core.cancellation import (
    CancellationToken,
    restore_default_handler,
    setup_cancellation_handler,
)
from ...core.errors import RunCancelledError
from ...models.range import Range
from ...runner.pipeline import PipelineRunner
from ..helpers import ConsoleNotifier, format_status_counts, print_rule, print_section
from .base import EXIT_CANCELLED, EXIT_FAILED, EXIT_OK, EXIT_USAGE, BaseCommand

logger = logging.getLogger(__name__)

STATUS_FORMATTED = "formatted"
STATUS_UNCHANGED = "unchanged"
STATUS_WOULD_CHANGE = "would reformat"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"
STATUS_ORDER = (STATUS_FORMATTED, STATUS_WOULD_CHANGE, STATUS_UNCHANGED, STATUS_SKIPPED, STATUS_FAILED)


class FormatCommand(BaseCommand):
    """
    Format files in place.

    Usage:
        format <files...> [-f NAME ...] [--range L:C-L:C] [--timeout-ms N]
               [--async] [--check] [--quiet] [--config PATH]
    """

    def execute(self, args: argparse.Namespace) -> int:
        try:
            config = self.load_configuration()
        except (ValueError, FileNotFoundError) as e:
            print(f"✗ {e}")
            return EXIT_USAGE
        self.setup_logging_from_config(config)

        files = [Path(p) for p in args.files]
        for path in files:
            if not path.is_file():
                print(f"✗ File not found: {path}")
                return EXIT_USAGE

        range_ = None
        if args.range:
            if len(files) > 1:
                print("✗ --range can only be used with a single file")
                return EXIT_USAGE
            try:
                range_ = Range.parse(args.range)
            except ValueError as e:
                print(f"✗ Invalid range '{args.range}': {e}")
                return EXIT_USAGE

        timeout_ms = args.timeout_ms or config.timeout_ms
        if timeout_ms <= 0:
            print(f"✗ --timeout-ms must be positive, got {timeout_ms}")
            return EXIT_USAGE

        registry = build_registry(config)
        runner = PipelineRunner()
        notifier = ConsoleNotifier(quiet=args.quiet)
        counts: Dict[str, int] = {}

        token = setup_cancellation_handler(message="\n⚠  Cancellation requested. Stopping formatters...")
        try:
            for path in tqdm(files, desc="Formatting", unit="file", disable=len(files) < 2 or args.quiet):
                token.throw_if_cancelled()
                status = self._format_file(
                    path, args, config, registry, runner, notifier, range_, timeout_ms, token
                )
                counts[status] = counts.get(status, 0) + 1
                if token.is_cancelled():
                    raise RunCancelledError(f"Formatting interrupted: {token.cancel_reason}")
        except RunCancelledError:
            print("\n✗ Formatting cancelled.")
            return EXIT_CANCELLED
        finally:
            restore_default_handler()
            registry.teardown()

        if not args.quiet and len(files) > 1:
            print_section("FORMAT SUMMARY")
            print(format_status_counts(counts, STATUS_ORDER))
            print_rule()

        if counts.get(STATUS_FAILED):
            return EXIT_FAILED
        if args.check and counts.get(STATUS_WOULD_CHANGE):
            return EXIT_FAILED
        return EXIT_OK

    def _format_file(
        self,
        path: Path,
        args: argparse.Namespace,
        config: Config,
        registry: FormatterRegistry,
        runner: PipelineRunner,
        notifier: ConsoleNotifier,
        range_: Optional[Range],
        timeout_ms: int,
        token: CancellationToken,
    ) -> str:
        try:
            document = TextDocument.from_file(str(path))
        except UnicodeDecodeError as e:
            print(f"✗ Encoding error: {path} is not valid UTF-8\n  {e}")
            return STATUS_FAILED
        except OSError as e:
            print(f"✗ Error reading {path}: {e}")
            return STATUS_FAILED

        if args.formatters:
            units = self.parse_formatter_names(args.formatters)
        else:
            units = config.units_for(str(path))

        errors: List[Optional[str]] = []
        options = dict(
            runner=runner,
            range=range_,
            timeout_ms=timeout_ms,
            quiet=args.quiet,
            notify_on_error=config.notify_on_error,
            explicit=bool(args.formatters),
            notifier=notifier,
            callback=errors.append,
            token=token,
        )
        if args.async_:
            attempted = asyncio.run(self._format_async(document, units, registry, options))
        else:
            attempted = api.format(document, units, registry, **options)

        if not attempted:
            return STATUS_SKIPPED
        error = errors[-1] if errors else None
        if error is not None:
            if token.is_cancelled():
                raise RunCancelledError(error)
            if not args.quiet:
                print(f"✗ {path}: {error}")
            return STATUS_FAILED

        if not document.modified:
            return STATUS_UNCHANGED
        if args.check:
            print(f"⚠ would reformat {path}")
            return STATUS_WOULD_CHANGE
        document.save()
        if not args.quiet:
            print(f"✓ Formatted {path}")
        return STATUS_FORMATTED

    @staticmethod
    async def _format_async(document, units, registry, options) -> bool:
        done = asyncio.Event()
        callback = options["callback"]

        def on_done(err: Optional[str]) -> None:
            callback(err)
            done.set()

        attempted = api.format(document, units, registry, async_=True, **dict(options, callback=on_done))
        if attempted:
            await done.wait()
        return attempted
