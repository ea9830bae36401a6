"""
Base command class for CLI commands.
"""

import argparse
import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional

from ...config.loader import Config, parse_config
from ..helpers import get_default_config_path, load_config, setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_CANCELLED = 130


class BaseCommand(ABC):
    """
    Base class for CLI commands.

    Subclasses implement execute() and return a process exit code.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path

    def load_configuration(self) -> Config:
        """
        Load the configuration file.

        An explicit --config path must exist; the default ./bufformat.json is
        optional and an empty configuration is used without it.

        Raises:
            ValueError, FileNotFoundError: If the file cannot be loaded or
                is invalid.
        """
        path = self.config_path
        if not path:
            path = get_default_config_path()
            if not os.path.exists(path):
                logger.debug(f"No configuration at {path}, using defaults")
                return Config()
        return parse_config(load_config(path))

    def setup_logging_from_config(self, config: Config) -> Optional[str]:
        """Configure logging from the loaded configuration."""
        return setup_logging(config.log_level, config.log_file)

    @staticmethod
    def parse_formatter_names(raw: Optional[List[str]]) -> List[object]:
        """Turn -f values into formatter units; ``a,b`` is an alternation."""
        units: List[object] = []
        for value in raw or []:
            names = [n.strip() for n in value.split(",") if n.strip()]
            if len(names) == 1:
                units.append(names[0])
            elif names:
                units.append(names)
        return units

    @abstractmethod
    def execute(self, args: argparse.Namespace) -> int:
        """Run the command and return its exit code."""
