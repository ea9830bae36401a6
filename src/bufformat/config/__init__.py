"""
Formatter configuration: the registry and the JSON loader.

Usage:
    from bufformat.config import parse_config, build_registry

    config = parse_config(load_config("bufformat.json"))
    registry = build_registry(config)
"""

from .registry import FormatterRegistry, FormatterEntry, FormatterFactory, MSG_NO_CONFIG
from .loader import Config, load_formatter, parse_config, build_registry

__all__ = [
    # Registry
    "FormatterRegistry",
    "FormatterEntry",
    "FormatterFactory",
    "MSG_NO_CONFIG",
    # Loader
    "Config",
    "load_formatter",
    "parse_config",
    "build_registry",
]
