"""Configuration and logging setup for siplocator."""

from .config_parser import (
    DnsConfig,
    LocatorConfig,
    LocatorSettings,
    build_locator,
    build_lookup,
    load_config,
    parse_config_file,
)
from .logging_config import init_logging

__all__ = [
    "DnsConfig",
    "LocatorConfig",
    "LocatorSettings",
    "build_locator",
    "build_lookup",
    "init_logging",
    "load_config",
    "parse_config_file",
]
