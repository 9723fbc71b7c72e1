from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config.config_parser import build_locator, load_config, parse_config_file
from .config.logging_config import init_logging
from .errors import ConfigError, UriParseError
from .uri import parse_uri

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_ROUTE = 2


def main(argv: List[str] | None = None) -> int:
    """
    Resolve SIP request URIs to next hops and print them.

    Args:
        argv: Command-line arguments.

    Returns:
        0 when every URI produced at least one hop, 2 when some URI produced
        none, 1 on configuration or URI errors.

    Example use:
        CLI:
            PYTHONPATH=src python -m siplocator.main sip:example.com
            siplocator --config locator.yaml --json sips:example.com sip:192.0.2.1
    """
    parser = argparse.ArgumentParser(
        description="Locate SIP servers for request URIs (RFC 3263)"
    )
    parser.add_argument("uris", nargs="+", metavar="URI", help="sip:, sips: or tel: URI")
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "-v",
        "--var",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Set a config variable (overrides environment and config file)",
    )
    parser.add_argument(
        "--transport",
        action="append",
        default=[],
        help="Add a supported transport (repeatable)",
    )
    parser.add_argument(
        "--local-host",
        action="append",
        default=[],
        help="Register a local host name (repeatable)",
    )
    parser.add_argument("--json", action="store_true", help="Print hops as JSON")
    args = parser.parse_args(argv)

    try:
        if args.config:
            config = parse_config_file(args.config, cli_vars=args.var)
        else:
            config = load_config({}, cli_vars=args.var)
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR

    init_logging(config.logging)
    logger = logging.getLogger("siplocator.main")
    if args.config:
        logger.info("Loaded config from %s", args.config)

    try:
        locator = build_locator(config)
    except ConfigError as exc:
        logger.error("Cannot set up DNS lookups: %s", exc)
        print(str(exc), file=sys.stderr)
        return EXIT_ERROR
    for transport in args.transport:
        locator.add_supported_transport(transport.lower())
    for name in args.local_host:
        locator.add_local_host_name(name)

    results = {}
    for text in args.uris:
        try:
            uri = parse_uri(text)
        except UriParseError as exc:
            print(str(exc), file=sys.stderr)
            return EXIT_ERROR
        results[text] = locator.locate_hops(uri)

    if args.json:
        payload = {
            text: [
                {"host": h.host, "port": h.port, "transport": h.transport}
                for h in hops
            ]
            for text, hops in results.items()
        }
        print(json.dumps(payload, indent=2))
    else:
        for text, hops in results.items():
            print(f"{text}:")
            if not hops:
                print("  (no route)")
            for hop in hops:
                print(f"  {hop}")

    if any(not hops for hops in results.values()):
        return EXIT_NO_ROUTE
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
