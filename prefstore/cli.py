"""Command line front end for prefstore.

Usage:
    prefstore [-n APPID] [-m] [KEY | -k KEY | -s KEY VALUE | -a]

Without -n the tool reads system properties, which are read-only. With
-n it operates on that application's store.

Examples:
    prefstore                                   # list system property keys
    prefstore -a                                # dump all system properties
    prefstore com.palm.properties.nduid         # one system property
    prefstore -n com.palm.browser               # list the app's keys
    prefstore -n com.palm.browser currentURL    # one app value
    prefstore -n com.palm.browser -s currentURL '["http://example.com"]'
    prefstore -n com.palm.browser -m -s currentURL http://example.com
    prefstore -n com.palm.browser -k currentURL # delete
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from prefstore import codec
from prefstore.config import Settings
from prefstore.exceptions import PrefsError
from prefstore.properties import SystemPropertyEnumerator, SystemPropertyResolver
from prefstore.store import AppHandle

_logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prefstore",
        description="Read system properties and read or write application preferences.",
    )
    parser.add_argument(
        "-n", "--app-id",
        help="operate on this application's properties (otherwise on system properties)",
    )
    parser.add_argument(
        "-m", "--shell", action="store_true",
        help="shell mode: plain strings in and out instead of JSON documents",
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument("-k", "--delete", metavar="KEY", help="delete the entry for KEY")
    action.add_argument("-s", "--set", metavar="KEY", help="set KEY to VALUE")
    action.add_argument("-a", "--all", action="store_true", help="dump all key/value pairs")
    parser.add_argument("--config", type=Path, help="path to config.toml")
    parser.add_argument("-d", "--debug", action="store_true", help="enable debug logging")
    parser.add_argument("args", nargs="*", metavar="KEY_OR_VALUE")
    return parser


def configure_logging(settings: Settings, debug: bool = False) -> None:
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, str(settings.log_level).upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def format_listing(values: list[Any], shell: bool) -> str:
    """Format a key or key/value listing.

    Shell mode prints the elements space separated: keys as plain text,
    key/value objects as JSON.
    """
    if not shell:
        return json.dumps(values)
    parts = []
    for value in values:
        parts.append(value if isinstance(value, str) else json.dumps(value))
    return " ".join(parts)


def _run_app(handle: AppHandle, args: argparse.Namespace, key: str | None, value: str | None) -> str | None:
    if key is None:
        if args.all:
            return format_listing(handle.list_all(), args.shell)
        return format_listing(handle.list_keys(), args.shell)
    if args.delete:
        handle.remove(key)
        return None
    if args.set:
        handle.set(key, value)
        return None
    if args.shell:
        return handle.get_string(key)
    return handle.get(key)


def _run_system(settings: Settings, args: argparse.Namespace, key: str | None) -> str:
    resolver = SystemPropertyResolver(settings)
    if key is None:
        enumerator = SystemPropertyEnumerator(resolver)
        if args.all:
            return format_listing(enumerator.list_all(), args.shell)
        return format_listing(enumerator.list_keys(), args.shell)
    if args.shell:
        return resolver.resolve(key)
    return json.dumps(resolver.resolve_document(key))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    key = args.delete or args.set
    value = None
    positional = list(args.args)
    if positional:
        if key is not None:
            value = positional.pop(0)
        else:
            key = positional.pop(0)

    if args.set and not args.app_id:
        parser.error("system properties are read-only; use -n")
    if args.set and value is None:
        parser.error("need value to set")
    if args.delete and value is not None:
        parser.error("too many arguments")
    if args.all and key is not None:
        parser.error(f'nothing to do with "{key}"')
    if positional:
        parser.error("too many arguments")

    settings = Settings(config_path=args.config)
    configure_logging(settings, args.debug)

    if value is not None and args.shell and not codec.is_document(value):
        value = codec.wrap_scalar(value)

    try:
        if args.app_id:
            with AppHandle(args.app_id, settings) as handle:
                output = _run_app(handle, args, key, value)
        else:
            output = _run_system(settings, args, key)
    except PrefsError as e:
        _logger.debug("request failed: %r", e.details)
        print(f"error: {e.error_text}", file=sys.stderr)
        return 1

    if output is not None:
        print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
