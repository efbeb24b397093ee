"""Command line utilities for operators."""

from __future__ import annotations

import argparse
import getpass
import sys
from typing import Mapping, Sequence, TextIO

from .application import FederationApp
from .config import AppConfig
from .crypto import Cryptor
from .exceptions import ConfigurationError

PROJECT_NAME = "fedbridge"


def main(
    argv: Sequence[str] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    stdout: TextIO | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    out = stdout or sys.stdout
    try:
        config = AppConfig.from_env(environ)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return args.func(args, config, out)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROJECT_NAME, description="Federated login management commands")
    sub = parser.add_subparsers(dest="command", required=True)

    hash_identifier = sub.add_parser(
        "hash-identifier",
        help="Print the hashed identifier to store on a pre-provisioned account",
    )
    hash_identifier.add_argument(
        "identifier",
        nargs="?",
        help="External identifier; prompted for without echo when omitted",
    )
    hash_identifier.set_defaults(func=_cmd_hash_identifier)

    routes = sub.add_parser("routes", help="Print the effective route table")
    routes.set_defaults(func=_cmd_routes)
    return parser


def _cmd_hash_identifier(args: argparse.Namespace, config: AppConfig, out: TextIO) -> int:
    identifier = args.identifier
    if identifier is None:
        identifier = getpass.getpass("Identifier: ")
    if not identifier:
        print("error: identifier must not be empty", file=sys.stderr)
        return 2
    print(Cryptor.from_config(config.crypto).hash_string(identifier), file=out)
    return 0


def _cmd_routes(args: argparse.Namespace, config: AppConfig, out: TextIO) -> int:
    app = FederationApp(config)
    print(f"mode: {app.operating_mode()}", file=out)
    for entry in app.routes():
        state = "enabled" if entry.access else "disabled"
        print(f"{entry.name}\t{entry.path}\t{state}", file=out)
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    raise SystemExit(main())
