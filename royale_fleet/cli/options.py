"""CLI option models and parser helpers."""

from __future__ import annotations

import argparse
from enum import StrEnum


class LogFormat(StrEnum):
    """CLI log formatter mode."""

    READABLE = "readable"
    JSON = "json"


class RecoveryProfile(StrEnum):
    """Recovery budget profile."""

    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    parser.add_argument("--db", type=str, default=None, help="Agent database path override")
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in LogFormat],
        help="Terminal log format (defaults to the configured format)",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(prog="royale-fleet", description="Battle royale agent fleet controller")
    subparsers = parser.add_subparsers(dest="command")

    serve_parser = subparsers.add_parser("serve", help="Resume running agents and serve the control API")
    _add_common_arguments(serve_parser)
    serve_parser.add_argument("--host", type=str, default=None, help="API host override")
    serve_parser.add_argument("--port", type=int, default=None, help="API port override")
    serve_parser.add_argument(
        "--recovery-profile",
        type=str,
        default=None,
        choices=[profile.value for profile in RecoveryProfile],
        help="Recovery aggressiveness profile override",
    )
    serve_parser.add_argument(
        "--no-resume",
        action="store_true",
        help="Do not restart agents persisted as running",
    )

    register_parser = subparsers.add_parser("register", help="Create remote accounts for new agents")
    _add_common_arguments(register_parser)
    target = register_parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--name", type=str, default=None, help="Display name for a single account")
    target.add_argument("--count", type=int, default=None, help="Register N accounts with random names")
    register_parser.add_argument("--role", type=str, default="AGENT", help="Role for a single account")

    list_parser = subparsers.add_parser("list", help="List stored agents")
    _add_common_arguments(list_parser)

    return parser
