"""CLI entrypoint for the battle royale fleet controller."""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys

import uvicorn

from royale_fleet.cli.helpers import _configure_logging
from royale_fleet.cli.options import LogFormat, build_arg_parser
from royale_fleet.config.loader import Config, load_config
from royale_fleet.config.secrets import load_environment_secrets
from royale_fleet.gateway.client import GatewayFactory
from royale_fleet.identity.registration import AccountRegistrar
from royale_fleet.identity.wallet import WalletProvisioner
from royale_fleet.memory.persistence import SQLiteAgentStore
from royale_fleet.observer.server import create_app
from royale_fleet.observer.streaming import FleetEventStream
from royale_fleet.runtime.lifecycle import LifecycleConfig
from royale_fleet.runtime.recovery import RecoveryPolicy
from royale_fleet.runtime.stats import AccountStatsRefresher
from royale_fleet.runtime.supervisor import AgentSupervisor

logger = logging.getLogger(__name__)


def _load_runtime_config(args: argparse.Namespace) -> Config:
    """Load config and apply logging settings from it and the CLI."""
    config = load_config(getattr(args, "config", None))
    _configure_logging(
        level=str(config.logging.level),
        log_format=str(getattr(args, "log_format", None) or config.logging.format),
        quiet_uvicorn=True,
    )
    return config


def _open_store(args: argparse.Namespace, config: Config) -> SQLiteAgentStore:
    return SQLiteAgentStore(getattr(args, "db", None) or config.fleet.database_path)


def _build_factory(config: Config) -> GatewayFactory:
    return GatewayFactory(
        base_url=config.gateway.base_url,
        timeout_seconds=config.gateway.timeout_seconds,
    )


def serve_command(args: argparse.Namespace) -> int:
    """Resume agents, start the stats refresher, and serve the control API."""
    config = _load_runtime_config(args)
    profile = str(args.recovery_profile or config.fleet.recovery_profile)
    store = _open_store(args, config)
    factory = _build_factory(config)
    events = FleetEventStream()

    supervisor = AgentSupervisor(
        store,
        factory,
        config=LifecycleConfig(
            recovery=RecoveryPolicy.for_profile(profile),
            inventory_capacity=config.fleet.inventory_capacity,
            map_size=config.fleet.map_size,
        ),
        wallets=WalletProvisioner(store),
        events=events,
        scan_window=config.fleet.scan_window,
    )
    registrar = AccountRegistrar(factory, store)
    stats = AccountStatsRefresher(store, factory, interval_seconds=config.fleet.stats_refresh_seconds)

    host = str(args.host or config.api.host)
    port = int(args.port or config.api.port)
    try:
        if not args.no_resume:
            resumed = supervisor.resume()
            logger.info("[BOOT] Resumed %s running agent(s)", resumed)
        stats.start()
        logger.info("[BOOT] Control API listening on http://%s:%s (profile=%s)", host, port, profile)
        app = create_app(supervisor, store, registrar=registrar, events=events)
        uvicorn.run(app, host=host, port=port, log_level="warning", access_log=False)
    finally:
        with contextlib.suppress(Exception):
            stats.stop()
        with contextlib.suppress(Exception):
            supervisor.shutdown()
        factory.close()
        store.close()
    return 0


def register_command(args: argparse.Namespace) -> int:
    """Create one named account or a batch of random ones."""
    config = _load_runtime_config(args)
    store = _open_store(args, config)
    factory = _build_factory(config)
    try:
        registrar = AccountRegistrar(factory, store)
        if args.count is not None:
            outcomes = registrar.bulk_register(int(args.count))
        else:
            outcomes = [registrar.register(str(args.name), str(args.role))]
    finally:
        factory.close()
        store.close()

    for outcome in outcomes:
        if outcome.success:
            print(f"registered  #{outcome.agent_id}  {outcome.name}  {outcome.wallet_address}")
        else:
            print(f"failed      {outcome.name}: {outcome.message}")
    return 0 if any(outcome.success for outcome in outcomes) else 1


def list_command(args: argparse.Namespace) -> int:
    """Print stored agents without their private keys."""
    config = _load_runtime_config(args)
    with _open_store(args, config) as store:
        records = store.list_agents()

    for record in records:
        session = f"{record.game_id}/{record.agent_id}" if record.session else (record.game_id or "-")
        print(
            f"#{record.id:<4} {record.name:<28} {record.role:<18} {record.status.value:<8} "
            f"hp={record.hp} ep={record.ep} session={session} last={record.last_action or '-'}"
        )
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint function."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Configure a sane bootstrap logger before config loading.
    _configure_logging(
        level="INFO",
        log_format=str(getattr(args, "log_format", None) or LogFormat.READABLE.value),
        quiet_uvicorn=True,
    )

    try:
        load_environment_secrets()
        if args.command == "serve":
            return serve_command(args)
        if args.command == "register":
            return register_command(args)
        if args.command == "list":
            return list_command(args)
        raise ValueError(f"Unsupported command: {args.command}")
    except Exception as exc:
        logger.error("[BOOT] CLI execution failed: %s", exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
