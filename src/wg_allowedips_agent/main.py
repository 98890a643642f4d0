"""Entry point for the allowed-ips agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

import yaml

from wg_allowedips.command import CommandRunner
from wg_allowedips.exceptions import CommandFailure
from wg_allowedips.iproute import IPRouteObserver
from wg_allowedips.model import Device
from wg_allowedips.netlink import NetlinkRouteObserver, resolve_proto
from wg_allowedips.sync import AllowedIPsSynchronizer
from wg_allowedips.wireguard import WireGuardClient

from .config import AgentConfig, load_config
from .watcher import RouteWatcher

LOG = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _positive_float(value: str) -> float:
    interval = float(value)
    if interval <= 0:
        raise argparse.ArgumentTypeError("interval must be positive")
    return interval


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Keep WireGuard peer allowed-ips in sync with kernel routes"
    )
    parser.add_argument(
        "--wgdev",
        help="Name of the WireGuard network interface",
    )
    parser.add_argument(
        "--proto",
        help="Only consider routes installed by this protocol (e.g. bird)",
    )
    parser.add_argument(
        "--interval",
        type=_positive_float,
        help="Seconds between reconciliation passes (default 10)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional YAML configuration file",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single reconciliation pass and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the changes without applying them",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def resolve_config(parser: argparse.ArgumentParser, args: argparse.Namespace) -> AgentConfig:
    config = AgentConfig()
    if args.config is not None:
        try:
            config = load_config(args.config)
        except (OSError, ValueError, yaml.YAMLError) as exc:
            parser.error(f"invalid configuration {args.config}: {exc}")

    if args.wgdev:
        config.interface = args.wgdev
    if args.proto:
        config.proto = args.proto
    if args.interval is not None:
        config.interval = args.interval
    if args.dry_run:
        config.dry_run = True

    if not config.interface:
        parser.error("the WireGuard interface is required (--wgdev)")
    if config.route_backend == "netlink" and config.proto:
        try:
            resolve_proto(config.proto)
        except ValueError as exc:
            parser.error(str(exc))
    return config


def build_synchronizer(config: AgentConfig) -> AllowedIPsSynchronizer:
    runner = CommandRunner(timeout=config.commands.timeout)
    ip_observer = IPRouteObserver(runner, ip_binary=config.commands.ip)
    if config.route_backend == "netlink":
        routes = NetlinkRouteObserver()
    else:
        routes = ip_observer
    return AllowedIPsSynchronizer(
        Device(name=config.interface),
        routes=routes,
        addresses=ip_observer,
        wireguard=WireGuardClient(runner, wg_binary=config.commands.wg),
        options=config.to_sync_options(),
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = resolve_config(parser, args)
    synchronizer = build_synchronizer(config)
    device = synchronizer.device.name

    try:
        synchronizer.refresh()
    except CommandFailure as exc:
        LOG.error("%s: %s", device, exc)
        return 1

    try:
        routes = synchronizer.observe()
    except CommandFailure as exc:
        LOG.error("%s: %s", device, exc)
        return 1

    synchronizer.reconcile(routes)
    if args.once:
        return 0

    stop_event = Event()

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    LOG.info("%s: watching routes every %ss", device, config.interval)
    RouteWatcher(synchronizer, config.interval, stop_event).run()

    LOG.info("allowed-ips agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
