#!/usr/bin/env python3
"""
CLI tool for sending telemetry and running the development collector.

Usage:
    faro-lite event screen_view -a screen_name=Home
    faro-lite measure page_load 812 --unit ms -a page=/products
    faro-lite log "Checkout started" --level info
    faro-lite config
    faro-lite collector --port 4328
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from colorama import Fore, Style, init as colorama_init

from .client import FaroClient
from .config import ClientConfig, CollectorConfig, Config
from .errors import ConfigError
from .logging_config import configure_logging


def colorize(text: str, color: str) -> str:
    return f"{color}{text}{Style.RESET_ALL}"


def print_json(data: Any, indent: int = 2) -> None:
    print(json.dumps(data, indent=indent, default=str, sort_keys=True))


def parse_attribute(raw: str) -> tuple[str, Any]:
    """Parse ``key=value``; numbers and true/false are typed."""
    if "=" not in raw:
        raise argparse.ArgumentTypeError(f"expected key=value, got {raw!r}")
    key, value = raw.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError(f"empty key in {raw!r}")
    lowered = value.lower()
    if lowered in ("true", "false"):
        return key, lowered == "true"
    for cast in (int, float):
        try:
            return key, cast(value)
        except ValueError:
            continue
    return key, value


def build_config(args) -> Config:
    """Resolve config: YAML file first, then command line overrides."""
    config = Config.from_yaml(args.config) if args.config else Config()

    overrides = {}
    if args.url:
        overrides["url"] = args.url
    if args.app_name:
        overrides["app_name"] = args.app_name
    if args.environment:
        overrides["environment"] = args.environment
    if args.transport:
        overrides["transport_type"] = args.transport
    if args.log_level:
        overrides["log_level"] = args.log_level
    if overrides:
        config.client = ClientConfig(**{**config.client.to_dict(), **overrides})
    return config


def _report(client: FaroClient, what: str) -> int:
    drained = client.flush()
    stats = client.stats
    client.shutdown()

    if drained and stats.get("sent", 0) and not stats.get("failed", 0):
        config = client.config
        target = config.url if config.transport_type == "http" else config.transport_type
        print(colorize(f"Sent {what}", Fore.GREEN), f"-> {target}")
        return 0

    print(colorize(f"Failed to send {what}", Fore.RED), file=sys.stderr)
    print_json(stats)
    return 1


def cmd_event(args, config: Config) -> int:
    """Send a single event."""
    client = FaroClient(config=config.client)
    client.push_event(args.name, dict(args.attributes or []))
    return _report(client, f"event {args.name!r}")


def cmd_measure(args, config: Config) -> int:
    """Send a single measurement."""
    if not config.client.metrics_enabled:
        print(colorize("Metrics are disabled (FARO_METRICS_ENABLED=false)", Fore.YELLOW), file=sys.stderr)
        return 1
    client = FaroClient(config=config.client)
    client.push_measurement(args.name, args.value, args.unit, dict(args.attributes or []))
    return _report(client, f"measurement {args.name!r}")


def cmd_log(args, config: Config) -> int:
    """Send a single log line."""
    client = FaroClient(config=config.client)
    client.push_log(args.message, args.level, dict(args.attributes or []))
    return _report(client, "log")


def cmd_config(args, config: Config) -> int:
    """Print the resolved configuration."""
    print(colorize("\nClient:", Style.BRIGHT))
    print_json(config.client.to_dict())
    print(colorize("\nCollector:", Style.BRIGHT))
    print_json(vars(config.collector))
    return 0


def cmd_collector(args, config: Config) -> int:
    """Run the development collector."""
    from .collector.app import run

    collector = config.collector
    collector_config = CollectorConfig(
        host=args.host or collector.host,
        port=args.port or collector.port,
        path=collector.path,
        max_events=collector.max_events,
        service_name=collector.service_name,
        environment=collector.environment,
    )
    run(collector_config, log_level=config.client.log_level)
    return 0


COMMANDS = {
    "event": cmd_event,
    "measure": cmd_measure,
    "log": cmd_log,
    "config": cmd_config,
    "collector": cmd_collector,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="faro-lite",
        description="Send telemetry envelopes to a collector",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", help="YAML config file")
    parser.add_argument("--url", help="Collector URL (overrides FARO_URL)")
    parser.add_argument("--app-name", help="Application name")
    parser.add_argument("--environment", help="Deployment environment")
    parser.add_argument(
        "--transport",
        choices=["http", "console", "file"],
        help="Transport type",
    )
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # event command
    event_parser = subparsers.add_parser("event", help="Send one event")
    event_parser.add_argument("name", help="Event name (e.g., screen_view)")
    event_parser.add_argument(
        "-a", "--attr", dest="attributes", action="append", type=parse_attribute,
        help="Attribute as key=value (repeatable)",
    )

    # measure command
    measure_parser = subparsers.add_parser("measure", help="Send one measurement")
    measure_parser.add_argument("name", help="Metric name (e.g., page_load)")
    measure_parser.add_argument("value", type=float, help="Numeric value")
    measure_parser.add_argument("--unit", default="ms", help="Unit (default: ms)")
    measure_parser.add_argument(
        "-a", "--attr", dest="attributes", action="append", type=parse_attribute,
        help="Attribute as key=value (repeatable)",
    )

    # log command
    log_parser = subparsers.add_parser("log", help="Send one log line")
    log_parser.add_argument("message", help="Log message")
    log_parser.add_argument(
        "--level", default="info", choices=["debug", "info", "warn", "error"],
    )
    log_parser.add_argument(
        "-a", "--attr", dest="attributes", action="append", type=parse_attribute,
        help="Context attribute as key=value (repeatable)",
    )

    # config command
    subparsers.add_parser("config", help="Print the resolved configuration")

    # collector command
    collector_parser = subparsers.add_parser("collector", help="Run the development collector")
    collector_parser.add_argument("--host", help="Bind host")
    collector_parser.add_argument("--port", type=int, help="Bind port")

    return parser


def main(argv: list[str] | None = None) -> int:
    colorama_init()
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = build_config(args)
    except (ConfigError, OSError) as e:
        print(colorize(f"Error: {e}", Fore.RED), file=sys.stderr)
        return 2

    configure_logging(config.client.log_level)
    return COMMANDS[args.command](args, config)


if __name__ == "__main__":
    sys.exit(main() or 0)
