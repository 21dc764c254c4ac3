"""
Command-line interface for the domain lookup engine.

This module provides the main CLI entry point with commands for:
- lookup: Resolve a domain, IP, AS number or entity over RDAP or WHOIS
- price: Show the cheapest registrar offers for a domain's suffix
- tlds: List the supported top-level domains
- serve: Run the HTTP API
- config: Configuration management
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import (
    AuthConfig,
    EngineConfig,
    LoggingConfig,
    QuotaConfig,
    ServerConfig,
    UpstreamConfig,
)
from .enums import LogLevel, LookupMode, ObjectType, PriceKind
from .exceptions import ConfigurationError, DomainLookupError
from .models import CallerIdentity, NormalizedRecord, ResolutionResult
from .service import LookupService

DEFAULT_CONFIG_PATH = Path.home() / ".domain_lookup" / "config.json"

# Quota key for lookups made from the command line
CLI_CALLER = "cli"


def create_default_config(admin_password: Optional[str] = None) -> EngineConfig:
    """
    Create a default engine configuration.

    Args:
        admin_password: Shared secret exempting callers from quotas

    Returns:
        EngineConfig with default settings
    """
    return EngineConfig(auth=AuthConfig(admin_password=admin_password))


def load_config_from_file(config_path: Path) -> Optional[EngineConfig]:
    """
    Load configuration from a JSON file.

    Sections and keys missing from the file keep their defaults.

    Returns:
        EngineConfig if successful, None otherwise
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            print(f"Error loading config: {config_path} is not a JSON object", file=sys.stderr)
            return None

        return EngineConfig(
            quota=QuotaConfig(**data.get("quota", {})),
            upstream=UpstreamConfig(**data.get("upstream", {})),
            auth=AuthConfig(**data.get("auth", {})),
            server=ServerConfig(**data.get("server", {})),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError, TypeError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None


def save_config_to_file(config: EngineConfig, config_path: Path) -> bool:
    """
    Save configuration to a JSON file.

    Returns:
        True if successful, False otherwise
    """
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(asdict(config), f, indent=2, ensure_ascii=False)
        return True

    except (OSError, TypeError) as e:
        print(f"Error saving config: {e}", file=sys.stderr)
        return False


def resolve_config(config_path: Optional[str]) -> Optional[EngineConfig]:
    """Load the file given with --config, or build the config from the environment."""
    if config_path:
        config = load_config_from_file(Path(config_path))
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
        return config
    return EngineConfig.from_env()


def create_logger(config: EngineConfig, verbose: bool) -> AuditLogger:
    """Verbose runs log at the configured level; otherwise only warnings and errors."""
    if verbose:
        return AuditLogger.from_config(config.logging)
    return AuditLogger(output_format=config.logging.output_format, min_level=LogLevel.WARN)


def format_record(record: NormalizedRecord) -> list[str]:
    """Render a record as aligned 'Label: value' lines."""
    rows = [
        ("Identifier", record.identifier),
        ("Status", ", ".join(record.statuses) or "-"),
        ("Registrar", record.registrar_name),
        ("Registrar ID", record.registrar_id),
        ("Registered", record.registration_date),
        ("Expires", record.expiration_date),
        ("Last updated", record.last_updated_date),
        ("Name servers", ", ".join(record.name_servers)),
        ("DNSSEC", record.dnssec.value),
        ("Age (days)", str(record.age_in_days)),
        ("Remaining (days)", str(record.remaining_days)),
        ("Handle", record.handle),
        ("WHOIS server", record.whois_server),
    ]
    width = max(len(label) for label, _ in rows)
    return [f"  {label.ljust(width)} : {value}" for label, value in rows]


def print_result(result: ResolutionResult, as_json: bool) -> None:
    if as_json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False, default=str))
        return

    if not result.success:
        error = result.error
        print(f"Lookup failed ({error.kind.value}): {error.message}", file=sys.stderr)
        if error.status_code:
            print(f"  Upstream status: {error.status_code}", file=sys.stderr)
        if result.note:
            print(f"  Note: {result.note}", file=sys.stderr)
        return

    print(f"Source: {result.source.value.upper()}")
    if result.note:
        print(f"Note: {result.note}")
    for line in format_record(result.record):
        print(line)


async def run_lookup(
    config: EngineConfig,
    mode: str,
    object_type: Optional[str],
    identifier: str,
    password: Optional[str],
    as_json: bool,
    verbose: bool,
) -> int:
    """
    Resolve one identifier and print the result.

    Returns:
        Exit code (0 on success, 1 on failure)
    """
    caller = CallerIdentity(source_ip=CLI_CALLER, credential=password)
    async with LookupService(config, logger=create_logger(config, verbose)) as service:
        result = await service.resolve(mode, object_type, identifier, caller)

    print_result(result, as_json)
    return 0 if result.success else 1


async def run_tlds(config: EngineConfig, refresh: bool, as_json: bool, verbose: bool) -> int:
    caller = CallerIdentity(source_ip=CLI_CALLER)
    async with LookupService(config, logger=create_logger(config, verbose)) as service:
        result = await service.list_supported_suffixes(caller, refresh=refresh)

    if as_json:
        print(json.dumps([entry.to_dict() for entry in result.entries], indent=2))
    else:
        if result.is_fallback:
            print("TLD registry unreachable; showing built-in list.", file=sys.stderr)
        print(" ".join(entry.suffix for entry in result.entries))
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    """Handle the 'lookup' command."""
    config = resolve_config(args.config)
    if config is None:
        return 1

    return asyncio.run(run_lookup(
        config=config,
        mode=args.mode,
        object_type=args.type if args.mode == LookupMode.RDAP.value else None,
        identifier=args.identifier,
        password=args.password,
        as_json=args.json,
        verbose=args.verbose,
    ))


def cmd_price(args: argparse.Namespace) -> int:
    """Handle the 'price' command."""
    config = resolve_config(args.config)
    if config is None:
        return 1

    service = LookupService(config, logger=create_logger(config, args.verbose))
    try:
        result = service.price_lookup(
            args.domain, args.sort_by, CallerIdentity(source_ip=CLI_CALLER)
        )
    except DomainLookupError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        return 0

    print(f"Cheapest {result.sorted_by.value} offers for .{result.suffix}:")
    for quote in result.quotes:
        print(f"  {quote.registrar:<16} {quote.price:>9} {quote.currency}  ({quote.period})")
    return 0


def cmd_tlds(args: argparse.Namespace) -> int:
    """Handle the 'tlds' command."""
    config = resolve_config(args.config)
    if config is None:
        return 1
    return asyncio.run(run_tlds(config, args.refresh, args.json, args.verbose))


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle the 'serve' command."""
    from .server import main as serve_main

    config = resolve_config(args.config)
    if config is None:
        return 1
    if args.host:
        config.server.host = args.host
    if args.port:
        config.server.port = args.port

    try:
        serve_main(config)
    except ConfigurationError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Handle the 'config' command."""
    config_path = Path(args.path) if args.path else DEFAULT_CONFIG_PATH

    if args.action == "show":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"No configuration found at: {config_path}")
            print("Use 'config init' to create a default configuration.")
            return 1

        print(f"Configuration from: {config_path}")
        print(f"  RDAP aggregator: {config.upstream.rdap_base_url}")
        print(f"  WHOIS gateway: {config.upstream.whois_gateway_url}")
        print(f"  Quota window: {config.quota.window_seconds}s")
        print(
            f"  Ceilings: lookups={config.quota.detail_ceiling} "
            f"prices={config.quota.price_ceiling} tlds={config.quota.suffix_list_ceiling}"
        )
        print(f"  Password set: {bool(config.auth.admin_password)}")
        print(f"  Auth mode: {'admin' if config.auth.admin_mode else 'personal'}")
        print(f"  Listen: {config.server.host}:{config.server.port}")
        print(f"  Log level: {config.logging.level}")
        print(f"  Audit mode: {config.logging.audit_mode}")
        return 0

    elif args.action == "init":
        if config_path.exists() and not args.force:
            print(f"Configuration already exists at: {config_path}")
            print("Use --force to overwrite.")
            return 1

        config = create_default_config()
        if save_config_to_file(config, config_path):
            print(f"Configuration created at: {config_path}")
            return 0
        return 1

    elif args.action == "validate":
        config = load_config_from_file(config_path)
        if config is None:
            print(f"Error: Could not load config from {config_path}", file=sys.stderr)
            return 1

        try:
            config.validate()
        except ConfigurationError as e:
            print(f"Invalid configuration: {e.message}", file=sys.stderr)
            return 1

        print(f"Configuration at {config_path} is valid.")
        return 0

    return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="domain-lookup",
        description="RDAP/WHOIS registration-data lookups with registrar price comparison",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'lookup' command
    lookup_parser = subparsers.add_parser(
        "lookup",
        help="Look up registration data",
    )
    lookup_parser.add_argument(
        "identifier",
        help="Domain, IP address/network, AS number or entity handle",
    )
    lookup_parser.add_argument(
        "--mode", "-m",
        choices=[mode.value for mode in LookupMode],
        default=LookupMode.RDAP.value,
        help="Registry protocol (default: rdap)",
    )
    lookup_parser.add_argument(
        "--type", "-t",
        choices=[object_type.value for object_type in ObjectType],
        default=ObjectType.DOMAIN.value,
        help="RDAP object type (default: domain)",
    )
    lookup_parser.add_argument(
        "--password",
        help="Shared secret that lifts the lookup quota",
    )
    lookup_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON",
    )
    lookup_parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    lookup_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    lookup_parser.set_defaults(func=cmd_lookup)

    # 'price' command
    price_parser = subparsers.add_parser(
        "price",
        help="Show the cheapest registrar offers for a domain",
    )
    price_parser.add_argument(
        "domain",
        help="Domain whose suffix is priced (e.g., example.com)",
    )
    price_parser.add_argument(
        "--sort-by", "-s",
        choices=[kind.value for kind in PriceKind],
        default=PriceKind.REGISTRATION.value,
        help="Price type to compare (default: registration)",
    )
    price_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )
    price_parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    price_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    price_parser.set_defaults(func=cmd_price)

    # 'tlds' command
    tlds_parser = subparsers.add_parser(
        "tlds",
        help="List supported top-level domains",
    )
    tlds_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Fetch the list again instead of using the cache",
    )
    tlds_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the list as JSON",
    )
    tlds_parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    tlds_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    tlds_parser.set_defaults(func=cmd_tlds)

    # 'serve' command
    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP API",
    )
    serve_parser.add_argument(
        "--host",
        help="Bind address (default: HTTP_HOST or 0.0.0.0)",
    )
    serve_parser.add_argument(
        "--port", "-p",
        type=int,
        help="Bind port (default: HTTP_PORT or 8000)",
    )
    serve_parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
    )
    serve_parser.set_defaults(func=cmd_serve)

    # 'config' command
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
    )
    config_parser.add_argument(
        "action",
        choices=["show", "init", "validate"],
        help="Configuration action",
    )
    config_parser.add_argument(
        "--path", "-p",
        help="Path to configuration file",
    )
    config_parser.add_argument(
        "--force", "-f",
        action="store_true",
        help="Force overwrite existing configuration",
    )
    config_parser.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
