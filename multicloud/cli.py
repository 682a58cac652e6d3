#!/usr/bin/env python3
# CUI // SP-CTI
"""Multicloud CLI — inspect configuration and provider health.

CLI: env-example [--output PATH], config [--json], health [--json]
Global: --env-file PATH, --config PATH, --provider {aws,azure}, --verbose
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from multicloud.config_loader import ConfigLoader, generate_env_example
from multicloud.errors import ConfigurationError
from multicloud.provider_factory import CloudProviderFactory
from multicloud.schemas import HEALTHY, SUPPORTED_PROVIDERS

logger = logging.getLogger("multicloud.cli")

EXIT_OK = 0
EXIT_UNHEALTHY = 1
EXIT_CONFIG_ERROR = 2


def _cmd_env_example(args) -> int:
    content = generate_env_example()
    if args.output:
        path = Path(args.output)
        path.write_text(content, encoding="utf-8")
        print(f"Environment example file created at: {path}")
        print("\nTo use this configuration:")
        print("1. Copy .env.example to .env")
        print("2. Fill in your cloud provider credentials")
        print('3. Set CLOUD_PROVIDER to either "aws" or "azure"')
    else:
        print(content, end="")
    return EXIT_OK


def _cmd_config(args, loader: ConfigLoader) -> int:
    config = loader.load_config(args.provider)
    data = config.to_dict(redact=True)
    if args.json:
        print(json.dumps(data, indent=2))
    else:
        print(f"Provider: {data['provider']} | Region: {data['credentials']['region']}")
        section = data["credentials"].get(data["provider"], {})
        for key, value in section.items():
            print(f"  {key}: {value}")
    return EXIT_OK


def _cmd_health(args, loader: ConfigLoader) -> int:
    config = loader.load_config(args.provider)
    provider = CloudProviderFactory().get_provider(config)
    report = provider.health_check()
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        healthy = sum(1 for ok in report.services.values() if ok)
        print(f"{provider.provider_name.upper()} Health: {report.status.upper()} "
              f"({healthy}/{len(report.services)} healthy)")
        for name, ok in report.services.items():
            print(f"  [{'OK' if ok else 'FAIL'}] {name}")
    return EXIT_OK if report.status == HEALTHY else EXIT_UNHEALTHY


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multicloud",
        description="Multicloud facade — configuration and health checks",
    )
    parser.add_argument("--env-file", type=str, default=None,
                        help="Load environment variables from a dotenv file first")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to cloud_config.yaml")
    parser.add_argument("--provider", choices=SUPPORTED_PROVIDERS, default=None,
                        help="Override CLOUD_PROVIDER")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    env_p = sub.add_parser("env-example", help="Print or write a .env.example")
    env_p.add_argument("--output", type=str, default=None,
                       help="Write to this path instead of stdout")

    cfg_p = sub.add_parser("config", help="Show the loaded configuration (secrets masked)")
    cfg_p.add_argument("--json", action="store_true", help="JSON output")

    health_p = sub.add_parser("health", help="Probe compute, storage and ML")
    health_p.add_argument("--json", action="store_true", help="JSON output")
    return parser


def main(argv=None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command == "env-example":
        return _cmd_env_example(args)

    if args.env_file:
        load_dotenv(args.env_file)
        logger.info("Loaded environment from %s", args.env_file)

    loader = ConfigLoader(config_path=args.config)
    try:
        if args.command == "config":
            return _cmd_config(args, loader)
        return _cmd_health(args, loader)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
