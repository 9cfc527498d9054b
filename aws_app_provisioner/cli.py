"""Command line interface for provisioning the application's AWS resources."""
from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from typing import List, Optional

from botocore.exceptions import BotoCoreError

from .cloud import Boto3CloudClient
from .config import ProvisionerSettings
from .core import (
    ProvisioningOrchestrator,
    ProvisioningRun,
    describe_resource,
    print_statuses,
    print_steps,
)
from .errors import ProvisioningError
from .logging_config import configure_logging


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Return parsed command line arguments."""

    parser = argparse.ArgumentParser(
        description="Idempotently provision a Cognito identity pool, its role and DynamoDB tables."
    )
    parser.add_argument("--profile", help="AWS CLI profile to use", default=None)
    parser.add_argument("--region", help="AWS region to provision into", default=None)
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=3,
        help="Total attempts per AWS call, including retries of transient failures",
    )
    parser.add_argument(
        "--connect-timeout", type=float, default=10.0, help="Connect timeout in seconds"
    )
    parser.add_argument("--read-timeout", type=float, default=30.0, help="Read timeout in seconds")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Minimum level of progress logs written to stderr",
    )
    parser.add_argument("--log-json", action="store_true", help="Write logs as JSON lines")
    parser.add_argument("--json", dest="json_path", help="Optional path to export step results as JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)

    pool = subparsers.add_parser(
        "identity-pool", help="Create the identity pool and its authenticated role"
    )
    pool.add_argument("resource_dir", help="Directory holding the pool's config.json")

    table = subparsers.add_parser(
        "table", help="Create a table and grant the pool's authenticated role access to it"
    )
    table.add_argument("resource_dir", help="Directory holding the table's config.json")
    table.add_argument("--pool", dest="pool_name", required=True, help="Identity pool name")

    up = subparsers.add_parser("up", help="Provision the identity pool followed by its tables")
    up.add_argument("pool_dir", help="Directory holding the pool's config.json")
    up.add_argument("table_dirs", nargs="*", help="Directories holding table config.json files")
    up.add_argument(
        "--workers", type=int, default=1, help="Provision up to this many tables concurrently"
    )

    status = subparsers.add_parser("status", help="Show cached state without calling AWS")
    status.add_argument("resource_dirs", nargs="+", help="Resource directories to inspect")

    return parser.parse_args(argv)


def _orchestrator(args: argparse.Namespace) -> ProvisioningOrchestrator:
    settings = ProvisionerSettings(
        profile=args.profile,
        region=args.region,
        max_attempts=args.max_attempts,
        connect_timeout=args.connect_timeout,
        read_timeout=args.read_timeout,
    )
    client = Boto3CloudClient(settings.session(), settings.boto_config())
    return ProvisioningOrchestrator(client)


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point used by ``python -m aws_app_provisioner``."""

    args = parse_args(argv)
    configure_logging(args.log_level, json_format=args.log_json)

    try:
        if args.command == "status":
            print_statuses([describe_resource(d) for d in args.resource_dirs])
            return 0

        orchestrator = _orchestrator(args)
        run = ProvisioningRun()
        if args.command == "identity-pool":
            run.pool = orchestrator.provision_identity_pool(args.resource_dir)
        elif args.command == "table":
            run.tables = [orchestrator.provision_table(args.resource_dir, args.pool_name)]
        else:
            run = orchestrator.provision_application(
                args.pool_dir, args.table_dirs, max_workers=args.workers
            )
    except (ProvisioningError, BotoCoreError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted; state files written so far are intact.", file=sys.stderr)
        return 130

    print_steps(run.steps)

    if args.json_path:
        try:
            with open(args.json_path, "w", encoding="utf-8") as fh:
                json.dump([asdict(step) for step in run.steps], fh, indent=2, default=str)
        except OSError as exc:
            print(f"Failed to export step results: {exc}", file=sys.stderr)
            return 1
        print(f"Step results exported to {args.json_path}")

    return 0


__all__ = ["main", "parse_args"]
