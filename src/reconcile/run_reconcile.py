"""Entry point for reconciling every resource in a manifest file against a cluster."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path

from src.cql_engine.engine import Engine, EngineReport, default_connector
from src.cql_engine.errors import ConfigurationError
from src.cql_engine.execute.connection import ConnectionDescriptor
from src.cql_engine.execute.ports import CallContext
from src.cql_engine.manifests import (
    DirectorySecretStore,
    ManifestError,
    ManifestStore,
    load_credentials,
)
from src.logger import LOGGER


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="run_reconcile",
        description="Reconcile keyspaces, roles and grants declared in a manifest file.",
    )
    parser.add_argument("manifest", type=Path, help="YAML file with one document per resource")
    parser.add_argument(
        "--secrets-dir",
        type=Path,
        default=Path("secrets"),
        help="Directory receiving generated role credentials (default: ./secrets)",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        default=None,
        help="YAML file with username/password/endpoint/port; CASSANDRA_* env vars otherwise",
    )
    parser.add_argument(
        "--delete", action="store_true", help="Request deletion of every resource in the manifest"
    )
    parser.add_argument(
        "--timeout", type=float, default=None, help="Per-statement timeout in seconds"
    )
    return parser.parse_args(argv)


def run_reconcile(
    manifest: Path,
    secrets_dir: Path,
    descriptor: ConnectionDescriptor,
    *,
    delete: bool = False,
    timeout: float | None = None,
) -> EngineReport:
    """Load the manifest, run one pass per resource, and write results back."""
    store = ManifestStore(manifest)
    resources = store.load_resources()
    if delete:
        resources = tuple(replace(r, deletion_requested=True) for r in resources)

    engine = Engine(
        connector=default_connector(descriptor),
        resource_store=store,
        secret_store=DirectorySecretStore(secrets_dir),
    )
    return engine.run(resources, CallContext(timeout=timeout))


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        descriptor = (
            ConnectionDescriptor.from_credentials(load_credentials(args.credentials))
            if args.credentials
            else ConnectionDescriptor.from_settings()
        )
        report = run_reconcile(
            args.manifest,
            args.secrets_dir,
            descriptor,
            delete=args.delete,
            timeout=args.timeout,
        )
    except (ConfigurationError, ManifestError, OSError) as error:
        LOGGER.error("Reconcile aborted ✗ (%s)", error)
        return 1

    for result in report.failed:
        LOGGER.error("%s %s: %s", result.resource.kind, result.resource.name, result.error)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
