"""
Engine: high-level entry point for reconciling a set of managed resources.

Responsibilities
----------------
- Wire one `Reconciler` per resource kind around shared stores and a connector.
- Order the work so dependencies exist before their dependents:
    - deletions first, grants → roles → keyspaces
    - then applies, keyspaces → roles → grants
- Run one pass per resource and collect the results.

Notes:
-----
- No CQL here; work is delegated to the reconcilers.
- Defaults are provided, but every component can be overridden for testing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from src.cql_engine.desired.models import ManagedResource
from src.cql_engine.execute.cassandra_executor import CassandraExecutor
from src.cql_engine.execute.connection import ConnectionDescriptor
from src.cql_engine.execute.passwords import generate_password
from src.cql_engine.execute.ports import CallContext, PasswordGenerator
from src.cql_engine.reconciler import Connector, PassResult, Reconciler
from src.cql_engine.state.ports import ResourceStore, SecretStore
from src.enums import ResourceKind
from src.logger import get_logger

LOGGER = get_logger("engine")

APPLY_ORDER: tuple[ResourceKind, ...] = (
    ResourceKind.KEYSPACE,
    ResourceKind.ROLE,
    ResourceKind.GRANT,
)


def default_connector(descriptor: ConnectionDescriptor) -> Connector:
    """A connector opening a fresh `CassandraExecutor` for every pass."""
    return lambda: CassandraExecutor(descriptor)


def order_for_run(resources: Iterable[ManagedResource]) -> tuple[ManagedResource, ...]:
    """Deletions in reverse dependency order, then applies in dependency order."""
    rank = {kind: index for index, kind in enumerate(APPLY_ORDER)}
    pending = list(resources)
    deletions = sorted(
        (r for r in pending if r.deletion_requested), key=lambda r: -rank[r.kind]
    )
    applies = sorted((r for r in pending if not r.deletion_requested), key=lambda r: rank[r.kind])
    return tuple(deletions + applies)


@dataclass(frozen=True)
class EngineReport:
    """Per-resource outcomes of one run, in execution order."""

    results: tuple[PassResult, ...]

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failed(self) -> tuple[PassResult, ...]:
        return tuple(result for result in self.results if not result.ok)


class Engine:
    """
    High-level entry point for the CQL engine.

    You can:
      - pass your own reconcilers (for custom behaviour), or
      - rely on defaults built from a connector and the two stores.

    Method:
      - run(resources, context)
    """

    def __init__(
        self,
        connector: Connector,
        resource_store: ResourceStore,
        secret_store: SecretStore,
        password_generator: PasswordGenerator = generate_password,
        reconcilers: Mapping[ResourceKind, Reconciler] | None = None,
    ) -> None:
        self.reconcilers = dict(reconcilers or {})
        for kind in APPLY_ORDER:
            self.reconcilers.setdefault(
                kind,
                Reconciler(kind, connector, resource_store, secret_store, password_generator),
            )

    def run(
        self, resources: Iterable[ManagedResource], context: CallContext | None = None
    ) -> EngineReport:
        """Run one pass for every resource; a failure never stops the others."""
        context = context or CallContext()
        results: list[PassResult] = []
        for resource in order_for_run(resources):
            if context.cancelled:
                LOGGER.warning("Run cancelled; %s %s not reconciled", resource.kind, resource.name)
                break
            results.append(self.reconcilers[resource.kind].reconcile(resource, context))

        report = EngineReport(results=tuple(results))
        LOGGER.info(
            "Reconciled %d resource(s): %d ok, %d failed",
            len(report.results),
            len(report.results) - len(report.failed),
            len(report.failed),
        )
        return report
