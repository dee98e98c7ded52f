"""
Keyspace controller.

Observe reads `system_schema.keyspaces`; Create issues CREATE KEYSPACE IF NOT
EXISTS with defaults for unset fields; Delete issues DROP KEYSPACE IF EXISTS.

Update has no remote effect: replication changes are left to an operator, so a
drifted keyspace stays reported as not up to date but is never altered here.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace

from src.constants import DEFAULT_DURABLE_WRITES, DEFAULT_REPLICATION_FACTOR
from src.cql_engine.controllers.base import store_errors
from src.cql_engine.cql import cql_create_keyspace, cql_drop_keyspace, cql_select_keyspace
from src.cql_engine.desired.models import KeyspaceParameters, ManagedResource
from src.cql_engine.execute.ports import CallContext, Row, StoreExecutor
from src.cql_engine.identifiers import parse_replication_factor, strip_replication_class_prefix
from src.cql_engine.plan.differ import keyspace_up_to_date, late_init_keyspace
from src.cql_engine.state.states import Creation, Observation
from src.enums import Phase, ReplicationStrategy, ResourceKind

_KIND = ResourceKind.KEYSPACE


class KeyspaceController:
    """Converge one keyspace through a `StoreExecutor`."""

    def __init__(self, executor: StoreExecutor) -> None:
        self._executor = executor

    def observe(self, context: CallContext, resource: ManagedResource) -> Observation:
        desired: KeyspaceParameters = resource.parameters  # type: ignore[assignment]
        with store_errors(_KIND, Phase.OBSERVE):
            with self._executor.query(
                context, cql_select_keyspace(), resource.get_external_name()
            ) as cursor:
                row = cursor.first()

        if row is None:
            return Observation.absent(resource)

        observed = parse_keyspace_row(row)
        initialized, changed = late_init_keyspace(_known_strategy_only(observed), desired)
        return Observation(
            exists=True,
            up_to_date=keyspace_up_to_date(observed, initialized),
            resource=resource.with_parameters(initialized) if changed else resource,
            late_initialized=changed,
        )

    def create(self, context: CallContext, resource: ManagedResource) -> Creation:
        desired: KeyspaceParameters = resource.parameters  # type: ignore[assignment]
        strategy = desired.replication_class or ReplicationStrategy.SIMPLE
        factor = (
            desired.replication_factor
            if desired.replication_factor is not None
            else DEFAULT_REPLICATION_FACTOR
        )
        durable_writes = (
            desired.durable_writes if desired.durable_writes is not None else DEFAULT_DURABLE_WRITES
        )
        statement = cql_create_keyspace(
            resource.get_external_name(), str(strategy), factor, durable_writes
        )
        with store_errors(_KIND, Phase.CREATE):
            self._executor.exec(context, statement)
        return Creation()

    def update(self, context: CallContext, resource: ManagedResource) -> None:
        return None

    def delete(self, context: CallContext, resource: ManagedResource) -> None:
        with store_errors(_KIND, Phase.DELETE):
            self._executor.exec(context, cql_drop_keyspace(resource.get_external_name()))


# ---------- row parsing ----------


def parse_keyspace_row(row: Row) -> KeyspaceParameters:
    """Observed parameters from a system_schema.keyspaces row; unknown values stay None."""
    replication: Mapping[str, str] = row.get("replication") or {}
    replication_class = replication.get("class")
    strategy = None
    if replication_class:
        short = strip_replication_class_prefix(replication_class)
        strategy = _as_strategy(short)

    durable_writes = row.get("durable_writes")
    return KeyspaceParameters(
        replication_class=strategy,
        replication_factor=_replication_factor(replication),
        durable_writes=durable_writes if isinstance(durable_writes, bool) else None,
    )


def _as_strategy(short_name: str) -> str:
    try:
        return ReplicationStrategy(short_name)
    except ValueError:
        return short_name


def _known_strategy_only(observed: KeyspaceParameters) -> KeyspaceParameters:
    # Desired replication classes are limited to ReplicationStrategy members.
    if isinstance(observed.replication_class, ReplicationStrategy):
        return observed
    return replace(observed, replication_class=None)


def _replication_factor(replication: Mapping[str, str]) -> int | None:
    """
    'replication_factor' when present; otherwise the per-datacenter factor
    if every datacenter uses the same one (NetworkTopologyStrategy expands
    'replication_factor' into one entry per datacenter).
    """
    if "replication_factor" in replication:
        return _positive(parse_replication_factor(replication["replication_factor"]))

    per_datacenter = {
        parse_replication_factor(value) for key, value in replication.items() if key != "class"
    }
    if len(per_datacenter) == 1:
        return _positive(per_datacenter.pop())
    return None


def _positive(factor: int | None) -> int | None:
    return factor if factor is not None and factor > 0 else None
