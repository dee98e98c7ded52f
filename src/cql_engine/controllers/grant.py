"""
Grant controller.

A grant is a set of privileges for one role on one keyspace. Create and Update
both issue one GRANT per desired privilege; Delete issues one REVOKE per
desired privilege. Each statement is idempotent on the cluster, so a loop that
fails half way is resumed by the next pass. Nothing is rolled back.
"""

from __future__ import annotations

from collections.abc import Callable

from src.cql_engine.controllers.base import store_errors
from src.cql_engine.cql import (
    cql_grant_on_keyspace,
    cql_revoke_on_keyspace,
    cql_select_role_permissions,
)
from src.cql_engine.desired.models import GrantParameters, ManagedResource
from src.cql_engine.errors import ErrorKind, ReconcileError
from src.cql_engine.execute.ports import CallContext, StoreExecutor
from src.cql_engine.identifiers import format_keyspace_resource
from src.cql_engine.plan.differ import diff_grant
from src.cql_engine.state.states import Creation, Observation, ObservedGrant
from src.enums import Phase, ResourceKind

_KIND = ResourceKind.GRANT

StatementBuilder = Callable[[str, str, str], str]


class GrantController:
    """Converge one role/keyspace grant through a `StoreExecutor`."""

    def __init__(self, executor: StoreExecutor) -> None:
        self._executor = executor

    def observe(self, context: CallContext, resource: ManagedResource) -> Observation:
        params = _parameters(resource)
        observed = self.read_permissions(context, resource)
        diff = diff_grant(observed.permissions, params.permissions)
        return Observation(exists=diff.exists, up_to_date=diff.up_to_date, resource=resource)

    def read_permissions(self, context: CallContext, resource: ManagedResource) -> ObservedGrant:
        """Union of permissions across every row for (role, data/<keyspace>)."""
        role, keyspace = _target(resource, Phase.OBSERVE)
        keyspace_resource = format_keyspace_resource(keyspace)
        permissions: set[str] = set()
        with store_errors(_KIND, Phase.OBSERVE):
            with self._executor.query(
                context, cql_select_role_permissions(), role, keyspace_resource
            ) as cursor:
                for row in cursor:
                    permissions.update(row.get("permissions") or ())
        return ObservedGrant(
            role=role, resource=keyspace_resource, permissions=frozenset(permissions)
        )

    def create(self, context: CallContext, resource: ManagedResource) -> Creation:
        self._apply_each(context, resource, Phase.CREATE, cql_grant_on_keyspace)
        return Creation()

    def update(self, context: CallContext, resource: ManagedResource) -> None:
        self._apply_each(context, resource, Phase.UPDATE, cql_grant_on_keyspace)

    def delete(self, context: CallContext, resource: ManagedResource) -> None:
        self._apply_each(context, resource, Phase.DELETE, cql_revoke_on_keyspace)

    def _apply_each(
        self,
        context: CallContext,
        resource: ManagedResource,
        phase: Phase,
        build: StatementBuilder,
    ) -> None:
        """One statement per privilege, in order; the first failure stops the loop."""
        role, keyspace = _target(resource, phase)
        for privilege in _parameters(resource).unique_privileges:
            statement = build(privilege.permission, keyspace, role)
            with store_errors(_KIND, phase, privilege):
                self._executor.exec(context, statement)


def _parameters(resource: ManagedResource) -> GrantParameters:
    return resource.parameters  # type: ignore[return-value]


def _target(resource: ManagedResource, phase: Phase) -> tuple[str, str]:
    params = _parameters(resource)
    if not params.role or not params.keyspace:
        raise ReconcileError(
            ErrorKind.INVALID_RESOURCE,
            _KIND,
            phase,
            f"grant {resource.name!r} has no resolved role and keyspace",
        )
    return params.role, params.keyspace
