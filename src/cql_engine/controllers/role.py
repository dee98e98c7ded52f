"""
Role controller.

Create generates a password, issues CREATE ROLE IF NOT EXISTS and returns a
`ConnectionSecret` for the caller to publish. The password lives only in that
statement and that secret; it is never stored here or read back later.
Update re-asserts the SUPERUSER/LOGIN flags and leaves the password alone.
"""

from __future__ import annotations

from src.cql_engine.controllers.base import store_errors
from src.cql_engine.cql import cql_alter_role, cql_create_role, cql_drop_role, cql_select_role
from src.cql_engine.desired.models import ManagedResource, RoleParameters
from src.cql_engine.errors import ErrorKind, ReconcileError
from src.cql_engine.execute.passwords import generate_password
from src.cql_engine.execute.ports import CallContext, PasswordGenerator, Row, StoreExecutor
from src.cql_engine.plan.differ import late_init_role, role_up_to_date
from src.cql_engine.state.states import Creation, Observation
from src.enums import Phase, ResourceKind

_KIND = ResourceKind.ROLE


class RoleController:
    """Converge one role through a `StoreExecutor`."""

    def __init__(
        self, executor: StoreExecutor, password_generator: PasswordGenerator = generate_password
    ) -> None:
        self._executor = executor
        self._generate_password = password_generator

    def observe(self, context: CallContext, resource: ManagedResource) -> Observation:
        desired: RoleParameters = resource.parameters  # type: ignore[assignment]
        with store_errors(_KIND, Phase.OBSERVE):
            with self._executor.query(
                context, cql_select_role(), resource.get_external_name()
            ) as cursor:
                row = cursor.first()

        if row is None:
            return Observation.absent(resource)

        observed = parse_role_row(row)
        initialized, changed = late_init_role(observed, desired)
        return Observation(
            exists=True,
            up_to_date=role_up_to_date(observed, initialized),
            resource=resource.with_parameters(initialized) if changed else resource,
            late_initialized=changed,
        )

    def create(self, context: CallContext, resource: ManagedResource) -> Creation:
        desired: RoleParameters = resource.parameters  # type: ignore[assignment]
        try:
            password = self._generate_password()
        except Exception as error:
            raise ReconcileError(
                ErrorKind.SECRET, _KIND, Phase.CREATE, f"cannot generate password: {error}"
            ) from error

        role_name = resource.get_external_name()
        statement = cql_create_role(
            role_name, bool(desired.superuser), bool(desired.login), password
        )
        with store_errors(_KIND, Phase.CREATE):
            self._executor.exec(context, statement)

        return Creation(
            connection_secret=self._executor.get_connection_details(role_name, password)
        )

    def update(self, context: CallContext, resource: ManagedResource) -> None:
        desired: RoleParameters = resource.parameters  # type: ignore[assignment]
        statement = cql_alter_role(
            resource.get_external_name(), bool(desired.superuser), bool(desired.login)
        )
        with store_errors(_KIND, Phase.UPDATE):
            self._executor.exec(context, statement)

    def delete(self, context: CallContext, resource: ManagedResource) -> None:
        with store_errors(_KIND, Phase.DELETE):
            self._executor.exec(context, cql_drop_role(resource.get_external_name()))


def parse_role_row(row: Row) -> RoleParameters:
    """Observed flags from a system_auth.roles row; non-boolean values stay None."""
    superuser = row.get("is_superuser")
    login = row.get("can_login")
    return RoleParameters(
        superuser=superuser if isinstance(superuser, bool) else None,
        login=login if isinstance(login, bool) else None,
    )
