"""Map each resource kind to its controller, once, when a reconciler is built."""

from __future__ import annotations

from collections.abc import Callable

from src.cql_engine.controllers.base import ExternalClient
from src.cql_engine.controllers.grant import GrantController
from src.cql_engine.controllers.keyspace import KeyspaceController
from src.cql_engine.controllers.role import RoleController
from src.cql_engine.execute.passwords import generate_password
from src.cql_engine.execute.ports import PasswordGenerator, StoreExecutor
from src.enums import ResourceKind

ControllerFactory = Callable[[StoreExecutor], ExternalClient]


def controller_factory_for(
    kind: ResourceKind, password_generator: PasswordGenerator = generate_password
) -> ControllerFactory:
    """Return a callable that builds the controller for `kind` around an executor."""
    if kind is ResourceKind.KEYSPACE:
        return KeyspaceController
    if kind is ResourceKind.ROLE:
        return lambda executor: RoleController(executor, password_generator)
    if kind is ResourceKind.GRANT:
        return GrantController
    raise ValueError(f"No controller registered for kind {kind!r}")
