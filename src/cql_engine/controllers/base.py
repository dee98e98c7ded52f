"""
Controller protocol and error wrapping shared by the per-kind controllers.

Each resource kind has one controller class implementing `ExternalClient`.
Controllers are built per pass around a fresh `StoreExecutor`; they keep no
state between passes and never log or retry.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from src.cql_engine.desired.models import ManagedResource
from src.cql_engine.errors import ReconcileError, StoreError
from src.cql_engine.execute.ports import CallContext
from src.cql_engine.state.states import Creation, Observation
from src.enums import Phase, Privilege, ResourceKind


class ExternalClient(Protocol):
    """Observe/Create/Update/Delete for one resource kind."""

    def observe(self, context: CallContext, resource: ManagedResource) -> Observation: ...

    def create(self, context: CallContext, resource: ManagedResource) -> Creation: ...

    def update(self, context: CallContext, resource: ManagedResource) -> None: ...

    def delete(self, context: CallContext, resource: ManagedResource) -> None: ...


@contextmanager
def store_errors(
    resource_kind: ResourceKind, phase: Phase, privilege: Privilege | None = None
) -> Iterator[None]:
    """Re-raise executor failures as a `ReconcileError` labelled with kind and phase."""
    try:
        yield
    except StoreError as error:
        raise ReconcileError.from_store_error(error, resource_kind, phase, privilege) from error
