"""
Error types for the convergence engine.

- Executor errors (`StoreError` family) describe what went wrong talking to the cluster.
- `ReconcileError` is what controllers raise: it carries a structured `ErrorKind`,
  the resource kind and the pass phase, so callers never match on message text.

Not-found is not an error anywhere in this package: a missing row means the
resource does not exist.
"""

from __future__ import annotations

from enum import StrEnum

from src.enums import Phase, Privilege, ResourceKind


class ConfigurationError(RuntimeError):
    """Raised when connection configuration values are invalid."""


class StoreError(RuntimeError):
    """Base class for failures reported by a store executor."""


class StoreConnectionError(StoreError):
    """The executor has no usable session (connection failed at construction or was closed)."""


class StatementError(StoreError):
    """The cluster rejected or failed to run a statement."""


class StatementCancelledError(StoreError):
    """The caller's context was cancelled before the statement completed."""


class RecordStoreError(RuntimeError):
    """A desired-state record or its status could not be read back or written."""


class ErrorKind(StrEnum):
    CONNECTION = "connection"
    STATEMENT = "statement"
    PARTIAL = "partial"
    INVALID_RESOURCE = "invalid_resource"
    SECRET = "secret"
    RECORD = "record"


_PHASE_VERBS = {
    Phase.CONNECT: "connect for",
    Phase.OBSERVE: "observe",
    Phase.CREATE: "create",
    Phase.UPDATE: "update",
    Phase.DELETE: "drop",
    Phase.RECORD: "record",
}


class ReconcileError(Exception):
    """
    A failed phase of a single resource's reconciliation pass.

    Attributes
    ----------
    error_kind : ErrorKind
        Taxonomy bucket (connection, statement, partial, ...).
    resource_kind : ResourceKind
        Which controller raised it.
    phase : Phase
        Which operation failed.
    privilege : Privilege | None
        For PARTIAL errors, the privilege whose statement failed.
    """

    def __init__(
        self,
        error_kind: ErrorKind,
        resource_kind: ResourceKind,
        phase: Phase,
        detail: str = "",
        privilege: Privilege | None = None,
    ) -> None:
        self.error_kind = error_kind
        self.resource_kind = resource_kind
        self.phase = phase
        self.detail = detail
        self.privilege = privilege
        super().__init__(self._render())

    @property
    def label(self) -> str:
        """Operation label, e.g. 'cannot observe keyspace'."""
        verb = _PHASE_VERBS[self.phase]
        return f"cannot {verb} {self.resource_kind.value.lower()}"

    def _render(self) -> str:
        parts = [self.label]
        if self.privilege is not None:
            parts.append(f"privilege {self.privilege.permission}")
        if self.detail:
            parts.append(self.detail)
        return ": ".join(parts)

    @classmethod
    def from_store_error(
        cls,
        error: StoreError,
        resource_kind: ResourceKind,
        phase: Phase,
        privilege: Privilege | None = None,
    ) -> ReconcileError:
        """Wrap an executor failure; connectivity is kept distinct from statement failures."""
        if isinstance(error, StoreConnectionError):
            kind = ErrorKind.CONNECTION
        elif privilege is not None:
            kind = ErrorKind.PARTIAL
        else:
            kind = ErrorKind.STATEMENT
        return cls(kind, resource_kind, phase, str(error), privilege=privilege)
