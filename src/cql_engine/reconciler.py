"""
Single-pass reconciliation for one managed resource.

Flow (one pass):
  1) Check the resource kind against the kind this reconciler was built for.
  2) Default and persist the external name if it was never set.
  3) Connect: build a fresh executor for this pass (closed at the end).
  4) Observe; persist late-initialized desired fields.
  5) Act: delete, create (publishing any connection secret), update, or nothing.
  6) Write the resulting status back.

Design goals:
- No CQL here; the per-kind controller does all statement work.
- Failures are scoped to the pass: a `ReconcileError` ends up in the status and
  the returned `PassResult`, never propagates, and is never retried here.
- A record store that cannot be written fails the pass the same way; a status
  that cannot be written is only logged.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from src.cql_engine.controllers.base import ExternalClient
from src.cql_engine.controllers.registry import controller_factory_for
from src.cql_engine.desired.models import ManagedResource
from src.cql_engine.errors import (
    ConfigurationError,
    ErrorKind,
    ReconcileError,
    RecordStoreError,
    StoreError,
)
from src.cql_engine.execute.passwords import generate_password
from src.cql_engine.execute.ports import CallContext, PasswordGenerator, StoreExecutor
from src.cql_engine.state.ports import ResourceStatus, ResourceStore, SecretStore
from src.cql_engine.state.states import ConnectionSecret, Observation
from src.enums import Phase, ResourceKind
from src.logger import get_logger

LOGGER = get_logger("reconciler")

Connector = Callable[[], StoreExecutor]


class PassOutcome(StrEnum):
    UP_TO_DATE = "up_to_date"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    ABSENT = "absent"  # deletion requested and nothing left to delete
    FAILED = "failed"


@dataclass(frozen=True)
class PassResult:
    """Outcome of one pass for one resource."""

    resource: ManagedResource
    outcome: PassOutcome
    error: ReconcileError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not PassOutcome.FAILED


class Reconciler:
    """
    Drive one resource kind toward its desired state, one pass at a time.

    The controller implementation is resolved once, here, from `kind`.
    Instances hold no per-resource state and may be shared across threads as
    long as the injected stores are thread-safe.
    """

    def __init__(
        self,
        kind: ResourceKind,
        connector: Connector,
        resource_store: ResourceStore,
        secret_store: SecretStore,
        password_generator: PasswordGenerator = generate_password,
    ) -> None:
        self.kind = kind
        self._new_controller = controller_factory_for(kind, password_generator)
        self._connector = connector
        self._resources = resource_store
        self._secrets = secret_store

    # ----- public API -----

    def reconcile(
        self, resource: ManagedResource, context: CallContext | None = None
    ) -> PassResult:
        """Run one pass for `resource` and return its outcome."""
        context = context or CallContext()

        if resource.kind is not self.kind:
            error = ReconcileError(
                ErrorKind.INVALID_RESOURCE,
                self.kind,
                Phase.CONNECT,
                f"managed resource {resource.name!r} is a {resource.kind}, not a {self.kind}",
            )
            return self._fail(resource, error, ready=False)

        try:
            resource = self._ensure_external_name(resource)
        except ReconcileError as error:
            return self._fail(resource, error, ready=False)

        try:
            executor = self._connector()
        except (StoreError, ConfigurationError) as error:
            failure = ReconcileError(ErrorKind.CONNECTION, self.kind, Phase.CONNECT, str(error))
            return self._fail(resource, failure, ready=False)

        try:
            return self._converge(context, self._new_controller(executor), resource)
        finally:
            executor.close()

    # ----- steps -----

    def _ensure_external_name(self, resource: ManagedResource) -> ManagedResource:
        named = resource.with_default_external_name()
        if named is not resource:
            self._record_spec(named)
        return named

    def _converge(
        self, context: CallContext, controller: ExternalClient, resource: ManagedResource
    ) -> PassResult:
        try:
            observation = controller.observe(context, resource)
        except ReconcileError as error:
            return self._fail(resource, error, ready=False)

        resource = observation.resource
        try:
            if observation.late_initialized and not resource.deletion_requested:
                self._record_spec(resource)
                LOGGER.info("%s %s: late-initialized desired state", self.kind, resource.name)
            outcome = self._act(context, controller, resource, observation)
        except ReconcileError as error:
            return self._fail(resource, error, ready=observation.exists)

        ready = observation.exists and outcome in (PassOutcome.UP_TO_DATE, PassOutcome.UPDATED)
        failure = self._record_status(resource, ResourceStatus(ready=ready, synced=True))
        if failure is not None:
            return PassResult(resource=resource, outcome=PassOutcome.FAILED, error=failure)
        LOGGER.info("%s %s: %s ✓", self.kind, resource.name, outcome)
        return PassResult(resource=resource, outcome=outcome)

    def _act(
        self,
        context: CallContext,
        controller: ExternalClient,
        resource: ManagedResource,
        observation: Observation,
    ) -> PassOutcome:
        if resource.deletion_requested:
            if not observation.exists:
                return PassOutcome.ABSENT
            controller.delete(context, resource)
            return PassOutcome.DELETED

        if not observation.exists:
            creation = controller.create(context, resource)
            if creation.connection_secret is not None:
                self._publish(resource, creation.connection_secret)
            return PassOutcome.CREATED

        if not observation.up_to_date:
            controller.update(context, resource)
            return PassOutcome.UPDATED

        return PassOutcome.UP_TO_DATE

    def _publish(self, resource: ManagedResource, secret: ConnectionSecret) -> None:
        if not resource.connection_secret_name:
            LOGGER.warning(
                "%s %s: no connection secret target; generated credentials were discarded",
                self.kind,
                resource.name,
            )
            return
        try:
            self._secrets.publish(resource, secret)
        except OSError as error:
            raise ReconcileError(
                ErrorKind.SECRET,
                self.kind,
                Phase.CREATE,
                f"cannot publish connection secret {resource.connection_secret_name!r}: {error}",
            ) from error

    def _fail(self, resource: ManagedResource, error: ReconcileError, *, ready: bool) -> PassResult:
        LOGGER.error("%s %s ✗ (%s)", self.kind, resource.name, error)
        self._record_status(resource, ResourceStatus(ready=ready, synced=False, message=str(error)))
        return PassResult(resource=resource, outcome=PassOutcome.FAILED, error=error)

    # ----- record store -----

    def _record_spec(self, resource: ManagedResource) -> None:
        try:
            self._resources.update_spec(resource)
        except RecordStoreError as error:
            raise ReconcileError(
                ErrorKind.RECORD, self.kind, Phase.RECORD, f"cannot write desired state: {error}"
            ) from error

    def _record_status(
        self, resource: ManagedResource, status: ResourceStatus
    ) -> ReconcileError | None:
        try:
            self._resources.update_status(resource, status)
        except RecordStoreError as error:
            failure = ReconcileError(
                ErrorKind.RECORD, self.kind, Phase.RECORD, f"cannot write status: {error}"
            )
            LOGGER.error("%s %s ✗ (%s)", self.kind, resource.name, failure)
            return failure
        return None
