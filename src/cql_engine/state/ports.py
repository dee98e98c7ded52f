"""Ports for the external record stores a reconciliation pass writes back to.

Defines:
- ResourceStatus: observed status written after every pass
- ResourceStore: persistence of desired-state records (late-init, external name) and status
- SecretStore: destination for credentials generated on role creation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.cql_engine.desired.models import ManagedResource
from src.cql_engine.state.states import ConnectionSecret


@dataclass(frozen=True, slots=True)
class ResourceStatus:
    """
    Status of a resource after one pass.

    ready   : the remote object was observed to exist (Available)
    synced  : the pass completed without error
    message : empty on success; the error text otherwise
    """

    ready: bool
    synced: bool
    message: str = ""


class ResourceStore(Protocol):
    """Port for the store holding desired-state records. Write failures raise `RecordStoreError`."""

    def update_spec(self, resource: ManagedResource) -> None: ...

    def update_status(self, resource: ManagedResource, status: ResourceStatus) -> None: ...


class SecretStore(Protocol):
    """Port for publishing a role's connection secret. Takes ownership of the secret."""

    def publish(self, resource: ManagedResource, secret: ConnectionSecret) -> None: ...
