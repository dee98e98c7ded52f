"""
Observed state and per-operation outcome dataclasses.

These types capture what exists in the cluster *right now* and what a
controller operation produced:
- Observed keyspace/role attributes reuse the desired parameter shapes
  (absent fields mean "could not be determined", never false/zero).
- Observed grant permissions are a frozenset unioned across rows.
- `Observation` is what Observe returns; `Creation` is what Create returns.
- `ConnectionSecret` is emitted by Role creation and handed straight to a secret store.

Notes:
- Dataclasses are frozen; construction sites convert lists to tuples/frozensets.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.cql_engine.desired.models import ManagedResource


@dataclass(frozen=True, slots=True)
class ObservedGrant:
    """Permissions the cluster reports for (role, keyspace resource)."""

    role: str
    resource: str
    permissions: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class Observation:
    """
    Result of observing one managed resource.

    Fields
    ------
    exists : bool
        Whether the remote object exists.
    up_to_date : bool
        Whether observed attributes satisfy the desired spec.
    late_initialized : bool
        True when `resource` carries desired fields filled from observed values
        that must be persisted back to the desired-state store.
    resource : ManagedResource
        The resource as it should be persisted (late-initialized when flagged).
    """

    exists: bool
    up_to_date: bool
    resource: ManagedResource
    late_initialized: bool = False

    @classmethod
    def absent(cls, resource: ManagedResource) -> Observation:
        return cls(exists=False, up_to_date=False, resource=resource)


@dataclass(frozen=True, slots=True)
class ConnectionSecret:
    """Credentials for a role plus the endpoint it can connect to."""

    username: str
    password: str
    endpoint: str
    port: str

    def as_data(self) -> dict[str, str]:
        """Flat key/value form for secret stores."""
        return {
            "username": self.username,
            "password": self.password,
            "endpoint": self.endpoint,
            "port": self.port,
        }

    def __repr__(self) -> str:
        return (
            f"ConnectionSecret(username={self.username!r}, password='***', "
            f"endpoint={self.endpoint!r}, port={self.port!r})"
        )


@dataclass(frozen=True, slots=True)
class Creation:
    """Result of a Create; only roles emit a connection secret."""

    connection_secret: ConnectionSecret | None = None
