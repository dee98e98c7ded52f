"""
Desired state models for managed resources.

These dataclasses define the *intended* state of keyspaces, roles and grants.
Controllers compare them to what the cluster reports and issue statements.

Conventions and semantics
-------------------------
- Every parameter field is optional (tri-state for booleans):
    None  → unspecified; may be late-initialized from the observed value
    value → managed explicitly
- Models are frozen. Late-initialization returns a new object via `dataclasses.replace`.
- `external_name` is the literal object name in the cluster. It defaults to
  `name` the first time a resource is reconciled and never changes afterwards.
- Grant privileges are a sequence on the wire but a set semantically:
  `permissions` de-duplicates while keeping first-seen order.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Self

from src.enums import Privilege, ResourceKind


@dataclass(frozen=True, slots=True)
class KeyspaceParameters:
    """Configurable fields of a keyspace."""

    replication_class: str | None = None  # ReplicationStrategy value
    replication_factor: int | None = None
    durable_writes: bool | None = None

    def __post_init__(self) -> None:
        if self.replication_factor is not None and self.replication_factor < 1:
            raise ValueError(
                f"replication_factor must be a positive integer, got {self.replication_factor}"
            )


@dataclass(frozen=True, slots=True)
class RoleParameters:
    """Privilege flags of a role."""

    superuser: bool | None = None
    login: bool | None = None


@dataclass(frozen=True, slots=True)
class GrantParameters:
    """
    Privileges granted to a role on a keyspace.

    `role` / `keyspace` are external names in the cluster. They may be filled in
    from `role_ref` / `keyspace_ref` (names of other managed resources) when
    manifests are loaded.
    """

    privileges: tuple[Privilege, ...] = ()
    role: str | None = None
    keyspace: str | None = None
    role_ref: str | None = None
    keyspace_ref: str | None = None

    @property
    def permissions(self) -> tuple[str, ...]:
        """Desired privileges in the cluster's vocabulary, de-duplicated, order kept."""
        return tuple(dict.fromkeys(p.permission for p in self.privileges))

    @property
    def unique_privileges(self) -> tuple[Privilege, ...]:
        return tuple(dict.fromkeys(self.privileges))


Parameters = KeyspaceParameters | RoleParameters | GrantParameters

_PARAMETER_TYPES: dict[ResourceKind, type] = {
    ResourceKind.KEYSPACE: KeyspaceParameters,
    ResourceKind.ROLE: RoleParameters,
    ResourceKind.GRANT: GrantParameters,
}


@dataclass(frozen=True, slots=True)
class ManagedResource:
    """
    A single managed resource record as supplied by the desired-state store.

    Fields
    ------
    kind : ResourceKind
        Which controller owns it.
    name : str
        Record name (unique per kind).
    parameters : Parameters
        Desired state; its type must match `kind`.
    external_name : str | None
        Name in the cluster; None until first assigned.
    connection_secret_name : str | None
        Where a Role's generated credentials are published.
    deletion_requested : bool
        When True, the pass drives the remote object away instead of toward the spec.
    """

    kind: ResourceKind
    name: str
    parameters: Parameters
    external_name: str | None = None
    connection_secret_name: str | None = None
    deletion_requested: bool = False

    def __post_init__(self) -> None:
        expected = _PARAMETER_TYPES[self.kind]
        if not isinstance(self.parameters, expected):
            raise TypeError(
                f"{self.kind} resource {self.name!r} needs {expected.__name__}, "
                f"got {type(self.parameters).__name__}"
            )

    def get_external_name(self) -> str:
        """External name, falling back to the record name."""
        return self.external_name or self.name

    def with_default_external_name(self) -> Self:
        """Assign `name` as the external name if none is set; never changes an existing one."""
        if self.external_name:
            return self
        return replace(self, external_name=self.name)

    def with_parameters(self, parameters: Parameters) -> Self:
        return replace(self, parameters=parameters)
