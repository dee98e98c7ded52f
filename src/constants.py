"""Shared constant values used across the convergence engine."""

from typing import Final

DEFAULT_CASSANDRA_PORT: Final[int] = 9042

DEFAULT_REPLICATION_FACTOR: Final[int] = 1
DEFAULT_DURABLE_WRITES: Final[bool] = True

REPLICATION_CLASS_PREFIX: Final[str] = "org.apache.cassandra.locator."
KEYSPACE_RESOURCE_PREFIX: Final[str] = "data/"

KEYSPACES_TABLE_NAME: Final[str] = "system_schema.keyspaces"
ROLES_TABLE_NAME: Final[str] = "system_auth.roles"
ROLE_PERMISSIONS_TABLE_NAME: Final[str] = "system_auth.role_permissions"

EXTERNAL_NAME_ANNOTATION: Final[str] = "crossplane.io/external-name"
GENERATED_PASSWORD_LENGTH: Final[int] = 27
