"""Enumerations used throughout the convergence engine."""

from enum import StrEnum


class ResourceKind(StrEnum):
    """Kind of managed resource in the target cluster."""

    KEYSPACE = "Keyspace"
    ROLE = "Role"
    GRANT = "Grant"


class ReplicationStrategy(StrEnum):
    """Keyspace replication strategy class (short form)."""

    SIMPLE = "SimpleStrategy"
    NETWORK_TOPOLOGY = "NetworkTopologyStrategy"


class Privilege(StrEnum):
    """Privilege that can be granted on a keyspace."""

    ALL_PERMISSIONS = "ALL_PERMISSIONS"
    ALTER = "ALTER"
    AUTHORIZE = "AUTHORIZE"
    CREATE = "CREATE"
    DESCRIBE = "DESCRIBE"
    DROP = "DROP"
    EXECUTE = "EXECUTE"
    MODIFY = "MODIFY"
    SELECT = "SELECT"

    @property
    def permission(self) -> str:
        """Permission name as the cluster spells it (underscores become spaces)."""
        return self.value.replace("_", " ")


class Phase(StrEnum):
    """Phase of a reconciliation pass."""

    CONNECT = "connect"
    OBSERVE = "observe"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RECORD = "record"
