"""
CQL string builders for keyspace, role and permission operations.

All functions return fully-formed statements. Identifiers are double-quoted via
`quote_identifier`; values compared in WHERE clauses are left as ``?`` markers
and bound by the executor.

Design guarantees
- Deterministic, side-effect free string generation.
- Proper identifier quoting and CQL literal escaping.
- No business rules: controllers decide defaults and policy.
"""

from __future__ import annotations

from src.constants import KEYSPACES_TABLE_NAME, ROLE_PERMISSIONS_TABLE_NAME, ROLES_TABLE_NAME
from src.cql_engine.identifiers import escape_cql_literal, format_bool, quote_identifier


# ----- keyspaces -----


def cql_select_keyspace() -> str:
    """Replication map and durable_writes for one keyspace (bind: keyspace_name)."""
    return (
        f"SELECT replication, durable_writes FROM {KEYSPACES_TABLE_NAME} "
        "WHERE keyspace_name = ?"
    )


def cql_create_keyspace(
    keyspace_name: str, strategy: str, replication_factor: int, durable_writes: bool
) -> str:
    """CREATE KEYSPACE IF NOT EXISTS ... WITH replication = {...} AND durable_writes = ..."""
    return (
        f"CREATE KEYSPACE IF NOT EXISTS {quote_identifier(keyspace_name)} "
        f"WITH replication = {{'class': '{escape_cql_literal(strategy)}', "
        f"'replication_factor': {int(replication_factor)}}} "
        f"AND durable_writes = {format_bool(durable_writes)}"
    )


def cql_drop_keyspace(keyspace_name: str) -> str:
    """DROP KEYSPACE IF EXISTS ..."""
    return f"DROP KEYSPACE IF EXISTS {quote_identifier(keyspace_name)}"


# ----- roles -----


def cql_select_role() -> str:
    """Superuser and login flags for one role (bind: role)."""
    return f"SELECT is_superuser, can_login FROM {ROLES_TABLE_NAME} WHERE role = ?"


def cql_create_role(role_name: str, superuser: bool, login: bool, password: str) -> str:
    """CREATE ROLE IF NOT EXISTS ... WITH SUPERUSER = ... AND LOGIN = ... AND PASSWORD = '...'"""
    return (
        f"CREATE ROLE IF NOT EXISTS {quote_identifier(role_name)} "
        f"WITH SUPERUSER = {format_bool(superuser)} AND LOGIN = {format_bool(login)} "
        f"AND PASSWORD = '{escape_cql_literal(password)}'"
    )


def cql_alter_role(role_name: str, superuser: bool, login: bool) -> str:
    """ALTER ROLE ... WITH SUPERUSER = ... AND LOGIN = ... (password untouched)."""
    return (
        f"ALTER ROLE {quote_identifier(role_name)} "
        f"WITH SUPERUSER = {format_bool(superuser)} AND LOGIN = {format_bool(login)}"
    )


def cql_drop_role(role_name: str) -> str:
    """DROP ROLE IF EXISTS ..."""
    return f"DROP ROLE IF EXISTS {quote_identifier(role_name)}"


# ----- permissions -----


def cql_select_role_permissions() -> str:
    """Permission sets for a role on a resource (bind: role, resource)."""
    return (
        f"SELECT permissions FROM {ROLE_PERMISSIONS_TABLE_NAME} "
        "WHERE role = ? AND resource = ?"
    )


def cql_grant_on_keyspace(permission: str, keyspace_name: str, role_name: str) -> str:
    """GRANT <permission> ON KEYSPACE ... TO ..."""
    return (
        f"GRANT {permission} ON KEYSPACE {quote_identifier(keyspace_name)} "
        f"TO {quote_identifier(role_name)}"
    )


def cql_revoke_on_keyspace(permission: str, keyspace_name: str, role_name: str) -> str:
    """REVOKE <permission> ON KEYSPACE ... FROM ..."""
    return (
        f"REVOKE {permission} ON KEYSPACE {quote_identifier(keyspace_name)} "
        f"FROM {quote_identifier(role_name)}"
    )
