"""
Identifier and literal utilities for CQL statements.

This module defines:
- Quoting for identifiers interpolated into statements (keyspace and role names).
- Escaping for single-quoted string literals (passwords).
- Normalizers for values read back from the system tables.

Conventions:
- Verbs: quote_*, escape_*, format_*, parse_*, strip_*.
- Parameterized values (bound with ``?``) are never quoted here.
"""

from __future__ import annotations

from src.constants import KEYSPACE_RESOURCE_PREFIX, REPLICATION_CLASS_PREFIX


def quote_identifier(identifier: str) -> str:
    """Quote a single CQL identifier with double quotes, doubling any embedded double quotes."""
    escaped = str(identifier).replace('"', '""')
    return f'"{escaped}"'


def escape_cql_literal(value: str) -> str:
    """
    Escape a Python string for use as a single-quoted CQL literal.
    Doubles single quotes per CQL rules. Empty/None → empty string.
    """
    return (value or "").replace("'", "''")


def format_bool(value: bool) -> str:
    """CQL boolean literal: ``true`` / ``false``."""
    return "true" if value else "false"


def format_keyspace_resource(keyspace_name: str) -> str:
    """Resource string used by role_permissions for a keyspace: 'data/<keyspace>'."""
    return f"{KEYSPACE_RESOURCE_PREFIX}{keyspace_name}"


def strip_replication_class_prefix(replication_class: str) -> str:
    """
    Collapse a fully qualified strategy class to its short form.

    Examples:
        strip_replication_class_prefix("org.apache.cassandra.locator.SimpleStrategy")
        -> "SimpleStrategy"
    """
    return replication_class.removeprefix(REPLICATION_CLASS_PREFIX)


def parse_replication_factor(raw: object) -> int | None:
    """Parse a replication factor as stored in the replication map; None if unparseable."""
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None
