"""
Diff engine: observed snapshot + desired parameters -> up-to-date flag and late-init.

Principles
----------
- Pure functions; no executor access, no logging.
- Absent (None) on either side of a compared field means "not up to date".
- Late-initialization only fills desired fields that are None, and only with
  observed values that are not None. Running it twice is a no-op, so the
  desired state reaches a fixed point after the first persisted pass.
- Grants use an asymmetric policy: desired ⊆ observed is up to date; extra
  observed permissions are tolerated.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import TypeVar

from src.cql_engine.desired.models import KeyspaceParameters, RoleParameters

_P = TypeVar("_P", KeyspaceParameters, RoleParameters)


# ---------- generic field helpers ----------


def _fields_match(observed: _P, desired: _P) -> bool:
    for f in fields(desired):
        observed_value = getattr(observed, f.name)
        desired_value = getattr(desired, f.name)
        if observed_value is None or desired_value is None or observed_value != desired_value:
            return False
    return True


def _late_init(observed: _P, desired: _P) -> tuple[_P, bool]:
    filled = {
        f.name: getattr(observed, f.name)
        for f in fields(desired)
        if getattr(desired, f.name) is None and getattr(observed, f.name) is not None
    }
    if not filled:
        return desired, False
    return replace(desired, **filled), True


# ---------- keyspaces ----------


def keyspace_up_to_date(observed: KeyspaceParameters, desired: KeyspaceParameters) -> bool:
    """Strategy, factor and durable_writes all present and equal."""
    return _fields_match(observed, desired)


def late_init_keyspace(
    observed: KeyspaceParameters, desired: KeyspaceParameters
) -> tuple[KeyspaceParameters, bool]:
    """Return desired with unset fields filled from observed, and whether anything changed."""
    return _late_init(observed, desired)


# ---------- roles ----------


def role_up_to_date(observed: RoleParameters, desired: RoleParameters) -> bool:
    """Superuser and login flags both present and equal."""
    return _fields_match(observed, desired)


def late_init_role(
    observed: RoleParameters, desired: RoleParameters
) -> tuple[RoleParameters, bool]:
    """Return desired with unset flags filled from observed, and whether anything changed."""
    return _late_init(observed, desired)


# ---------- grants ----------


@dataclass(frozen=True, slots=True)
class GrantDiff:
    """Existence and freshness of a grant, plus what is still missing."""

    exists: bool
    up_to_date: bool
    missing: tuple[str, ...]


def diff_grant(observed: frozenset[str], desired: tuple[str, ...]) -> GrantDiff:
    """
    Compare desired permissions (cluster vocabulary) with the observed set.

    exists      : at least one desired permission is observed
    up_to_date  : every desired permission is observed

    A grant whose permissions were all revoked reads as "does not exist", the
    same as one that was never granted.
    """
    missing = tuple(p for p in desired if p not in observed)
    present = len(desired) - len(missing)
    return GrantDiff(exists=present > 0, up_to_date=not missing, missing=missing)
