import dataclasses

import pytest

from src.cql_engine.desired.models import (
    GrantParameters,
    KeyspaceParameters,
    ManagedResource,
    RoleParameters,
)
from src.enums import Privilege, ResourceKind


def test_keyspace_parameters_reject_non_positive_factor():
    with pytest.raises(ValueError):
        KeyspaceParameters(replication_factor=0)
    assert KeyspaceParameters(replication_factor=1).replication_factor == 1


def test_parameters_are_frozen():
    params = RoleParameters(superuser=False)
    with pytest.raises(dataclasses.FrozenInstanceError):
        params.superuser = True  # type: ignore[misc]


def test_grant_permissions_collapse_duplicates_and_keep_order():
    params = GrantParameters(
        privileges=(Privilege.SELECT, Privilege.ALL_PERMISSIONS, Privilege.SELECT)
    )
    assert params.permissions == ("SELECT", "ALL PERMISSIONS")
    assert params.unique_privileges == (Privilege.SELECT, Privilege.ALL_PERMISSIONS)


def test_managed_resource_rejects_mismatched_parameters():
    with pytest.raises(TypeError):
        ManagedResource(kind=ResourceKind.ROLE, name="alice", parameters=KeyspaceParameters())


def test_external_name_falls_back_to_name():
    resource = ManagedResource(kind=ResourceKind.ROLE, name="alice", parameters=RoleParameters())
    assert resource.get_external_name() == "alice"

    named = resource.with_default_external_name()
    assert named.external_name == "alice"
    assert named is not resource


def test_existing_external_name_is_never_changed():
    resource = ManagedResource(
        kind=ResourceKind.KEYSPACE,
        name="shop",
        parameters=KeyspaceParameters(),
        external_name="shop_prod",
    )
    assert resource.with_default_external_name() is resource
    assert resource.get_external_name() == "shop_prod"


def test_with_parameters_returns_a_copy():
    resource = ManagedResource(kind=ResourceKind.ROLE, name="alice", parameters=RoleParameters())
    updated = resource.with_parameters(RoleParameters(login=True))
    assert updated.parameters.login is True
    assert resource.parameters.login is None
