from src.enums import Privilege, ReplicationStrategy, ResourceKind


def test_privilege_permission_uses_cluster_spelling():
    assert Privilege.ALL_PERMISSIONS.permission == "ALL PERMISSIONS"
    assert Privilege.SELECT.permission == "SELECT"


def test_privilege_set_is_closed():
    assert {p.value for p in Privilege} == {
        "ALL_PERMISSIONS",
        "ALTER",
        "AUTHORIZE",
        "CREATE",
        "DESCRIBE",
        "DROP",
        "EXECUTE",
        "MODIFY",
        "SELECT",
    }


def test_str_enums_render_as_values():
    assert str(ReplicationStrategy.NETWORK_TOPOLOGY) == "NetworkTopologyStrategy"
    assert f"{ResourceKind.GRANT}" == "Grant"
