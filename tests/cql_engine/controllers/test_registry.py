import pytest

from src.cql_engine.controllers.grant import GrantController
from src.cql_engine.controllers.keyspace import KeyspaceController
from src.cql_engine.controllers.registry import controller_factory_for
from src.cql_engine.controllers.role import RoleController
from src.enums import ResourceKind


class NullExecutor:
    pass


@pytest.mark.parametrize(
    "kind,expected",
    [
        (ResourceKind.KEYSPACE, KeyspaceController),
        (ResourceKind.ROLE, RoleController),
        (ResourceKind.GRANT, GrantController),
    ],
)
def test_factory_builds_controller_for_kind(kind, expected):
    controller = controller_factory_for(kind)(NullExecutor())
    assert isinstance(controller, expected)


def test_role_factory_carries_password_generator():
    controller = controller_factory_for(ResourceKind.ROLE, lambda: "fixed")(NullExecutor())
    assert controller._generate_password() == "fixed"


def test_unknown_kind_is_rejected():
    with pytest.raises(ValueError):
        controller_factory_for("Table")  # type: ignore[arg-type]
