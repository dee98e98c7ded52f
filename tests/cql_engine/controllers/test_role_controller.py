import pytest

from src.cql_engine.controllers.role import RoleController, parse_role_row
from src.cql_engine.desired.models import ManagedResource, RoleParameters
from src.cql_engine.errors import ErrorKind, ReconcileError, StatementError
from src.cql_engine.execute.ports import CallContext, RowCursor
from src.cql_engine.state.states import ConnectionSecret
from src.enums import Phase, ResourceKind


# --- fakes ---

class RecordingExecutor:
    def __init__(self, rows=(), exec_error=None):
        self.rows = list(rows)
        self.exec_error = exec_error
        self.queries = []
        self.statements = []

    def exec(self, context, statement, *params):
        if self.exec_error is not None:
            raise self.exec_error
        self.statements.append(statement)

    def query(self, context, statement, *params):
        self.queries.append((statement, params))
        return RowCursor(self.rows)

    def close(self):
        pass

    def get_connection_details(self, username, password):
        return ConnectionSecret(username, password, "10.0.0.7", "9142")


def make_role(superuser=None, login=None, external_name="alice") -> ManagedResource:
    return ManagedResource(
        kind=ResourceKind.ROLE,
        name="alice",
        parameters=RoleParameters(superuser=superuser, login=login),
        external_name=external_name,
    )


CTX = CallContext()


# --- observe ---

def test_observe_absent_role():
    executor = RecordingExecutor(rows=[])
    observation = RoleController(executor).observe(CTX, make_role())
    assert observation.exists is False
    assert executor.queries[0][1] == ("alice",)


def test_observe_up_to_date_role():
    executor = RecordingExecutor(rows=[{"is_superuser": False, "can_login": True}])
    observation = RoleController(executor).observe(CTX, make_role(superuser=False, login=True))
    assert observation.exists is True
    assert observation.up_to_date is True
    assert observation.late_initialized is False


def test_observe_late_initializes_flags():
    executor = RecordingExecutor(rows=[{"is_superuser": True, "can_login": False}])
    observation = RoleController(executor).observe(CTX, make_role())
    assert observation.late_initialized is True
    assert observation.up_to_date is True
    assert observation.resource.parameters == RoleParameters(superuser=True, login=False)


def test_observe_drifted_flags():
    executor = RecordingExecutor(rows=[{"is_superuser": True, "can_login": True}])
    observation = RoleController(executor).observe(CTX, make_role(superuser=False, login=True))
    assert observation.up_to_date is False


# --- create ---

def test_create_returns_connection_secret_for_generated_password():
    executor = RecordingExecutor()
    controller = RoleController(executor, password_generator=lambda: "p@ss1")

    creation = controller.create(CTX, make_role(login=True))

    assert executor.statements == [
        "CREATE ROLE IF NOT EXISTS \"alice\" WITH SUPERUSER = false AND LOGIN = true "
        "AND PASSWORD = 'p@ss1'"
    ]
    assert creation.connection_secret.as_data() == {
        "username": "alice",
        "password": "p@ss1",
        "endpoint": "10.0.0.7",
        "port": "9142",
    }


def test_create_generator_failure_issues_no_statement():
    def broken():
        raise OSError("entropy source unavailable")

    executor = RecordingExecutor()
    with pytest.raises(ReconcileError) as info:
        RoleController(executor, password_generator=broken).create(CTX, make_role())

    assert info.value.error_kind is ErrorKind.SECRET
    assert info.value.phase is Phase.CREATE
    assert executor.statements == []


def test_create_statement_failure_returns_no_secret():
    executor = RecordingExecutor(exec_error=StatementError("denied"))
    with pytest.raises(ReconcileError) as info:
        RoleController(executor, password_generator=lambda: "pw").create(CTX, make_role())
    assert info.value.error_kind is ErrorKind.STATEMENT
    assert str(info.value) == "cannot create role: denied"


# --- update / delete ---

def test_update_alters_flags_only():
    executor = RecordingExecutor()
    RoleController(executor).update(CTX, make_role(superuser=True, login=False))
    assert executor.statements == ['ALTER ROLE "alice" WITH SUPERUSER = true AND LOGIN = false']


def test_delete_drops_role():
    executor = RecordingExecutor()
    RoleController(executor).delete(CTX, make_role(external_name='weird"name'))
    assert executor.statements == ['DROP ROLE IF EXISTS "weird""name"']


def test_parse_role_row_ignores_non_boolean_values():
    assert parse_role_row({"is_superuser": None, "can_login": "yes"}) == RoleParameters()
    assert parse_role_row({"is_superuser": False, "can_login": True}) == RoleParameters(
        superuser=False, login=True
    )
