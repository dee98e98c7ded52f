import pytest
from cassandra import ConsistencyLevel

import src.cql_engine.execute.cassandra_executor as executor_mod
from src.cql_engine.errors import (
    ConfigurationError,
    StatementCancelledError,
    StatementError,
    StoreConnectionError,
)
from src.cql_engine.execute.cassandra_executor import CassandraExecutor
from src.cql_engine.execute.connection import ConnectionDescriptor
from src.cql_engine.execute.ports import CallContext


# --- fakes ---

class FakeFuture:
    def __init__(self, rows=None, error=None, complete=True):
        self.rows = rows or []
        self.error = error
        self.complete = complete

    def add_callbacks(self, callback, errback):
        if not self.complete:
            return
        if self.error is None:
            callback(self.rows)
        else:
            errback(self.error)

    def result(self):
        if self.error is not None:
            raise self.error
        return iter(self.rows)


class FakeSession:
    def __init__(self):
        self.row_factory = None
        self.calls = []
        self.next_future = FakeFuture()

    def execute_async(self, statement, parameters=None, timeout=None):
        self.calls.append((statement, parameters, timeout))
        return self.next_future


class FakeCluster:
    instances = []
    connect_error = None

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.session = FakeSession()
        self.shutdowns = 0
        FakeCluster.instances.append(self)

    def connect(self):
        if FakeCluster.connect_error is not None:
            raise FakeCluster.connect_error
        return self.session

    def shutdown(self):
        self.shutdowns += 1


class FakeAuthProvider:
    def __init__(self, username, password):
        self.username = username
        self.password = password


@pytest.fixture(autouse=True)
def fake_driver(monkeypatch):
    FakeCluster.instances = []
    FakeCluster.connect_error = None
    monkeypatch.setattr(executor_mod, "Cluster", FakeCluster)
    monkeypatch.setattr(executor_mod, "PlainTextAuthProvider", FakeAuthProvider)
    yield


def make_descriptor(username="admin", password="secret"):
    return ConnectionDescriptor(endpoint="10.0.0.1", port="9142", username=username, password=password)


def make_executor(**kwargs) -> CassandraExecutor:
    return CassandraExecutor(make_descriptor(), request_timeout=7, **kwargs)


# --- connect ---

def test_connects_with_auth_and_dict_rows():
    executor = make_executor(connect_timeout=3)
    cluster = FakeCluster.instances[0]

    assert cluster.kwargs["contact_points"] == ["10.0.0.1"]
    assert cluster.kwargs["port"] == 9142
    assert cluster.kwargs["connect_timeout"] == 3
    assert cluster.kwargs["auth_provider"].username == "admin"
    assert cluster.session.row_factory is executor_mod.dict_factory
    assert executor.connect_error is None


def test_no_auth_provider_without_username():
    CassandraExecutor(make_descriptor(username="", password=""))
    assert FakeCluster.instances[0].kwargs["auth_provider"] is None


def test_connect_failure_is_kept_and_every_call_fails():
    FakeCluster.connect_error = RuntimeError("no hosts available")
    executor = make_executor()

    assert isinstance(executor.connect_error, RuntimeError)
    assert FakeCluster.instances[0].shutdowns == 1
    with pytest.raises(StoreConnectionError):
        executor.exec(CallContext(), "DROP ROLE IF EXISTS \"a\"")
    with pytest.raises(StoreConnectionError):
        executor.query(CallContext(), "SELECT 1")


def test_unknown_consistency_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        make_executor(consistency="MOST")


# --- exec / query ---

def test_exec_sends_statement_with_consistency_and_timeout():
    executor = make_executor(consistency="quorum")
    session = FakeCluster.instances[0].session

    executor.exec(CallContext(), 'DROP KEYSPACE IF EXISTS "shop"')

    statement, parameters, timeout = session.calls[0]
    assert statement.query_string == 'DROP KEYSPACE IF EXISTS "shop"'
    assert statement.consistency_level == ConsistencyLevel.QUORUM
    assert parameters is None
    assert timeout == 7


def test_query_binds_params_and_returns_rows():
    executor = make_executor()
    session = FakeCluster.instances[0].session
    session.next_future = FakeFuture(rows=[{"is_superuser": False, "can_login": True}])

    with executor.query(CallContext(timeout=2), "SELECT ... WHERE role = ?", "alice") as cursor:
        row = cursor.first()

    assert row == {"is_superuser": False, "can_login": True}
    assert session.calls[0][1] == ["alice"]
    assert session.calls[0][2] == 2


def test_driver_failure_becomes_statement_error():
    executor = make_executor()
    FakeCluster.instances[0].session.next_future = FakeFuture(error=RuntimeError("syntax error"))

    with pytest.raises(StatementError, match="failed to execute query: syntax error"):
        executor.exec(CallContext(), "GRANT NOTHING")


def test_cancelled_context_fails_before_sending():
    executor = make_executor()
    context = CallContext()
    context.cancel()

    with pytest.raises(StatementCancelledError):
        executor.exec(context, "SELECT 1")
    assert FakeCluster.instances[0].session.calls == []


def test_cancel_while_waiting_abandons_the_call():
    executor = make_executor()
    context = CallContext()
    session = FakeCluster.instances[0].session

    class CancellingFuture(FakeFuture):
        def add_callbacks(self, callback, errback):
            context.cancel()

    session.next_future = CancellingFuture()
    with pytest.raises(StatementCancelledError):
        executor.exec(context, "SELECT 1")


# --- close / details ---

def test_close_is_idempotent():
    executor = make_executor()
    executor.close()
    executor.close()
    assert FakeCluster.instances[0].shutdowns == 1
    with pytest.raises(StoreConnectionError):
        executor.exec(CallContext(), "SELECT 1")


def test_connection_details_echo_descriptor():
    secret = make_executor().get_connection_details("alice", "p@ss1")
    assert secret.as_data() == {
        "username": "alice",
        "password": "p@ss1",
        "endpoint": "10.0.0.1",
        "port": "9142",
    }
