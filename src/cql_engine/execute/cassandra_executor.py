"""
Store executor backed by the DataStax cassandra-driver.

This module provides a thin, policy-free wrapper over a driver session.
Statements are run with the configured consistency level (ALL by default) and
rows come back as dicts (`dict_factory`).

Design:
- Connecting happens once, in the constructor. A failure is logged once and kept
  on `connect_error`; every later call raises `StoreConnectionError` instead of
  retrying.
- Driver failures surface as `StatementError`; no retries here.
- Cancellation: calls poll the caller's `CallContext` while waiting and give up
  with `StatementCancelledError` once it is cancelled.
"""

from __future__ import annotations

import threading
from typing import Any

from cassandra import ConsistencyLevel
from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster
from cassandra.query import SimpleStatement, dict_factory

from src import settings
from src.cql_engine.errors import (
    ConfigurationError,
    StatementCancelledError,
    StatementError,
    StoreConnectionError,
)
from src.cql_engine.execute.connection import ConnectionDescriptor
from src.cql_engine.execute.ports import CallContext, Row, RowCursor
from src.cql_engine.state.states import ConnectionSecret
from src.logger import get_logger

LOGGER = get_logger("executor")

_CANCEL_POLL_INTERVAL = 0.1


def _consistency_level(name: str) -> int:
    try:
        return ConsistencyLevel.name_to_value[name.upper()]
    except KeyError as error:
        raise ConfigurationError(f"Unknown consistency level: {name!r}") from error


class CassandraExecutor:
    """Execute CQL against one cluster through a single driver session."""

    def __init__(
        self,
        descriptor: ConnectionDescriptor,
        *,
        consistency: str = settings.CASSANDRA_CONSISTENCY,
        connect_timeout: float = settings.CASSANDRA_CONNECT_TIMEOUT,
        request_timeout: float = settings.CASSANDRA_REQUEST_TIMEOUT,
    ) -> None:
        self._descriptor = descriptor
        self._consistency = _consistency_level(consistency)
        self._request_timeout = request_timeout
        self._cluster: Cluster | None = None
        self._session = None
        self.connect_error: Exception | None = None
        self._connect(connect_timeout)

    def _connect(self, connect_timeout: float) -> None:
        auth_provider = None
        if self._descriptor.username:
            auth_provider = PlainTextAuthProvider(
                username=self._descriptor.username, password=self._descriptor.password
            )
        try:
            self._cluster = Cluster(
                contact_points=[self._descriptor.endpoint],
                port=self._descriptor.port_number,
                auth_provider=auth_provider,
                connect_timeout=connect_timeout,
            )
            self._session = self._cluster.connect()
        except Exception as error:  # driver raises NoHostAvailable, AuthenticationFailed, ...
            self.connect_error = error
            LOGGER.warning(
                "Cannot connect to %s:%s (%s)",
                self._descriptor.endpoint,
                self._descriptor.port_number,
                error,
            )
            self.close()
            return
        self._session.row_factory = dict_factory

    # ----- StoreExecutor -----

    def exec(self, context: CallContext, statement: str, *params: Any) -> None:
        """Run a non-query statement."""
        self._run(context, statement, params)

    def query(self, context: CallContext, statement: str, *params: Any) -> RowCursor:
        """Run a query and return a cursor over all of its rows."""
        return RowCursor(self._run(context, statement, params))

    def close(self) -> None:
        """Shut down the cluster connection. Safe to call more than once."""
        cluster, self._cluster, self._session = self._cluster, None, None
        if cluster is not None:
            cluster.shutdown()

    def get_connection_details(self, username: str, password: str) -> ConnectionSecret:
        return ConnectionSecret(
            username=username,
            password=password,
            endpoint=self._descriptor.endpoint,
            port=self._descriptor.port,
        )

    # ----- helpers -----

    def _run(self, context: CallContext, statement: str, params: tuple[Any, ...]) -> list[Row]:
        session = self._session
        if session is None:
            raise StoreConnectionError("cassandra session is not initialized") from self.connect_error
        if context.cancelled:
            raise StatementCancelledError("context cancelled before the statement was issued")

        timeout = context.timeout if context.timeout is not None else self._request_timeout
        cql = SimpleStatement(statement, consistency_level=self._consistency)
        try:
            future = session.execute_async(cql, list(params) or None, timeout=timeout)
        except Exception as error:
            raise StatementError(f"failed to execute query: {error}") from error

        finished = threading.Event()
        future.add_callbacks(lambda _: finished.set(), lambda _: finished.set())
        while not finished.wait(_CANCEL_POLL_INTERVAL):
            if context.cancelled:
                # ResponseFuture has no cancel; the request may still run server-side.
                raise StatementCancelledError("context cancelled while waiting for the statement")

        try:
            return list(future.result())
        except Exception as error:
            raise StatementError(f"failed to execute query: {error}") from error
