"""
Execution ports and call context.

- CallContext: per-pass timeout and cancellation, threaded through every call
- RowCursor: sequential row access over a query result, with close()
- StoreExecutor: protocol for anything that can run CQL (cassandra-driver, fakes, etc.)
- PasswordGenerator: source of unpredictable role passwords
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, Self

from src.cql_engine.state.states import ConnectionSecret

Row = Mapping[str, Any]
PasswordGenerator = Callable[[], str]


@dataclass(frozen=True)
class CallContext:
    """
    Execution context for one reconciliation pass.

    timeout:
        Upper bound in seconds for a single statement; None uses the executor default.
    cancel_event:
        Set by `cancel()`; executors abandon pending calls once it is set.
    """

    timeout: float | None = None
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        self.cancel_event.set()


class RowCursor:
    """Iterate rows once, then close. Usable as a context manager."""

    def __init__(self, rows: Iterable[Row]) -> None:
        self._rows: Iterator[Row] | None = iter(rows)

    def __iter__(self) -> Iterator[Row]:
        return self

    def __next__(self) -> Row:
        if self._rows is None:
            raise StopIteration
        return next(self._rows)

    def first(self) -> Row | None:
        """Next row, or None when the result has no (more) rows."""
        return next(self, None)

    def close(self) -> None:
        self._rows = None

    @property
    def closed(self) -> bool:
        return self._rows is None

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class StoreExecutor(Protocol):
    """Capability boundary to the cluster. All methods raise `StoreError` subclasses."""

    def exec(self, context: CallContext, statement: str, *params: Any) -> None: ...

    def query(self, context: CallContext, statement: str, *params: Any) -> RowCursor: ...

    def close(self) -> None: ...

    def get_connection_details(self, username: str, password: str) -> ConnectionSecret: ...
