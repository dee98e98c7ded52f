"""Connection descriptor for the target cluster."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from src import settings
from src.constants import DEFAULT_CASSANDRA_PORT
from src.cql_engine.errors import ConfigurationError


def parse_port(port: str | int | None) -> int:
    """Port as an int; blank or invalid values fall back to the native-protocol default."""
    try:
        return int(str(port).strip())
    except (TypeError, ValueError):
        return DEFAULT_CASSANDRA_PORT


@dataclass(frozen=True)
class ConnectionDescriptor:
    """Where and as whom to connect. `port` is kept as given so secrets echo it verbatim."""

    endpoint: str
    port: str
    username: str
    password: str

    def __post_init__(self) -> None:
        if not self.endpoint or not self.endpoint.strip():
            raise ConfigurationError("Missing configuration for: endpoint")

    @property
    def port_number(self) -> int:
        return parse_port(self.port)

    @classmethod
    def from_credentials(cls, credentials: Mapping[str, object]) -> ConnectionDescriptor:
        """Build from a secret-shaped mapping with username/password/endpoint/port keys."""

        def text(key: str) -> str:
            value = credentials.get(key)
            if isinstance(value, bytes):
                return value.decode("utf-8")
            return "" if value is None else str(value)

        return cls(
            endpoint=text("endpoint"),
            port=text("port"),
            username=text("username"),
            password=text("password"),
        )

    @classmethod
    def from_settings(cls) -> ConnectionDescriptor:
        return cls(
            endpoint=settings.CASSANDRA_ENDPOINT,
            port=settings.CASSANDRA_PORT,
            username=settings.CASSANDRA_USERNAME,
            password=settings.CASSANDRA_PASSWORD,
        )

    def __repr__(self) -> str:
        return (
            f"ConnectionDescriptor(endpoint={self.endpoint!r}, port={self.port!r}, "
            f"username={self.username!r}, password='***')"
        )
