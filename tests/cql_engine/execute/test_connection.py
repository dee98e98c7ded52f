import pytest

import src.cql_engine.execute.connection as connection_mod
from src.cql_engine.errors import ConfigurationError
from src.cql_engine.execute.connection import ConnectionDescriptor, parse_port


@pytest.mark.parametrize("raw,expected", [("9142", 9142), (9042, 9042), ("", 9042), (None, 9042), ("x", 9042)])
def test_parse_port_falls_back_to_default(raw, expected):
    assert parse_port(raw) == expected


def test_blank_endpoint_is_rejected():
    with pytest.raises(ConfigurationError):
        ConnectionDescriptor(endpoint="  ", port="9042", username="", password="")


def test_from_credentials_decodes_bytes_and_keeps_port_text():
    descriptor = ConnectionDescriptor.from_credentials(
        {"endpoint": b"10.0.0.1", "port": b"9142", "username": b"admin", "password": "pw"}
    )
    assert descriptor.endpoint == "10.0.0.1"
    assert descriptor.port == "9142"
    assert descriptor.port_number == 9142
    assert descriptor.username == "admin"
    assert descriptor.password == "pw"


def test_from_credentials_without_port_uses_default_port_number():
    descriptor = ConnectionDescriptor.from_credentials({"endpoint": "db"})
    assert descriptor.port == ""
    assert descriptor.port_number == 9042
    assert descriptor.username == ""


def test_from_credentials_without_endpoint_is_rejected():
    with pytest.raises(ConfigurationError):
        ConnectionDescriptor.from_credentials({"username": "admin"})


def test_from_settings(monkeypatch):
    monkeypatch.setattr(connection_mod.settings, "CASSANDRA_ENDPOINT", "cassandra.local")
    monkeypatch.setattr(connection_mod.settings, "CASSANDRA_PORT", "19042")
    monkeypatch.setattr(connection_mod.settings, "CASSANDRA_USERNAME", "admin")
    monkeypatch.setattr(connection_mod.settings, "CASSANDRA_PASSWORD", "pw")

    descriptor = ConnectionDescriptor.from_settings()

    assert descriptor.endpoint == "cassandra.local"
    assert descriptor.port_number == 19042


def test_repr_masks_password():
    descriptor = ConnectionDescriptor(endpoint="db", port="9042", username="admin", password="hunter2")
    assert "hunter2" not in repr(descriptor)
