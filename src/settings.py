"""Configuration values sourced from environment variables."""

import os
from typing import Final

from src.constants import DEFAULT_CASSANDRA_PORT

CASSANDRA_ENDPOINT: Final[str] = os.getenv(key="CASSANDRA_ENDPOINT", default="localhost")
CASSANDRA_PORT: Final[str] = os.getenv(key="CASSANDRA_PORT", default=str(DEFAULT_CASSANDRA_PORT))
CASSANDRA_USERNAME: Final[str] = os.getenv(key="CASSANDRA_USERNAME", default="")
CASSANDRA_PASSWORD: Final[str] = os.getenv(key="CASSANDRA_PASSWORD", default="")
CASSANDRA_CONSISTENCY: Final[str] = os.getenv(key="CASSANDRA_CONSISTENCY", default="ALL").upper()
CASSANDRA_CONNECT_TIMEOUT: Final[float] = float(
    os.getenv(key="CASSANDRA_CONNECT_TIMEOUT", default="10")
)
CASSANDRA_REQUEST_TIMEOUT: Final[float] = float(
    os.getenv(key="CASSANDRA_REQUEST_TIMEOUT", default="30")
)
LOG_LEVEL: Final[str] = os.getenv(key="LOG_LEVEL", default="INFO")
LOGGER_NAME: Final[str] = os.getenv(key="LOGGER_NAME", default="cql-engine")
LOG_COLOUR_ENABLED: Final[bool] = bool(
    os.getenv(key="LOG_COLOUR_ENABLED", default="True").upper() == "TRUE"
)
