import logging

import pytest

from src.cql_engine.execute.cassandra_executor import CassandraExecutor
from src.cql_engine.execute.connection import ConnectionDescriptor

# Names of fixture that require a Cassandra cluster to be reachable
_CASSANDRA_FIXTURE_NAME = "cassandra_executor_fixture"


def quiet_driver() -> None:
    """Turn down driver logging during the test context."""
    logging.getLogger("cassandra").setLevel(logging.WARN)


@pytest.fixture(scope="session")
def cassandra_executor_fixture():
    quiet_driver()

    # CASSANDRA_ENDPOINT / CASSANDRA_PORT / CASSANDRA_USERNAME / CASSANDRA_PASSWORD
    executor = CassandraExecutor(
        ConnectionDescriptor.from_settings(),
        # a single local node cannot satisfy ALL across replicas it does not have
        consistency="ONE",
        connect_timeout=5,
        request_timeout=10,
    )
    if executor.connect_error is not None:
        pytest.fail(f"Cannot reach the test cluster: {executor.connect_error}")

    yield executor

    executor.close()


def _mark_tests_using_cassandra_fixture(tests: list[pytest.Function]) -> None:
    """
    Adds the `requires_cassandra` marker to tests that are using the fixture that
    requires a live cluster.

    :param tests: list of tests collected by `pytest`
    """
    for test in tests:
        if _CASSANDRA_FIXTURE_NAME in getattr(test, "fixturenames", ()):
            test.add_marker(pytest.mark.requires_cassandra)


def _skip_cassandra_tests(test: pytest.Function) -> None:
    """
    Tell `pytest` to skip tests that require a Cassandra cluster.

    If the config argument `--include-cassandra-tests` is present, this shouldn't be
    invoked.

    :param test: test collected by `pytest`
    """

    requires_cassandra_markers = list(test.iter_markers(name="requires_cassandra"))

    if requires_cassandra_markers:
        pytest.skip("Skipped tests that require a Cassandra cluster")


def pytest_addoption(parser: pytest.Parser):
    parser.addoption(
        "--include-cassandra-tests",
        action="store_true",
        default=False,
        help="Run tests against a live Cassandra cluster",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]):
    if not config.getoption("--include-cassandra-tests"):
        _mark_tests_using_cassandra_fixture(tests=items)


def pytest_runtest_setup(item: pytest.Item):
    if not item.config.getoption("--include-cassandra-tests"):
        _skip_cassandra_tests(test=item)
