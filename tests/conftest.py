from __future__ import annotations

from pathlib import Path

import pytest

from informix_gateway.bridge.execution_bridge import ExecutionBridge
from informix_gateway.cache.query_cache import QueryCache
from informix_gateway.config.settings import ConnectionDescriptor
from informix_gateway.errors import ExecutionError
from informix_gateway.service.facade import ServiceFacade
from tests.utils.fakes import FakeBridge, FakeClock, FakeProcessRunner


@pytest.fixture
def connection() -> ConnectionDescriptor:
    return ConnectionDescriptor(
        host="db.example.com",
        port=9088,
        database="stores",
        user="informix",
        password="s3cr\"et\\",
        server="ol_informix",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_runner(tmp_path: Path) -> FakeProcessRunner:
    work_dir = tmp_path.joinpath("artifacts")
    work_dir.mkdir()
    return FakeProcessRunner(work_dir)


@pytest.fixture
def bridge(connection, fake_runner) -> ExecutionBridge:
    return ExecutionBridge(connection=connection, runner=fake_runner)


@pytest.fixture
def fake_bridge() -> FakeBridge:
    return FakeBridge()


@pytest.fixture
def cache(clock) -> QueryCache:
    return QueryCache(ttl=1.0, clock=clock)


@pytest.fixture
def service(fake_bridge, cache) -> ServiceFacade:
    return ServiceFacade(bridge=fake_bridge, cache=cache)


@pytest.fixture
def execution_error() -> ExecutionError:
    return ExecutionError("Statement failed: table not found", output="ERROR: table not found")
