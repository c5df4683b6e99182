from __future__ import annotations

from collections.abc import Generator

import pytest

from cardstack.engine import Engine


@pytest.fixture(autouse=True)
def _fresh_engine_singleton() -> Generator[None, None, None]:
    """Every test starts from the default stack, never from a previous test's engine."""

    from cardstack.singleton import reset_engine_for_tests

    reset_engine_for_tests()
    yield
    reset_engine_for_tests()


@pytest.fixture()
def engine() -> Engine:
    return Engine()


@pytest.fixture()
def client_and_redis():
    """Shared fixture for tests that need both a FastAPI TestClient and fakeredis."""

    import fakeredis
    from fastapi.testclient import TestClient

    from cardstack.api.deps import get_redis
    from cardstack.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
