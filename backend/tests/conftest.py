import os
from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

# Read at import time by ingest_api.main; keep tests off the real sqlite file
os.environ.setdefault("STORE_BACKEND", "memory")

from ingest_api.config import Config  # noqa: E402
from ingest_api.main import create_app  # noqa: E402
from ingest_api.services import MandatoryFieldPolicy, MemoryReadingStore, ReadingStore  # noqa: E402


@pytest.fixture
def make_client() -> Iterator[Callable[..., TestClient]]:
    """Build a started TestClient; extra kwargs become Config fields."""
    clients: list[TestClient] = []

    def _make(store: ReadingStore | None = None, **overrides) -> TestClient:
        config = Config(store_backend="memory", **overrides)
        app = create_app(config=config, store=store or MemoryReadingStore())
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client()


@pytest.fixture
def strict_client(make_client: Callable[..., TestClient]) -> TestClient:
    return make_client(mandatory_field_policy=MandatoryFieldPolicy.STRICT)
