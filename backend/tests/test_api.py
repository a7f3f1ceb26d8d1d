import json
from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from ingest_api.exceptions import StoreError
from ingest_api.models import SENTINEL_VALUE, Partition, SensorReading
from ingest_api.services import MemoryReadingStore

OUTDOOR_FIELDS = ("temperature", "humidity", "pressure", "light")


def _post(client: TestClient, path: str, body) -> object:
    raw = body if isinstance(body, bytes) else json.dumps(body).encode()
    return client.post(path, content=raw, headers={"Content-Type": "application/json"})


class FailingStore(MemoryReadingStore):
    """Connects fine, then fails every write."""

    def __init__(self) -> None:
        super().__init__()
        self.append_calls = 0

    async def append(self, reading: SensorReading) -> SensorReading:
        self.append_calls += 1
        raise StoreError("disk on fire")


def test_root_and_health(client: TestClient) -> None:
    assert client.get("/").json()["endpoints"]["upload"]["indoor"] == "POST /upload/indoor"

    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["store_backend"] == "memory"
    assert health["mandatory_field_policy"] == "fallback"


def test_indoor_upload_shows_up_in_latest(client: TestClient) -> None:
    response = _post(client, "/upload/indoor", {"co2": 412})

    assert response.status_code == 200
    assert response.json() == {"message": "Data saved successfully", "partition": "indoor"}

    latest = client.get("/data/latest").json()
    assert latest["indoor"]["co2"] == 412
    assert latest["indoor"]["partition"] == "indoor"
    assert latest["outdoor"] is None


@pytest.mark.parametrize(
    "omitted",
    [(), ("temperature",), ("humidity", "light"), ("temperature", "humidity", "pressure", "light")],
)
def test_outdoor_omitted_fields_are_stored_as_sentinel(client: TestClient, omitted: tuple[str, ...]) -> None:
    supplied = {"temperature": 21.5, "humidity": 48, "pressure": 1012.3, "light": 250}
    body = {name: value for name, value in supplied.items() if name not in omitted}
    body["co2"] = 455

    assert _post(client, "/upload/outdoor", body).status_code == 200

    outdoor = client.get("/data/latest").json()["outdoor"]
    for name in OUTDOOR_FIELDS:
        expected = SENTINEL_VALUE if name in omitted else supplied[name]
        assert outdoor[name] == expected
    assert outdoor["co2"] == 455


def test_non_numeric_co2_is_rejected_and_not_stored(client: TestClient) -> None:
    for path in ("/upload/indoor", "/upload/outdoor"):
        response = _post(client, path, {"co2": "abc", "temperature": 20})

        assert response.status_code == 400
        assert response.json()["field"] == "co2"
        assert "error" in response.json()

    assert client.get("/data/history").json() == []


def test_missing_co2_is_accepted_with_sentinel_by_default(client: TestClient) -> None:
    assert _post(client, "/upload/indoor", {}).status_code == 200
    assert client.get("/data/latest").json()["indoor"]["co2"] == SENTINEL_VALUE


def test_missing_co2_is_rejected_when_strict(strict_client: TestClient) -> None:
    response = _post(strict_client, "/upload/indoor", {"temperature": 20})

    assert response.status_code == 400
    assert response.json()["field"] == "co2"
    assert strict_client.get("/data/latest").json()["indoor"] is None


def test_malformed_json_returns_plain_text_diagnostic(client: TestClient) -> None:
    response = _post(client, "/upload/indoor", b"{co2: 5\x00")

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("text/plain")
    assert "Invalid JSON" in response.text
    assert "{co2: 5" in response.text
    assert "\x00" not in response.text
    assert client.get("/data/history").json() == []


def test_diagnostic_echo_can_be_turned_off(make_client: Callable[..., TestClient]) -> None:
    client = make_client(debug_echo_payloads=False)
    response = _post(client, "/upload/indoor", b'{"token": "s3cret"')

    assert response.status_code == 400
    assert "s3cret" not in response.text


def test_embedded_null_byte_is_sanitized_and_accepted(client: TestClient) -> None:
    response = _post(client, "/upload/indoor", b'{"co2":5\x00}')

    assert response.status_code == 200
    assert client.get("/data/latest").json()["indoor"]["co2"] == 5


def test_latest_is_idempotent_without_writes(client: TestClient) -> None:
    _post(client, "/upload/outdoor", {"co2": 430, "temperature": 19})
    _post(client, "/upload/indoor", {"co2": 610})

    first = client.get("/data/latest")
    second = client.get("/data/latest")
    assert first.status_code == 200
    assert first.json() == second.json()


def test_history_keeps_partition_blocks(client: TestClient) -> None:
    # t1 < t4 < t2 < t5 < t3
    _post(client, "/upload/outdoor", {"co2": 1})
    _post(client, "/upload/indoor", {"co2": 4})
    _post(client, "/upload/outdoor", {"co2": 2})
    _post(client, "/upload/indoor", {"co2": 5})
    _post(client, "/upload/outdoor", {"co2": 3})

    history = client.get("/data/history").json()
    assert [(e["partition"], e["co2"]) for e in history] == [
        ("outdoor", 3),
        ("outdoor", 2),
        ("outdoor", 1),
        ("indoor", 5),
        ("indoor", 4),
    ]
    assert all("timestamp" in entry for entry in history)


def test_history_caps_at_twenty_per_partition(client: TestClient) -> None:
    for i in range(25):
        _post(client, "/upload/outdoor", {"co2": i})
        _post(client, "/upload/indoor", {"co2": i})

    history = client.get("/data/history").json()
    assert len(history) == 40
    assert history[0]["co2"] == 24
    assert history[20]["partition"] == Partition.INDOOR.value


def test_device_supplied_time_is_display_only(client: TestClient) -> None:
    _post(client, "/upload/indoor", {"co2": 400, "timestamp": "1999-01-01T00:00:00Z", "deviceId": "esp8266"})
    _post(client, "/upload/indoor", {"co2": 401})

    latest = client.get("/data/latest").json()["indoor"]
    assert latest["co2"] == 401

    older = client.get("/data/history").json()[1]
    assert older["device_timestamp"] == "1999-01-01T00:00:00Z"
    assert older["device_id"] == "esp8266"
    assert older["timestamp"] != older["device_timestamp"]


def test_store_failure_returns_500_without_retry(make_client: Callable[..., TestClient]) -> None:
    store = FailingStore()
    client = make_client(store=store)

    response = _post(client, "/upload/indoor", {"co2": 400})

    assert response.status_code == 500
    assert response.json() == {"error": "Storage backend error"}
    assert store.append_calls == 1


def test_deeply_nested_body_returns_400(client: TestClient) -> None:
    body = b'{"co2":' + b"[" * 200000 + b"]" * 200000 + b"}"

    response = _post(client, "/upload/indoor", body)

    assert response.status_code == 400
    assert response.text.startswith("Invalid JSON: JSON nested too deeply")
    assert client.get("/data/history").json() == []


def test_underscored_co2_is_rejected(client: TestClient) -> None:
    response = _post(client, "/upload/indoor", {"co2": "1_000"})

    assert response.status_code == 400
    assert response.json()["field"] == "co2"
    assert client.get("/data/latest").json()["indoor"] is None
