from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tracks_api.main import app
from tracks_api.metrics import metrics

client = TestClient(app)
FPT_CONTEXT = {
    "current_product": "actions",
    "current_version": "free-pro-team@latest",
    "current_language": "en",
}


@pytest.fixture(autouse=True)
def reset_runtime_state(repo_site_config) -> None:
    metrics.reset()


def test_health() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_resolve_returns_featured_and_listed_tracks() -> None:
    response = client.post(
        "/v1/learning-tracks/resolve",
        json={"track_names": ["getting_started", "continuous_integration"], "context": FPT_CONTEXT},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["featured_track"]["track_name"] == "getting_started"
    assert payload["featured_track"]["track_product"] == "actions"
    assert [track["track_name"] for track in payload["learning_tracks"]] == [
        "continuous_integration"
    ]


def test_resolve_without_product_is_configuration_error() -> None:
    context = {key: value for key, value in FPT_CONTEXT.items() if key != "current_product"}
    response = client.post(
        "/v1/learning-tracks/resolve",
        json={"track_names": ["getting_started"], "context": context},
    )
    assert response.status_code == 400
    payload = response.json()
    assert payload["error_code"] == "TRACKS_CONFIGURATION_ERROR"
    assert payload["request_id"] == response.headers["X-Request-ID"]


def test_resolve_dotted_track_name_is_configuration_error() -> None:
    response = client.post(
        "/v1/learning-tracks/resolve",
        json={"track_names": ["getting.started"], "context": FPT_CONTEXT},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "TRACKS_CONFIGURATION_ERROR"


def test_resolve_unknown_track_is_404() -> None:
    response = client.post(
        "/v1/learning-tracks/resolve",
        json={"track_names": ["nonexistent"], "context": FPT_CONTEXT},
    )
    assert response.status_code == 404
    assert response.json()["error_code"] == "TRACKS_NOT_FOUND"


def test_invalid_payload_is_400() -> None:
    response = client.post(
        "/v1/learning-tracks/resolve",
        json={"track_names": "getting_started", "context": FPT_CONTEXT},
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "HTTP_400"


def test_request_id_is_echoed_when_valid() -> None:
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health", headers={"X-Request-ID": "not valid!"})
    assert generated.headers["X-Request-ID"] != "not valid!"


def test_metrics_count_resolutions_and_errors() -> None:
    client.post(
        "/v1/learning-tracks/resolve",
        json={
            "track_names": ["getting_started", "continuous_integration", "adopting_oidc"],
            "context": FPT_CONTEXT,
        },
    )
    client.post(
        "/v1/learning-tracks/resolve",
        json={"track_names": ["nonexistent"], "context": FPT_CONTEXT},
    )

    payload = client.get("/metrics").json()
    assert payload["resolution_counts"] == {"featured": 1, "listed": 2}
    assert payload["error_counts"] == {"TRACKS_NOT_FOUND": 1}
    assert payload["http_status_counts"]["200"] == 1
    assert payload["http_status_counts"]["404"] == 1

    prometheus = client.get("/metrics/prometheus")
    assert prometheus.status_code == 200
    assert "tracks_resolved_total" in prometheus.text
