from __future__ import annotations

from tracks_api.metrics import InMemoryMetrics


def test_snapshot_counts_resolutions_and_errors() -> None:
    store = InMemoryMetrics()
    store.record_http_status(200)
    store.record_resolution(featured=True, listed=3)
    store.record_resolution(featured=False, listed=0)
    store.record_error("TRACKS_NOT_FOUND")

    assert store.snapshot() == {
        "http_status_counts": {"200": 1},
        "resolution_counts": {"featured": 1, "listed": 3},
        "error_counts": {"TRACKS_NOT_FOUND": 1},
    }
    text = store.prometheus_text()
    assert 'tracks_resolved_total{outcome="listed"} 3.0' in text
    assert 'tracks_resolution_error_total{error_code="TRACKS_NOT_FOUND"} 1.0' in text


def test_reset_clears_prometheus_counters_too() -> None:
    store = InMemoryMetrics()
    store.record_http_status(404)
    store.record_resolution(featured=True, listed=2)
    store.record_error("TRACKS_NOT_FOUND")

    store.reset()

    assert store.snapshot() == {
        "http_status_counts": {},
        "resolution_counts": {},
        "error_counts": {},
    }
    text = store.prometheus_text()
    assert 'status_code="404"' not in text
    assert 'outcome="featured"' not in text
    assert 'error_code="TRACKS_NOT_FOUND"' not in text

    store.record_resolution(featured=True, listed=0)
    assert 'tracks_resolved_total{outcome="featured"} 1.0' in store.prometheus_text()
