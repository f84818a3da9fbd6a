from __future__ import annotations

import threading

from api_server.stats import WINDOW_CAPACITY, RequestStats, Summary, percentile, round2


def test_percentile_empty_is_zero() -> None:
    for p in (50, 95, 99):
        assert percentile([], p) == 0


def test_percentile_single_value() -> None:
    for p in (0.1, 1, 50, 95, 99, 100):
        assert percentile([10], p) == 10


def test_percentile_nearest_rank() -> None:
    values = [1, 2, 3, 4, 5]
    assert percentile(values, 50) == 3
    assert percentile(values, 95) == 5
    assert percentile(values, 99) == 5
    assert percentile(values, 20) == 1
    assert percentile(values, 21) == 2


def test_percentile_clamps_low_rank_and_does_not_mutate() -> None:
    values = [30, 10, 20]
    assert percentile(values, 0) == 10
    assert values == [30, 10, 20]


def test_round2_rounds_half_up() -> None:
    # 0.125 is exact in binary; half-to-even would give 0.12
    assert round2(0.125) == 0.13
    assert round2(1.5) == 1.5
    assert round2(2 / 3) == 0.67
    assert round2(100) == 100


def test_single_record_snapshot() -> None:
    stats = RequestStats()
    stats.record("/a", 100, 200)
    ep = stats.snapshot().endpoints["/a"]
    assert ep.request_count == 1
    assert ep.error_count == 0
    assert ep.error_rate == 0
    assert ep.avg_response_time_ms == 100
    assert ep.p50_response_time_ms == 100
    assert ep.p95_response_time_ms == 100
    assert ep.p99_response_time_ms == 100


def test_window_evicts_oldest_past_capacity() -> None:
    stats = RequestStats()
    for d in range(1, 1002):
        stats.record("/slow", d, 200)
    window = stats.window("/slow")
    assert len(window) == WINDOW_CAPACITY
    assert 1 not in window
    assert window[0] == 2
    assert window[-1] == 1001
    # counters keep counting past the window
    assert stats.snapshot().endpoints["/slow"].request_count == 1001


def test_window_unknown_endpoint_is_empty() -> None:
    assert RequestStats().window("/nope") == []


def test_error_rate() -> None:
    stats = RequestStats()
    stats.record("/bad", 5, 404)
    stats.record("/bad", 5, 500)
    stats.record("/mixed", 5, 200)
    stats.record("/mixed", 5, 399)
    stats.record("/mixed", 5, 400)
    stats.record("/mixed", 5, 201)
    summary = stats.snapshot()
    assert summary.endpoints["/bad"].error_rate == 100
    assert summary.endpoints["/mixed"].error_rate == 25
    assert summary.endpoints["/mixed"].error_count == 1


def test_totals_match_per_endpoint_counts() -> None:
    stats = RequestStats()
    calls = [("/a", 200), ("/b", 500), ("/a", 404), ("/c", 302), ("/b", 200)]
    for endpoint, status in calls:
        stats.record(endpoint, 1, status)
    summary = stats.snapshot()
    assert summary.total_requests == len(calls)
    assert summary.total_errors == 2
    assert summary.total_requests == sum(e.request_count for e in summary.endpoints.values())
    assert summary.total_errors == sum(e.error_count for e in summary.endpoints.values())
    assert sorted(summary.endpoints) == ["/a", "/b", "/c"]


def test_snapshot_averages_and_percentiles() -> None:
    stats = RequestStats()
    for d in (10, 20, 30, 41):
        stats.record("/x", d, 200)
    ep = stats.snapshot().endpoints["/x"]
    assert ep.avg_response_time_ms == 25.25
    assert ep.p50_response_time_ms == 20
    assert ep.p95_response_time_ms == 41
    assert ep.p99_response_time_ms == 41


def test_reset_clears_everything() -> None:
    stats = RequestStats()
    stats.record("/a", 10, 500)
    stats.record("/b", 20, 200)
    stats.reset()
    assert stats.snapshot() == Summary(total_requests=0, total_errors=0, endpoints={})
    assert stats.window("/a") == []


def test_concurrent_records_are_not_lost() -> None:
    stats = RequestStats()
    n = 500

    def worker(endpoint: str) -> None:
        for i in range(n):
            stats.record(endpoint, i, 500 if i % 5 == 0 else 200)

    threads = [threading.Thread(target=worker, args=(f"/t{k % 2}",)) for k in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    summary = stats.snapshot()
    assert summary.total_requests == 4 * n
    assert summary.total_errors == 4 * (n // 5)
    assert summary.endpoints["/t0"].request_count == 2 * n
    assert len(stats.window("/t0")) == WINDOW_CAPACITY
