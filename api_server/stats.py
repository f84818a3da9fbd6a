import math
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Mapping, Sequence

WINDOW_CAPACITY = 1000

Number = int | float

# Percentiles
def percentile(values: Sequence[Number], p: float) -> Number:
    """Nearest-rank percentile: pick an existing sample, never interpolate."""
    if not values:
        return 0
    arr = sorted(values)
    n = len(arr)
    idx = max(0, min(n - 1, math.ceil((p / 100) * n) - 1))
    return arr[idx]

def round2(x: float) -> float:
    # half away from zero on the scaled value, not Python's half-to-even
    scaled = abs(x) * 100
    return math.copysign(math.floor(scaled + 0.5), x) / 100

@dataclass(frozen=True)
class EndpointStats:
    request_count: int
    error_count: int
    error_rate: float
    avg_response_time_ms: float
    p50_response_time_ms: Number
    p95_response_time_ms: Number
    p99_response_time_ms: Number

@dataclass(frozen=True)
class Summary:
    total_requests: int
    total_errors: int
    endpoints: Mapping[str, EndpointStats] = field(default_factory=dict)

# Aggregator
class RequestStats:
    """Per-endpoint request/error counters plus the last N latencies (ms).

    One lock guards everything: middleware records from the event loop while
    sync handlers and the metrics endpoint may read from worker threads.
    """

    def __init__(self, capacity: int = WINDOW_CAPACITY):
        self.capacity = capacity
        self._lock = threading.Lock()
        self._request_count: dict[str, int] = {}
        self._error_count: dict[str, int] = {}
        self._windows: dict[str, deque[int]] = {}
        self._total_requests = 0
        self._total_errors = 0

    def record(self, endpoint: str, duration_ms: int, status_code: int) -> None:
        with self._lock:
            if endpoint not in self._request_count:
                self._request_count[endpoint] = 0
                self._error_count[endpoint] = 0
                self._windows[endpoint] = deque(maxlen=self.capacity)

            self._request_count[endpoint] += 1
            self._total_requests += 1

            # deque(maxlen) drops index 0 once full
            self._windows[endpoint].append(duration_ms)

            if status_code >= 400:
                self._error_count[endpoint] += 1
                self._total_errors += 1

    def reset(self) -> None:
        with self._lock:
            self._request_count = {}
            self._error_count = {}
            self._windows = {}
            self._total_requests = 0
            self._total_errors = 0

    def window(self, endpoint: str) -> list[int]:
        with self._lock:
            return list(self._windows.get(endpoint, ()))

    def snapshot(self) -> Summary:
        with self._lock:
            total_requests = self._total_requests
            total_errors = self._total_errors
            raw = [
                (key, count, self._error_count[key], list(self._windows[key]))
                for key, count in self._request_count.items()
            ]

        # sorting happens outside the lock on private copies
        endpoints: dict[str, EndpointStats] = {}
        for key, count, errors, times in raw:
            avg = sum(times) / len(times) if times else 0
            endpoints[key] = EndpointStats(
                request_count=count,
                error_count=errors,
                error_rate=(errors / count) * 100 if count > 0 else 0,
                avg_response_time_ms=round2(avg),
                p50_response_time_ms=percentile(times, 50),
                p95_response_time_ms=percentile(times, 95),
                p99_response_time_ms=percentile(times, 99),
            )
        return Summary(
            total_requests=total_requests,
            total_errors=total_errors,
            endpoints=endpoints,
        )
