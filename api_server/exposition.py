"""Render a stats Summary as Prometheus text or as a JSON-ready dict."""

from decimal import ROUND_HALF_UP, Decimal

from .stats import EndpointStats, Summary

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4"

# (metric name, help text, type, attribute, fixed 2-decimals?)
_ENDPOINT_METRICS: list[tuple[str, str, str, str, bool]] = [
    ("http_requests_by_endpoint", "Total requests per endpoint", "counter", "request_count", False),
    ("http_errors_by_endpoint", "Total errors per endpoint", "counter", "error_count", False),
    ("http_error_rate_by_endpoint", "Error rate per endpoint (percentage)", "gauge", "error_rate", True),
    ("http_response_time_avg_ms", "Average response time in milliseconds", "gauge", "avg_response_time_ms", False),
    ("http_response_time_p50_ms", "P50 response time in milliseconds", "gauge", "p50_response_time_ms", False),
    ("http_response_time_p95_ms", "P95 response time in milliseconds", "gauge", "p95_response_time_ms", False),
    ("http_response_time_p99_ms", "P99 response time in milliseconds", "gauge", "p99_response_time_ms", False),
]

def _endpoint_dict(s: EndpointStats) -> dict[str, float]:
    return {
        "request_count": s.request_count,
        "error_count": s.error_count,
        "error_rate": s.error_rate,
        "avg_response_time_ms": s.avg_response_time_ms,
        "p50_response_time_ms": s.p50_response_time_ms,
        "p95_response_time_ms": s.p95_response_time_ms,
        "p99_response_time_ms": s.p99_response_time_ms,
    }

def to_json(summary: Summary) -> dict[str, object]:
    return {
        "total_requests": summary.total_requests,
        "total_errors": summary.total_errors,
        "endpoints": {key: _endpoint_dict(s) for key, s in summary.endpoints.items()},
    }

def _fmt(value: float) -> str:
    """Integral floats print without a trailing '.0' (100.0 -> '100')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

def _fixed2(value: float) -> str:
    # exact binary value, ties rounded up: 3.125 -> '3.13'
    return str(Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

def _header(name: str, help_text: str, kind: str) -> list[str]:
    return [f"# HELP {name} {help_text}", f"# TYPE {name} {kind}"]

def to_prometheus(summary: Summary) -> str:
    """Prometheus text exposition (format 0.0.4).

    Endpoint keys go into the label value as-is; a key containing a double
    quote or backslash yields an invalid sample line.
    """
    blocks: list[list[str]] = [
        _header("http_requests_total", "Total number of HTTP requests", "counter")
        + [f"http_requests_total {summary.total_requests}"],
        _header("http_errors_total", "Total number of HTTP errors (4xx and 5xx)", "counter")
        + [f"http_errors_total {summary.total_errors}"],
    ]
    for name, help_text, kind, attr, fixed in _ENDPOINT_METRICS:
        lines = _header(name, help_text, kind)
        for endpoint, stats in summary.endpoints.items():
            value = getattr(stats, attr)
            rendered = _fixed2(value) if fixed else _fmt(value)
            lines.append(f'{name}{{endpoint="{endpoint}"}} {rendered}')
        blocks.append(lines)

    return "\n\n".join("\n".join(lines) for lines in blocks) + "\n"
