from __future__ import annotations

from prometheus_client import Counter, Histogram

from tempmail.services.mime.types import ParsedEmail

_HTTP_REQUESTS_TOTAL = Counter(
    "tempmail_http_requests_total",
    "Total HTTP requests handled by the API.",
    labelnames=("method", "path", "status_code"),
)
_HTTP_REQUEST_DURATION_SECONDS = Histogram(
    "tempmail_http_request_duration_seconds",
    "HTTP request duration in seconds.",
    labelnames=("method", "path"),
)
_MESSAGES_PARSED_TOTAL = Counter(
    "tempmail_messages_parsed_total",
    "Messages run through the MIME parser, by top-level media type.",
    labelnames=("media_type",),
)
_DECODE_ISSUES_TOTAL = Counter(
    "tempmail_decode_issues_total",
    "Message fragments that degraded to their literal form while decoding.",
    labelnames=("stage",),
)
_INBOUND_TOTAL = Counter(
    "tempmail_inbound_total",
    "Inbound deliveries, by outcome.",
    labelnames=("outcome",),
)


def observe_http_request(*, method: str, path: str, status_code: int, duration_ms: int) -> None:
    safe_path = path or "unknown"
    safe_method = method or "UNKNOWN"

    _HTTP_REQUESTS_TOTAL.labels(
        method=safe_method,
        path=safe_path,
        status_code=str(status_code),
    ).inc()
    _HTTP_REQUEST_DURATION_SECONDS.labels(method=safe_method, path=safe_path).observe(
        max(0.0, duration_ms / 1000.0)
    )


def observe_parsed_email(parsed: ParsedEmail) -> None:
    content_type = (parsed.headers.get("content-type") or "text/plain").lower()
    media_type = content_type.split("/", 1)[0].strip() or "unknown"
    _MESSAGES_PARSED_TOTAL.labels(media_type=media_type).inc()
    for issue in parsed.issues:
        _DECODE_ISSUES_TOTAL.labels(stage=issue.stage).inc()


def observe_inbound(outcome: str) -> None:
    _INBOUND_TOTAL.labels(outcome=outcome).inc()
