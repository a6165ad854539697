"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNTER = Counter(
	"privacy_gate_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"privacy_gate_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

PRIVACY_DECISIONS = Counter(
	"privacy_decisions_total",
	"Authorization decisions rendered by the privacy handler chain",
	["action", "tag", "allowed"],
)

PRIVACY_GATEWAY_ERRORS = Counter(
	"privacy_gateway_errors_total",
	"Persistence failures converted to fail-closed defaults",
	["operation"],
)

PRIVACY_SETTINGS_UPDATES = Counter(
	"privacy_settings_updates_total",
	"Privacy settings upserts",
	["result"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_privacy_decision(action: str, tag: str, allowed: bool) -> None:
	PRIVACY_DECISIONS.labels(action=action, tag=tag, allowed="true" if allowed else "false").inc()


def inc_privacy_gateway_error(operation: str) -> None:
	PRIVACY_GATEWAY_ERRORS.labels(operation=operation).inc()


def inc_privacy_settings_update(result: str) -> None:
	PRIVACY_SETTINGS_UPDATES.labels(result=result).inc()
