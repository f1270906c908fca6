# hooksheet/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram, Gauge,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger.json import JsonFormatter

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "hooksheet", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            fmt = JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            )
            handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "hooksheet_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "hooksheet_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

SUBMISSIONS = Counter(
    "hooksheet_submissions_total",
    "Webhook submissions by outcome",
    ["outcome"],
)

ORACLE_CALLS = Counter(
    "hooksheet_oracle_calls_total",
    "Transformation oracle calls by outcome",
    ["outcome"],
)

ORACLE_LATENCY = Histogram(
    "hooksheet_oracle_latency_seconds",
    "Transformation oracle round-trip latency",
)

VALIDATION_FAILURES = Counter(
    "hooksheet_validation_failures_total",
    "Oracle outputs rejected by the flat-record validator",
    ["reason"],
)

EXPORTS = Counter(
    "hooksheet_exports_total",
    "CSV exports by outcome",
    ["outcome"],
)

STORE_ROWS = Gauge(
    "hooksheet_store_rows",
    "Rows currently held in the record store",
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def observe_oracle(start_ts: float, outcome: str):
    try:
        ORACLE_LATENCY.observe(time.time() - start_ts)
        ORACLE_CALLS.labels(outcome=outcome).inc()
    except Exception:
        pass


def inc_submission(outcome: str):
    try:
        SUBMISSIONS.labels(outcome=outcome).inc()
    except Exception:
        pass


def inc_validation_failure(reason: str):
    try:
        VALIDATION_FAILURES.labels(reason=reason).inc()
    except Exception:
        pass


def inc_export(outcome: str):
    try:
        EXPORTS.labels(outcome=outcome).inc()
    except Exception:
        pass


def set_store_rows(n: int):
    try:
        STORE_ROWS.set(n)
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
