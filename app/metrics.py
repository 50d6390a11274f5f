from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from flask import Response, request
from sqlalchemy.exc import SQLAlchemyError
import logging
import time
from functools import wraps

logger = logging.getLogger("main")

# Protocol Metrics
oai_requests_total = Counter("oai_requests_total", "Total OAI-PMH requests", ["verb"])

oai_errors_total = Counter("oai_errors_total", "OAI-PMH protocol errors returned", ["code"])

oai_resumption_tokens_issued_total = Counter("oai_resumption_tokens_issued_total", "Resumption tokens issued")

oai_request_duration_seconds = Histogram("oai_request_duration_seconds", "OAI-PMH request duration", ["verb"])

# Cache Metrics
oai_cache_records_total = Gauge("oai_cache_records_total", "Records in the OAI cache")
oai_cache_sets_total = Gauge("oai_cache_sets_total", "Sets in the OAI cache")
oai_resumption_tokens_active = Gauge("oai_resumption_tokens_active", "Resumption tokens not yet expired")

# API Metrics
api_request_duration_seconds = Histogram(
    "oai_api_request_duration_seconds", "HTTP request duration", ["endpoint", "method"]
)

api_requests_total = Counter("oai_api_requests_total", "Total HTTP requests", ["endpoint", "method", "status_code"])


def init_metrics(app):
    @app.route("/api/metrics")
    def metrics():
        update_cache_metrics()
        return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        duration = time.time() - getattr(request, "start_time", time.time())
        api_request_duration_seconds.labels(endpoint=request.endpoint or "unknown", method=request.method).observe(
            duration
        )
        api_requests_total.labels(
            endpoint=request.endpoint or "unknown", method=request.method, status_code=response.status_code
        ).inc()
        return response

    app.logger.info("Prometheus metrics initialized at /api/metrics")


def update_cache_metrics():
    """Refresh the cache gauges from the database"""
    from repositories.record_repository import RecordRepository
    from repositories.set_repository import SetRepository
    from repositories.token_repository import TokenRepository
    from utils import now_utc

    try:
        oai_cache_records_total.set(RecordRepository.count())
        oai_cache_sets_total.set(SetRepository.count())
        oai_resumption_tokens_active.set(TokenRepository.count_active(now_utc()))
    except SQLAlchemyError as e:
        logger.warning(f"Could not refresh cache metrics: {e}")


def track_verb(verb):
    """Count and time one OAI-PMH request for verb (None for an illegal verb)"""
    label = verb or "invalid"

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            oai_requests_total.labels(verb=label).inc()
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                oai_request_duration_seconds.labels(verb=label).observe(time.time() - start_time)

        return wrapper

    return decorator


def record_errors(errors):
    for error in errors:
        oai_errors_total.labels(code=error.code).inc()
