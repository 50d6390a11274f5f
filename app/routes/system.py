"""
System Routes - health and cache statistics
"""

from flask import Blueprint, current_app
import socket
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from db import db
from api_responses import success_response, handle_api_errors
from repositories.record_repository import RecordRepository
from repositories.set_repository import SetRepository
from repositories.member_repository import MemberRepository
from repositories.token_repository import TokenRepository
from constants import BUILD_VERSION

system_bp = Blueprint("system", __name__, url_prefix="/api")


def get_oai_stats():
    """Counts of the cache tables and the token store"""
    context = current_app.extensions["oai"]
    now = context.clock()
    return {
        "records": RecordRepository.count(),
        "sets": SetRepository.count(),
        "members": MemberRepository.count(),
        "resumption_tokens_active": TokenRepository.count_active(now),
        "next_token_id": TokenRepository.get_next_token_id(),
        "page_size": SetRepository.min_pager_limit(),
        "metadata_formats": sorted((context.oai_settings.get("metadata_map") or {}).keys()),
        "sets_enabled": bool(context.oai_settings.get("sets_enabled", True)),
        "cache_strategy": context.cache_strategy.id,
    }


@system_bp.route("/health", methods=["GET"])
@handle_api_errors
def health_check_api():
    """
    Health check endpoint for monitoring.
    """
    overall_status = "healthy"
    checks = {
        "timestamp": current_app.extensions["oai"].clock().isoformat(),
        "version": BUILD_VERSION,
        "hostname": socket.gethostname(),
        "database": "unknown",
    }

    # Check Database connection
    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        db.session.rollback()
        checks["database"] = f"error: {str(e)}"
        overall_status = "unhealthy"

    status_code = 200 if overall_status == "healthy" else 503

    return success_response(data={"status": overall_status, "checks": checks}, status_code=status_code)


@system_bp.route("/health/live", methods=["GET"])
@handle_api_errors
def health_live_api():
    """
    Liveness check - reports if the application is alive.
    """
    return success_response(data={"status": "alive"})


@system_bp.route("/oai/stats", methods=["GET"])
@handle_api_errors
def oai_stats_api():
    return success_response(data=get_oai_stats())
