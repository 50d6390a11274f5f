"""
OAI-PMH Route - the harvesting endpoint
"""

from flask import Blueprint, Response, current_app, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from db import db
from exceptions import DatabaseException
from services.oai_engine import OaiRequest

# Registered at the configured oai.path
oai_bp = Blueprint("oai", __name__)

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def oai_rate_limit():
    return current_app.extensions["oai"].oai_settings.get("rate_limit") or "1 per second"


def rate_limit_disabled():
    return not current_app.extensions["oai"].oai_settings.get("rate_limit")


@oai_bp.route("", methods=["GET", "POST"])
@limiter.limit(oai_rate_limit, exempt_when=rate_limit_disabled)
def oai_request():
    """
    Answer one OAI-PMH request. Protocol errors are part of the document,
    so the status is always 200 unless the provider itself failed.
    """
    context = current_app.extensions["oai"]
    try:
        response = context.engine().handle(OaiRequest.from_flask(request))
    except SQLAlchemyError as e:
        db.session.rollback()
        raise DatabaseException(f"OAI-PMH request failed: {e}")

    return Response(response.to_bytes(), status=200, content_type="text/xml; charset=utf-8")
