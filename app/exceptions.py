"""
OAI-PMH Provider - Custom Exceptions and Exception Handlers

Protocol errors (badVerb, badArgument, ...) are not exceptions, they are
rendered into the OAI-PMH response. Everything here is an internal failure
that a harvester cannot correct.
"""
import structlog
from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = structlog.get_logger('exceptions')


class OaiProviderException(Exception):
    """Base exception for the provider"""
    def __init__(self, message: str, code: str = "OAI_PROVIDER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self):
        return {
            'error': True,
            'code': self.code,
            'message': self.message
        }


class DatabaseException(OaiProviderException):
    """Record cache or token store could not be read or written"""
    def __init__(self, message: str):
        super().__init__(message, code="DATABASE_ERROR")
        logger.error(f"Database error: {message}")


class MetadataRenderException(OaiProviderException):
    """A metadata format plugin failed to render a record"""
    def __init__(self, message: str):
        super().__init__(message, code="METADATA_RENDER_ERROR")
        logger.error(f"Metadata render error: {message}")


class ConfigurationException(OaiProviderException):
    """Settings reference something that does not exist"""
    def __init__(self, message: str):
        super().__init__(message, code="CONFIGURATION_ERROR")
        logger.error(f"Configuration error: {message}")


def register_exception_handlers(app):
    """Register exception handlers with Flask app"""

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Handle HTTP exceptions"""
        return jsonify({
            'error': True,
            'code': e.name.upper().replace(' ', '_'),
            'message': e.description
        }), e.code

    @app.errorhandler(OaiProviderException)
    def handle_provider_exception(e):
        """Handle provider exceptions without a more specific handler"""
        return jsonify(e.to_dict()), 500

    @app.errorhandler(DatabaseException)
    def handle_database_exception(e):
        """Handle database exceptions"""
        return jsonify(e.to_dict()), 500

    @app.errorhandler(MetadataRenderException)
    def handle_render_exception(e):
        """Handle metadata plugin failures"""
        return jsonify(e.to_dict()), 500

    @app.errorhandler(ConfigurationException)
    def handle_configuration_exception(e):
        """Handle configuration exceptions"""
        return jsonify(e.to_dict()), 500

    @app.errorhandler(Exception)
    def handle_generic_exception(e):
        """Handle all other exceptions"""
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'error': True,
            'code': 'INTERNAL_ERROR',
            'message': 'An unexpected error occurred'
        }), 500
