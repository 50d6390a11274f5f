"""
OAI-PMH Data Provider
Application Factory and startup
"""
import os
import sys
import logging

import click
import flask.cli
flask.cli.show_server_banner = lambda *args: None

# Core Flask imports
from flask import Flask, current_app
from flask.cli import AppGroup
import structlog

# Local imports
from constants import OAI_DB, BUILD_VERSION, DEFAULT_SETTINGS
from settings import load_settings, merge_settings, verify_settings
from db import db, init_db, init_migrate
from utils import ColoredFormatter, FilterRemoveDateFromWerkzeugLogs
from exceptions import ConfigurationException, register_exception_handlers
from metrics import init_metrics
from plugin_system import get_plugin_registry
from services.context import OaiContext

# Routes
from routes.oai import oai_bp, limiter
from routes.system import system_bp, get_oai_stats

# Jobs
from jobs.scheduler import JobScheduler, purge_expired_tokens

# Logging configuration
formatter = ColoredFormatter(
    '[%(asctime)s.%(msecs)03d] %(levelname)s (%(module)s) %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
)
handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(formatter)

logging.basicConfig(
    level=logging.INFO,
    handlers=[handler]
)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer() if os.environ.get('LOG_FORMAT') == 'json' else structlog.dev.ConsoleRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger('main')

# Apply filter to hide date from http access logs
logging.getLogger('werkzeug').addFilter(FilterRemoveDateFromWerkzeugLogs())
logging.getLogger('alembic.runtime.migration').setLevel(logging.WARNING)

# flask oai ...
oai_cli = AppGroup('oai', help='OAI-PMH cache and token store maintenance.')


@oai_cli.command('purge-tokens')
def purge_tokens_command():
    """Delete expired resumption tokens."""
    deleted = purge_expired_tokens(current_app)
    click.echo(f"Deleted {deleted} expired resumption tokens")


@oai_cli.command('stats')
def stats_command():
    """Print record cache and token store counts."""
    for name, value in get_oai_stats().items():
        click.echo(f"{name}: {value}")


def resolve_settings(settings=None):
    """Settings from the YAML file, or settings merged over the defaults"""
    if settings is None:
        return load_settings()
    return merge_settings(settings)


def create_app(settings=None, clock=None, database_uri=None, rebuild=None):
    """Application factory"""
    settings = resolve_settings(settings)
    oai_settings = settings.get("oai") or DEFAULT_SETTINGS["oai"]

    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = database_uri or OAI_DB
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Plugins
    registry = get_plugin_registry(settings)
    success, errors = verify_settings("oai", oai_settings, registry.ids())
    if not success:
        for error in errors:
            logger.error("invalid setting", path=error["path"], error=error["error"])
        raise ConfigurationException(f"Invalid OAI-PMH settings: {errors}")

    # Initialize components
    db.init_app(app)
    init_migrate(app)
    limiter.init_app(app)

    # Register exception handlers
    register_exception_handlers(app)

    app.extensions["oai"] = OaiContext(settings, registry, clock=clock, rebuild=rebuild)

    # Register blueprints
    app.register_blueprint(oai_bp, url_prefix=oai_settings["path"])
    app.register_blueprint(system_bp)
    app.cli.add_command(oai_cli)

    # Initialize metrics
    init_metrics(app)

    # Initialize database
    init_db(app)

    purge_interval = oai_settings.get("token_purge_interval") or 0
    if purge_interval > 0:
        JobScheduler().init_app(app, purge_interval)

    logger.info("OAI-PMH endpoint ready", path=oai_settings["path"], formats=sorted(oai_settings["metadata_map"]))
    return app


if __name__ == '__main__':
    app = create_app()
    logger.info(f'Build Version: {BUILD_VERSION}')
    logger.info('Starting server on port 8465...')
    app.run(debug=False, use_reloader=False, host="0.0.0.0", port=8465)
    logger.info('Shutting down server...')
