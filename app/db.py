from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy import inspect
from flask_migrate import Migrate
import logging
from constants import ALEMBIC_DIR
from utils import now_utc

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()
migrate = Migrate()


def init_migrate(app):
    """Flask-Migrate on the migrations directory shipped with the app (flask db upgrade)"""
    migrate.init_app(app, db, directory=ALEMBIC_DIR)


def init_db(app):
    with app.app_context():
        # Member rows rely on foreign key cascades on SQLite too
        @event.listens_for(db.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            import sqlite3
            if not isinstance(dbapi_connection, sqlite3.Connection):
                return

            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.execute("PRAGMA busy_timeout=30000;")
            cursor.close()

        inspector = inspect(db.engine)
        if not inspector.has_table("oai_record"):
            logger.info("Initializing OAI cache tables...")
        db.create_all()

        from repositories.token_repository import TokenRepository
        TokenRepository.ensure_sequence()


from models import *  # noqa: E402,F401,F403
