import logging
import os
import time
import click
from flask import Flask, flash, redirect, request, url_for
from flask.logging import default_handler
from flask_wtf.csrf import CSRFProtect
from flask_login import LoginManager
from sqlalchemy import create_engine, text
from sqlalchemy.orm import scoped_session, sessionmaker
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.security import generate_password_hash
from .models import Base, AdminUser, ADMIN_USER_ID
from .storage import MediaStorage
from .utils import format_money, iso_day

csrf = CSRFProtect()
login_manager = LoginManager()
login_manager.login_view = "admin.login"
login_manager.login_message = "Ingresá la contraseña para continuar."
login_manager.login_message_category = "info"
media_store = MediaStorage()

log = logging.getLogger(__name__)


def connect(database_url: str, retries: int):
    # Lazy retry (helps when DB finishes booting a hair after app)
    last_error = None
    for attempt in range(max(retries, 1)):
        try:
            engine = create_engine(database_url, pool_pre_ping=True, future=True)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return engine
        except Exception as exc:
            last_error = exc
            log.warning("Database not ready (attempt %d/%d): %s", attempt + 1, retries, exc)
            time.sleep(1)
    raise RuntimeError("Could not connect to database.") from last_error


def create_schema(engine):
    # Serialized across workers with a MySQL advisory lock; other dialects just create_all.
    if engine.dialect.name != "mysql":
        Base.metadata.create_all(engine)
        return
    with engine.connect() as conn:
        try:
            # Wait up to 30s for the lock; prevents concurrent DDL from multiple workers
            conn.exec_driver_sql("SELECT GET_LOCK('norden_schema_lock', 30)")
            Base.metadata.create_all(engine)
        finally:
            conn.exec_driver_sql("SELECT RELEASE_LOCK('norden_schema_lock')")


def configure_logging(app):
    logger = logging.getLogger("norden")
    logger.setLevel(app.config["LOG_LEVEL"])
    if default_handler not in logger.handlers:
        logger.addHandler(default_handler)


def create_app(test_config=None):
    app = Flask(__name__, instance_relative_config=True, static_folder="static", template_folder="templates")
    app.config.from_mapping(
        SECRET_KEY=os.getenv("FLASK_SECRET_KEY", "dev-secret"),
        # Fallback for local dev
        DATABASE_URL=os.getenv("DATABASE_URL") or "sqlite:///norden.db",
        ADMIN_PASSWORD=os.getenv("ADMIN_PASSWORD", "Norden2024"),
        WHATSAPP_NUMBER=os.getenv("WHATSAPP_NUMBER", "5491132747900"),
        UPLOAD_ROOT=os.getenv("UPLOAD_ROOT") or os.path.join(app.instance_path, "uploads"),
        MEDIA_URL=os.getenv("MEDIA_URL", "/media"),
        MAX_CONTENT_LENGTH=int(os.getenv("MAX_UPLOAD_MB", "200")) * 1024 * 1024,
        REMINDER_LEAD_DAYS=int(os.getenv("REMINDER_LEAD_DAYS", "14")),
        DB_CONNECT_RETRIES=int(os.getenv("DB_CONNECT_RETRIES", "30")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    if test_config:
        app.config.update(test_config)

    configure_logging(app)

    # Only the hash is kept around after startup
    app.config["ADMIN_PASSWORD_HASH"] = generate_password_hash(app.config.pop("ADMIN_PASSWORD"))

    engine = connect(app.config["DATABASE_URL"], app.config["DB_CONNECT_RETRIES"])
    session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    db_session = scoped_session(session_factory)
    create_schema(engine)

    # Attach to app
    app.engine = engine
    app.db_session = db_session

    csrf.init_app(app)
    login_manager.init_app(app)
    media_store.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return AdminUser() if user_id == ADMIN_USER_ID else None

    # Register routes
    from .site import bp as site_bp
    from .routes import bp as admin_bp
    app.register_blueprint(site_bp)
    app.register_blueprint(admin_bp)

    app.add_template_filter(format_money, "money")
    app.add_template_filter(iso_day, "day")

    @app.errorhandler(RequestEntityTooLarge)
    def too_large(exc):
        flash("El archivo es demasiado grande.", "danger")
        return redirect(request.referrer or url_for("admin.index"))

    @app.cli.command("seed-content")
    def seed_content_command():
        """Insert the default landing page texts that are missing."""
        from .services import seed_site_content
        added = seed_site_content(db_session)
        click.echo(f"Added {added} site content entries.")

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        db_session.remove()

    log.info("Norden site ready (database: %s)", engine.url.render_as_string(hide_password=True))
    return app
