from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any

from .config.settings import Settings

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _error_payload(status: int, title: str, detail: str, fields: Optional[Dict[str, str]] = None):
    error = {'status': status, 'title': title, 'detail': detail}
    if fields:
        error['fields'] = fields
    return {'error': error}


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return _error_payload(401, 'Unauthorized', 'Authentication required'), 401


@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return _error_payload(401, 'Unauthorized', 'Invalid or expired token'), 401


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return _error_payload(401, 'Unauthorized', 'Invalid or expired token'), 401


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    settings = Settings.from_env()
    app.config.update(settings.to_flask_config())

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .routes.auth import auth_bp
    from .routes.tickets import tickets_bp
    from .routes.public_tickets import public_bp
    from .routes.owners import owners_bp
    from .routes.vans import vans_bp
    from .routes.categories import categories_bp
    from .routes.admin import admin_bp
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    # public routes first so /public/<uuid> never matches the tech /<uuid> rule
    app.register_blueprint(public_bp, url_prefix='/api/tickets')
    app.register_blueprint(tickets_bp, url_prefix='/api/tickets')
    app.register_blueprint(owners_bp, url_prefix='/api/owners')
    app.register_blueprint(vans_bp, url_prefix='/api/vans')
    app.register_blueprint(categories_bp, url_prefix='/api/categories')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    @app.teardown_appcontext
    def remove_session(exc):  # type: ignore
        SessionLocal.remove()

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = _error_payload(e.code, e.name, e.description, getattr(e, 'fields', None))
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return _error_payload(500, 'Internal Server Error', 'Unexpected error'), 500

    from .openapi import build_openapi_spec

    @app.route('/openapi.json')
    def openapi_spec():
        return build_openapi_spec()

    return app


def get_db():
    return SessionLocal()
