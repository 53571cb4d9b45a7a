# payments_portal/__init__.py

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from payments_portal.config import Config
from payments_portal.extensions import db, jwt, limiter, migrate


def create_app(config_object=Config):
    """Build the portal app from a config object loaded once at start-up."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Fix proxy headers for HTTPS
    hops = app.config['PROXY_FIX_HOPS']
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_port=hops)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Ensure model modules are imported so SQLAlchemy metadata is populated
    # for Flask-Migrate / Alembic.
    from payments_portal.database import models  # noqa: F401

    _init_services(app)

    from payments_portal.errors import register_error_handlers
    register_error_handlers(app)

    from payments_portal.routes import api
    app.register_blueprint(api)

    from payments_portal.create_admin import create_admin_command
    app.cli.add_command(create_admin_command)

    app.after_request(_set_security_headers)
    return app


def _init_services(app):
    from payments_portal.audit.audit_logger import AuditLogger
    from payments_portal.authentication.session_issuer import SessionIssuer
    from payments_portal.encryption.password_hashing import PasswordHashingService
    from payments_portal.security.token_manager import TokenManager
    from payments_portal.transactions.workflow import TransactionWorkflow

    audit_logger = AuditLogger.from_config(app.config)
    password_service = PasswordHashingService.from_config(app.config)
    token_manager = TokenManager()

    app.extensions['portal.audit'] = audit_logger
    app.extensions['portal.tokens'] = token_manager
    app.extensions['portal.sessions'] = SessionIssuer(password_service, token_manager, audit_logger)
    app.extensions['portal.workflow'] = TransactionWorkflow(audit_logger)


def _set_security_headers(response):
    response.headers.setdefault('Strict-Transport-Security', 'max-age=31536000; includeSubDomains; preload')
    response.headers.setdefault('X-Content-Type-Options', 'nosniff')
    response.headers.setdefault('X-Frame-Options', 'DENY')
    response.headers.setdefault('Content-Security-Policy', "default-src 'self'")
    return response
