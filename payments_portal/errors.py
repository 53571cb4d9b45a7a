# payments_portal/errors.py

# Error taxonomy for the portal. Every error maps to an HTTP status and a
# human-readable message; handlers below render them as JSON bodies.

from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from payments_portal.extensions import db


class PortalError(Exception):
    status_code = 500
    message = 'Internal server error'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'message': self.message}


class ValidationError(PortalError):
    status_code = 400
    message = 'Invalid request data'


class AuthenticationError(PortalError):
    status_code = 401
    message = 'Invalid credentials'


class MissingCredentialError(PortalError):
    status_code = 401
    message = 'Missing token'


class InvalidCredentialError(PortalError):
    status_code = 403
    message = 'Invalid token'


class ForbiddenError(PortalError):
    status_code = 403
    message = 'Access denied'


class NotFoundError(PortalError):
    status_code = 404
    message = 'Transaction not found'


class DuplicateAccountError(PortalError):
    status_code = 409
    message = 'Account number already registered'


class InvalidStateError(PortalError):
    status_code = 400
    message = 'Transaction must be verified before submission'


class PersistenceError(PortalError):
    status_code = 500
    message = 'Storage operation failed'


def register_error_handlers(app):
    @app.errorhandler(PortalError)
    def handle_portal_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        # Routing errors, 405s and rate-limit rejections
        return jsonify({'message': error.description}), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        # Storage failures outside a service's own handling, e.g. a failed lookup
        db.session.rollback()
        app.logger.error(f"Storage error: {error}")
        return jsonify(PersistenceError().to_dict()), PersistenceError.status_code
