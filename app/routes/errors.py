"""
ERROR HANDLERS
==============

Turns service exceptions into JSON error responses.
"""

from flask import jsonify

from app.services.authorization_service import AuthorizationError
from app.services.cycle_service import ClubConfigError
from app.services.membership_service import MembershipError, DuplicateMemberError
from app.services.payment_service import PaymentError, DuplicatePaymentError
from app.services.rotation_service import ScheduleError
from app.storage.base import StorageError, NotFoundError

# Flask resolves subclasses to the closest registered handler
ERROR_STATUS = (
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (DuplicateMemberError, 409),
    (DuplicatePaymentError, 409),
    (ClubConfigError, 400),
    (ScheduleError, 400),
    (PaymentError, 400),
    (MembershipError, 400),
    (StorageError, 500),
)


def error_response(message, status):
    return jsonify({'error': message}), status


def register_error_handlers(app):
    for error_class, status in ERROR_STATUS:
        def handler(e, status=status):
            if status >= 500:
                app.logger.error("Storage failure: %s", e)
            return error_response(str(e), status)
        app.register_error_handler(error_class, handler)

    @app.errorhandler(404)
    def not_found(e):
        return error_response('Not found', 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response('Method not allowed', 405)
