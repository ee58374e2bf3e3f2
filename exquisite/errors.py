"""Error taxonomy shared by the stores and both transports.

Stores raise these; the HTTP layer renders them through the handlers
registered below and the Socket.IO layer emits ``to_dict()`` as a failure
envelope on the reply event.
"""

from typing import Any, Dict

from flask import jsonify
from werkzeug.exceptions import HTTPException


class StoreError(Exception):
    status_code = 500

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        payload = {'success': False, 'message': self.message}
        payload.update(self.extra)
        return payload


class ValidationError(StoreError):
    """Missing or malformed field, or a uniqueness violation."""
    status_code = 400


class InvalidTransition(ValidationError):
    """Room state change not allowed from the current state."""


class NotFoundError(StoreError):
    status_code = 404


class JoinRejected(StoreError):
    status_code = 400

    ALREADY_STARTED = 'already started'
    ROOM_CLOSED = 'room closed'

    def __init__(self, reason: str, message: str):
        super().__init__(message, reason=reason, canJoin=False)
        self.reason = reason


class ConflictError(StoreError):
    """A concurrent writer changed the record between read and write."""
    status_code = 409


def register_error_handlers(flask_app) -> None:
    from exquisite import db

    @flask_app.errorhandler(StoreError)
    def handle_store_error(err: StoreError):
        flask_app.logger.info(f"[rejected] {type(err).__name__}: {err.message}")
        return jsonify(err.to_dict()), err.status_code

    @flask_app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({'success': False, 'message': err.description}), err.code

    @flask_app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        db.session.rollback()
        flask_app.logger.exception(f"[error] unhandled {type(err).__name__}")
        return jsonify({'success': False, 'message': str(err)}), 500
