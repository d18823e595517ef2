"""Domain errors raised by the arcade services.

Routes let these propagate; the handlers registered in ``create_app`` turn
them into ``{"success": false, "error": ...}`` JSON responses. Rejected
purchases are not errors, see ``ActionResult`` in ``arcade.services.platform``.
"""


class ArcadeError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}

    def to_dict(self):
        payload = {'success': False, 'error': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class NotFoundError(ArcadeError):
    status_code = 404


class ConflictError(ArcadeError):
    status_code = 409


class ValidationError(ArcadeError):
    status_code = 400
