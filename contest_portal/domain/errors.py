# contest_portal/domain/errors.py
"""
Bledy domenowe. Serwisy rzucaja je, a warstwa HTTP
(api/errors.py) zamienia je na koperte {success: false, error}.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid input"


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized. Please sign in to continue."


class Forbidden(AppError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class RateLimited(AppError):
    status_code = 429
    default_message = "Too Many Requests"


class InternalError(AppError):
    status_code = 500


class OrderIdCollision(InternalError):
    """Unikalny order_id juz istnieje - checkout losuje nowy numer."""

    default_message = "Failed to create payment. Please try again."

    def __init__(self, order_id: str):
        super().__init__()
        self.order_id = order_id
