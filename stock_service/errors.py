"""Errors raised by the stock service handlers.

Every error carries the HTTP status and the client-facing message used to
build the ``{success: false, message, error?}`` envelope.
"""


class StockServiceError(Exception):
    """Base exception for stock service errors."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, message=None, error=None):
        self.message = message or self.message
        self.error = error
        super().__init__(self.message)

    def to_dict(self):
        payload = {"success": False, "message": self.message}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class Unauthenticated(StockServiceError):
    """No bearer token was presented."""

    status_code = 403
    message = "No token provided"


class InvalidToken(StockServiceError):
    """Bearer token failed verification (signature, expiry or shape)."""

    status_code = 401
    message = "Invalid token"


class InvalidCredentials(StockServiceError):
    """Unknown username or wrong password; the two are not distinguished."""

    status_code = 401
    message = "Invalid credentials"


class AlreadyExists(StockServiceError):
    status_code = 400
    message = "Admin already exists"


class DuplicateItem(AlreadyExists):
    message = "Item already exists"


class NotFound(StockServiceError):
    status_code = 404
    message = "Item not found"


class StoreError(StockServiceError):
    """
    Underlying persistence failure.

    The store's own message is passed through in ``error`` unchanged.
    """

    status_code = 500
