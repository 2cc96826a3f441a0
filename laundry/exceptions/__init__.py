"""Custom exceptions for the laundry desk application."""

class LaundryError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="An internal error occurred", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(LaundryError):
    """Raised when order input is incomplete or inconsistent. Nothing is written."""
    def __init__(self, message, field=None, status_code=400):
        payload = {'field': field} if field else None
        super().__init__(message, status_code, payload)
        self.field = field

class NotFoundError(LaundryError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Resource not found", payload=None):
        super().__init__(message, 404, payload)

class ConfirmationRequiredError(LaundryError):
    """Raised when an irreversible action is called without explicit confirmation."""
    def __init__(self, message="Confirmation required"):
        super().__init__(message, 409)

class PersistenceError(LaundryError):
    """Raised when the backing store rejects a write."""
    def __init__(self, message="Could not save changes", original=None):
        super().__init__(message, 500)
        self.original = original
