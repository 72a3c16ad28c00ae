"""
Engine error kinds. Raised by the package/billing/lifecycle services and
mapped to HTTP statuses by config.exceptions.custom_exception_handler.
"""


class EngineError(Exception):
    """Base class; `code` is the machine-readable error code sent to API clients."""
    code = "error"

    def __init__(self, message, **context):
        self.message = message
        self.context = context
        super().__init__(message)


class ValidationError(EngineError):
    """Caller supplied an invalid or missing required value."""
    code = "validation_error"


class StateError(EngineError):
    """Operation is not valid for the entity's current state."""
    code = "invalid_state"


class NotFoundError(EngineError):
    """Referenced entity id does not exist."""
    code = "not_found"


class NotificationError(EngineError):
    """A payment/billing message could not be dispatched. Never reaches API callers."""
    code = "notification_failed"


class TransactionError(EngineError):
    """A multi-row mutation failed and was rolled back as a whole."""
    code = "transaction_failed"
