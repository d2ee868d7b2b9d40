"""
Purpose: Error taxonomy shared by every component.
What it does:
- NotFound: referenced rider / order does not exist
- ValidationError: malformed input, out-of-range rating
- ConflictError: state precondition violated
- InternalError: the underlying store failed

Each error carries the status code the HTTP layer answers with.

Rule: No business logic here.
"""


class DispatchError(Exception):
    """Base class for every error a component operation can raise."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFound(DispatchError):
    status_code = 404


class ValidationError(DispatchError):
    status_code = 400


class ConflictError(DispatchError):
    status_code = 409


class InternalError(DispatchError):
    status_code = 500


class RiderUnavailable(ConflictError):
    """Raised when a rider is inactive or already holds an assigned order."""
    pass


class OrderNotPending(ConflictError):
    """Raised when an order left PENDING before the assignment landed."""
    pass


class OrderStateChanged(ConflictError):
    """Raised when an order's status moved after it was read and before the write landed."""
    pass


class RiderBusy(ConflictError):
    """Raised when a rider picked up an assigned order before a delete landed."""
    pass
