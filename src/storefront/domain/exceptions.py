"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class ProductNotFoundError(EntityNotFoundError):
    """A product referenced by a cart, checkout or restore is unknown."""


class OrderNotFoundError(EntityNotFoundError):
    """No order matches the given order number, internal id or reference."""


class PaymentSessionNotFoundError(EntityNotFoundError):
    """The payment gateway has no session for the given reference."""


class InsufficientStockError(DomainException):
    """Requested quantity exceeds the stock on hand at reservation time."""


class InvalidStateError(DomainException):
    """The operation is not permitted in the order's current status."""


class UnauthorizedError(DomainException):
    """The caller does not own the order it is trying to access."""


class DuplicateIdentifierError(DomainException):
    """A generated order number (or tracking number) is already taken."""


class ConcurrentModificationError(DomainException):
    """An order kept changing underneath a guarded update."""


class GatewayUnavailableError(DomainException):
    """The payment gateway could not be reached or timed out.

    The outcome of the payment is unknown: callers must leave the order
    untouched rather than treat this as a failed payment.
    """


class SignatureInvalidError(DomainException):
    """An inbound webhook could not be authenticated."""


class NotificationError(DomainException):
    """A notification sink failed to deliver a message."""
