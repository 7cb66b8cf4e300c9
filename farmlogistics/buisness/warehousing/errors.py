"""
Domain exceptions for warehousing business logic

These exceptions represent business rule violations and domain-specific errors.
Everything except ConsistencyWarning aborts the operation before any mutation is applied.
"""


class WarehousingDomainError(Exception):
    """Base exception for all warehousing domain errors"""
    pass


class ValidationError(WarehousingDomainError):
    """Raised when input is malformed (missing quantity, location, reason...)"""
    pass


class NotFoundError(WarehousingDomainError):
    """Raised when a warehouse, lot, order or owner cannot be found"""
    pass


class AuthorizationError(WarehousingDomainError):
    """Raised when the caller has no manager link or location match for the target warehouse"""
    pass


class CapacityError(WarehousingDomainError):
    """Raised when free space is insufficient on add, or stock is insufficient on dispatch"""
    pass


class OrderTransitionError(WarehousingDomainError):
    """Raised when an order status transition is invalid or not allowed"""
    pass


class ConsistencyWarning(UserWarning):
    """Issued (never raised) when a capacity counter goes past its limit"""
    pass
