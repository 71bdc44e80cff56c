"""Exceptions raised by the hello-operator reconciliation core."""

__all__ = [
    "OperatorError",
    "StoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "ConflictError",
    "ForbiddenError",
    "TransientStoreError",
    "OwnershipError",
    "ReconcileCancelled",
]


class OperatorError(Exception):
    """Generic base exception used for this operator.

    Every error is retryable unless stated otherwise; the external trigger
    mechanism decides when the retry happens.
    """

    retryable = True


class StoreError(OperatorError):
    """Raised when a call against the resource store fails."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(StoreError):
    """Raised when an object is not present in the store."""

    retryable = False


class AlreadyExistsError(StoreError):
    """Raised when creating an object that already exists."""

    retryable = False


class ConflictError(StoreError):
    """Raised when a write loses an optimistic concurrency race."""


class ForbiddenError(StoreError):
    """Raised when the operator lacks permission for a store call."""


class TransientStoreError(StoreError):
    """Raised when the store is unreachable or fails for any other reason."""


class OwnershipError(OperatorError):
    """Raised when the controlling owner reference cannot be established."""


class ReconcileCancelled(OperatorError):
    """Raised when the reconcile context was cancelled or its deadline passed."""
