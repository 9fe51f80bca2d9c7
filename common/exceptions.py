"""
Ivay Shop - Custom Exceptions
==============================
Business-level exceptions that can be caught and converted to HTTP responses.
"""

from fastapi import status


class ShopError(Exception):
    """Base exception for all business logic errors."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Unexpected error."):
        self.message = message
        super().__init__(self.message)


class NotFoundError(ShopError):
    """Raised when a referenced user, product, cart item or order doesn't exist."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id, message: str = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} with id {entity_id} not found")


class InsufficientStockError(ShopError):
    """Raised when a requested or merged quantity exceeds product stock."""
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, product_id: int, product_name: str = "", requested: int = 0, available: int = 0):
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        label = product_name or f"#{product_id}"
        super().__init__(
            f"Insufficient stock for product: {label} (requested: {requested}, available: {available})"
        )


class InvalidStateError(ShopError):
    """Raised when an operation is rejected because of dependents or current state."""
    status_code = status.HTTP_409_CONFLICT


class InvalidInputError(ShopError):
    """Raised for malformed arguments that reach a service (e.g. non-positive quantity)."""
    pass
