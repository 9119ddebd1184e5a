"""Failures raised by the storefront services.

Each error knows the HTTP status and machine-readable code it is rendered
with; the message is meant to be shown to the user as-is.
"""
from __future__ import annotations
from typing import Any


class StorefrontError(Exception):
    status_code = 400
    code = "error"
    message = "Request failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "message": self.message, "error": self.code}


class ValidationError(StorefrontError):
    code = "validation_error"
    message = "Invalid request"


class UserNotFound(StorefrontError):
    status_code = 404
    code = "user_not_found"
    message = "User not found"


class ProductNotFound(StorefrontError):
    status_code = 404
    code = "product_not_found"

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "productId": self.product_id}


class InsufficientStock(StorefrontError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, product_name: str):
        super().__init__(f"Insufficient quantity for product: {product_name}")
        self.product_name = product_name

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "productName": self.product_name}


class InvalidDiscountCode(StorefrontError):
    code = "invalid_discount_code"
    message = "Invalid or unavailable discount code"


class Unauthorized(StorefrontError):
    status_code = 403
    code = "unauthorized"
    message = "Unauthorized. Only admins can change this setting."


class UserExists(StorefrontError):
    status_code = 409
    code = "user_exists"
    message = "User already exists"


class AuthenticationFailed(StorefrontError):
    status_code = 401
    code = "authentication_failed"
    message = "Invalid credentials"


class StoreUnavailable(StorefrontError):
    status_code = 503
    code = "store_unavailable"
    message = "Database error. Please try again later."


class PersistenceError(StorefrontError):
    """The snapshot could not be written.

    The outcome is indeterminate from the caller's side: the write may or
    may not have reached the backing store.
    """
    status_code = 500
    code = "persistence_error"
    message = "Error processing order. Please try again."

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "indeterminate": True}
