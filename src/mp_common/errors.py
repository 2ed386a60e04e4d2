"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Identity
  2xxx: Input validation
  3xxx: Catalog
  4xxx: Order
  5xxx: Payment
  9xxx: System

Every domain error is recoverable at the request boundary. Storage-layer
failures (SQLAlchemy / Redis connection errors) are not wrapped and propagate
unchanged.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/Identity ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired credentials", 401)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Not allowed") -> None:
        super().__init__(1006, f"Forbidden: {detail}", 403)


# --- 2xxx: Validation ---

class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2001, f"Validation failed: {detail}", 422)


# --- 3xxx / 4xxx: Not found ---

class NotFoundError(AppError):
    """Referenced order, item, return request or product does not exist."""


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: str) -> None:
        super().__init__(3001, f"Product not found: {product_id}", 404)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_ref: str) -> None:
        super().__init__(4004, f"Order not found: {order_ref}", 404)


class OrderItemNotFoundError(NotFoundError):
    def __init__(self, item_id: str) -> None:
        super().__init__(4011, f"Order item not found: {item_id}", 404)


class ReturnRequestNotFoundError(NotFoundError):
    def __init__(self, return_id: str) -> None:
        super().__init__(4012, f"Return request not found: {return_id}", 404)


# --- 4xxx: Order ---

class InvalidTransitionError(AppError):
    def __init__(self, current: str, requested: str, reason: str | None = None) -> None:
        self.current = current
        self.requested = requested
        message = f"Invalid transition: {current} -> {requested}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(4001, message, 409)


class DuplicateOrderNumberError(AppError):
    def __init__(self, order_number: str) -> None:
        self.order_number = order_number
        super().__init__(4005, f"Duplicate order number: {order_number}", 409)


class CancellationNotAllowedError(AppError):
    def __init__(self, order_number: str, status: str) -> None:
        super().__init__(
            4006, f"Order {order_number} in status {status} cannot be cancelled", 422
        )


class ReturnWindowExpiredError(AppError):
    def __init__(self, order_number: str, window_days: int) -> None:
        super().__init__(
            4007,
            f"Return window of {window_days} days has expired for order {order_number}",
            422,
        )


class ReturnNotAllowedError(AppError):
    def __init__(self, order_number: str, status: str) -> None:
        super().__init__(
            4008, f"Order {order_number} in status {status} cannot be returned", 422
        )


class ConcurrentModificationError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(
            4009, f"Order {order_id} was modified concurrently, reload and retry", 409
        )


class OrderNumberExhaustedError(AppError):
    def __init__(self, attempts: int) -> None:
        super().__init__(
            4010, f"Could not allocate a unique order number after {attempts} attempts", 503
        )


# --- 5xxx: Payment ---

class PaymentFailedError(AppError):
    def __init__(self, order_number: str, reason: str) -> None:
        self.reason = reason
        super().__init__(5001, f"Payment failed for order {order_number}: {reason}", 402)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
