# app/core/errors.py
"""
Typed errors raised by the cart core.

Services and repositories raise these instead of HTTPException so the same
code runs behind FastAPI, a worker, or a test. app.main maps every
CartServiceError to a JSON response using `status_code` and `error_code`.

    CartServiceError
      ├── ValidationError                 400  caught before any I/O
      ├── InvalidIdentifierError          400  malformed object id
      ├── ItemNotFoundError               404  product not in the cart
      ├── ProductNotFoundError            404  catalog lookup miss
      ├── StoreError                      500  persistence failure
      │     └── CartVersionConflictError  409  CAS lost after all retries
      ├── TransportError                  502  network / timeout upstream
      ├── OrderRejectedError              502  order service said no
      │     └── OrderTransportError       504  (also a TransportError)
      └── OrderCreatedCartClearFailedError 500 order exists, cart not cleared
"""
from typing import Any


class CartServiceError(Exception):
    status_code: int = 500
    error_code: str = "CART_SERVICE_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = {k: v for k, v in context.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.message,
            "error_code": self.error_code,
            "context": {k: str(v) for k, v in self.context.items()},
        }


class ValidationError(CartServiceError):
    status_code = 400
    error_code = "INVALID_REQUEST"

    def __init__(self, message: str, field: str | None = None, **context: Any):
        super().__init__(message, field=field, **context)
        self.field = field


class InvalidIdentifierError(CartServiceError):
    status_code = 400
    error_code = "INVALID_IDENTIFIER"


class ItemNotFoundError(CartServiceError):
    status_code = 404
    error_code = "ITEM_NOT_FOUND"


class ProductNotFoundError(CartServiceError):
    status_code = 404
    error_code = "PRODUCT_NOT_FOUND"


class StoreError(CartServiceError):
    status_code = 500
    error_code = "STORE_ERROR"


class CartVersionConflictError(StoreError):
    """The cart changed between read and write (compare-and-swap missed)."""

    status_code = 409
    error_code = "CART_VERSION_CONFLICT"


class TransportError(CartServiceError):
    status_code = 502
    error_code = "UPSTREAM_UNAVAILABLE"


class OrderRejectedError(CartServiceError):
    """
    The order service returned a structured failure.

    `remote_code` / `remote_status` carry what the order service reported.
    """

    status_code = 502
    error_code = "ORDER_REJECTED"

    def __init__(
        self,
        message: str,
        remote_code: str | None = None,
        remote_status: int | None = None,
        **context: Any,
    ):
        super().__init__(
            message, remote_code=remote_code, remote_status=remote_status, **context
        )
        self.remote_code = remote_code
        self.remote_status = remote_status


class OrderTransportError(TransportError, OrderRejectedError):
    """
    The order call timed out, failed on the network, or came back undecodable.

    Whether the order exists remotely is unknown; the cart is left untouched.
    """

    status_code = 504
    error_code = "ORDER_SERVICE_UNAVAILABLE"

    def __init__(self, message: str, **context: Any):
        OrderRejectedError.__init__(self, message, **context)


class OrderCreatedCartClearFailedError(CartServiceError):
    """
    Checkout created the remote order but could not clear the cart.

    Retry only the clear step (CheckoutService.retry_clear or
    DELETE /cart/items); never place the order again.
    """

    status_code = 500
    error_code = "ORDER_CREATED_CART_NOT_CLEARED"

    def __init__(self, message: str, order: Any = None, **context: Any):
        super().__init__(message, **context)
        self.order = order
