# app/services/checkout_service.py
import logging

from sqlmodel import Session

from app.core.errors import OrderCreatedCartClearFailedError, ValidationError
from app.core.identifiers import require_text
from app.core.order_client import OrderPlacement
from app.schemas.checkout import (
    PAYMENT_TYPES,
    CheckoutRequest,
    CheckoutResult,
    OrderRequest,
)
from app.services.cart_service import CartService

logger = logging.getLogger(__name__)

# Checked in this order; the first empty one is reported.
REQUIRED_FIELDS = ("email", "types", "street", "city", "country", "phone")


class CheckoutService:
    """
    Checkout saga: place the order remotely, then clear the carts locally.

    Steps:
      1. Validate shipping / contact fields (no I/O on failure).
      2. Create the order through the order service.
         Failure here leaves every cart untouched.
      3. Clear and archive all of the teacher's carts.
      4. If step 3 fails after step 2 succeeded, raise
         OrderCreatedCartClearFailedError. The order already exists;
         callers retry only the clear (retry_clear), never the order.
    """

    def __init__(self, cart_service: CartService, order_client: OrderPlacement):
        self.cart_service = cart_service
        self.order_client = order_client

    def _validate(self, payload: CheckoutRequest) -> None:
        for name in REQUIRED_FIELDS:
            if not getattr(payload, name):
                raise ValidationError(f"{name} cannot be empty", field=name)
        if payload.types not in PAYMENT_TYPES:
            raise ValidationError(
                f"types must be one of: {', '.join(PAYMENT_TYPES)}", field="types"
            )

    def checkout(
        self,
        session: Session,
        teacher_id: str,
        payload: CheckoutRequest,
        auth_token: str,
    ) -> CheckoutResult:
        teacher_id = require_text(teacher_id, "teacher_id")
        self._validate(payload)

        order = OrderRequest(
            teacher_id=teacher_id,
            email=payload.email,
            types=payload.types,
            street=payload.street,
            city=payload.city,
            state=payload.state,
            country=payload.country,
            phone=payload.phone,
        )
        result = self.order_client.create_order(order, auth_token=auth_token)
        logger.info("Order created for teacher %s (status=%s)", teacher_id, result.status_code)

        try:
            archived = self.cart_service.clear(session, teacher_id)
        except Exception as exc:
            logger.error(
                "Order created for teacher %s but cart clear failed: %s",
                teacher_id,
                exc,
                exc_info=True,
            )
            raise OrderCreatedCartClearFailedError(
                "order created, but failed to clear cart",
                order=result,
                teacher_id=teacher_id,
                cause=exc,
            ) from exc

        return CheckoutResult(order=result, archived_items=archived)

    def retry_clear(self, session: Session, teacher_id: str) -> int:
        """
        Finish a checkout that ended in OrderCreatedCartClearFailedError.
        Only the local clear runs again; the order service is not called.
        """
        return self.cart_service.clear(session, teacher_id)
