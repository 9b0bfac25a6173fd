# app/services/cart_service.py
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.errors import (
    CartServiceError,
    CartVersionConflictError,
    ItemNotFoundError,
    StoreError,
    ValidationError,
)
from app.core.identifiers import ensure_object_id, require_text
from app.core.money import round_money
from app.core.product_client import ProductCatalog
from app.models.cart_history import CartHistory
from app.repositories.cart_history_repo import CartHistoryRepository
from app.repositories.cart_repo import CartRepository, load_items, to_cart_read
from app.schemas.cart import (
    CartItem,
    CartRead,
    QuantityDirection,
    StudentCartView,
    TeacherCartGroup,
)
from app.schemas.history import (
    EVENT_ADD,
    EVENT_ORDER,
    EVENT_REMOVE,
    HistoryEventType,
    TeacherCartHistory,
)

logger = logging.getLogger(__name__)


def compute_totals(items: list[CartItem]) -> tuple[float, float]:
    """
    Derive (total_price, total_price_service) from scratch.

    Always recomputed from the full item list right before a write;
    never adjusted incrementally.
    """
    total = round_money(sum(it.price * it.quantity for it in items))
    total_service = round_money(sum(it.price_service * it.quantity for it in items))
    return total, total_service


def _find(items: list[CartItem], product_id: str) -> CartItem | None:
    return next((it for it in items if it.product_id == product_id), None)


@dataclass
class _CartChange:
    """Result of applying one intent to a cart's item list."""

    items: list[CartItem]
    events: list[tuple[str, HistoryEventType, int]] = field(default_factory=list)
    item: CartItem | None = None


class CartService:
    """
    Business logic for cart mutations.

    Every mutation is a single read-modify-write:
      1. load (or lazily create) the cart document
      2. compute the new item list and its totals
      3. compare-and-swap the cart on its version
      4. append one history entry per item transition
      5. commit once

    A lost compare-and-swap rolls back and replays the whole cycle
    against a fresh read (bounded by max_write_attempts).
    """

    def __init__(
        self,
        cart_repo: CartRepository,
        history_repo: CartHistoryRepository,
        catalog: ProductCatalog,
        max_write_attempts: int = 5,
    ):
        self.cart_repo = cart_repo
        self.history_repo = history_repo
        self.catalog = catalog
        self.max_write_attempts = max(1, max_write_attempts)

    # ---- internal helpers ----

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.max_write_attempts),
            wait=wait_exponential(multiplier=0.01, max=0.2),
            retry=retry_if_exception_type(CartVersionConflictError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _commit(self, session: Session, operation: str, **context) -> None:
        try:
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(
                "failed to commit cart change", operation=operation, **context
            ) from exc

    def _history(
        self,
        teacher_id: str,
        student_id: str,
        events: list[tuple[str, HistoryEventType, int]],
    ) -> list[CartHistory]:
        now = datetime.now(timezone.utc)
        return [
            CartHistory(
                teacher_id=teacher_id,
                student_id=student_id,
                product_id=product_id,
                event_type=event_type,
                quantity=quantity,
                occurred_at=now,
            )
            for product_id, event_type, quantity in events
        ]

    def _mutate(
        self,
        session: Session,
        operation: str,
        teacher_id: str,
        student_id: str,
        apply: Callable[[list[CartItem]], _CartChange],
    ) -> _CartChange:
        for attempt in self._retrying():
            with attempt:
                cart = self.cart_repo.get_or_create(session, teacher_id, student_id)
                change = apply(load_items(cart))
                total, total_service = compute_totals(change.items)
                try:
                    self.cart_repo.replace(session, cart, change.items, total, total_service)
                    self.history_repo.append_many(
                        session, self._history(teacher_id, student_id, change.events)
                    )
                except CartServiceError:
                    session.rollback()
                    raise
                self._commit(
                    session, operation, teacher_id=teacher_id, student_id=student_id
                )
        return change

    # ---- mutations ----

    def add_item(
        self,
        session: Session,
        teacher_id: str,
        student_id: str,
        product_id: str,
        quantity: int,
    ) -> CartItem:
        """
        Add `quantity` units of a product to the cart.

        Rules:
          - product must exist in the catalog
          - name / prices / image are snapshotted on first add
          - adding a product already in the cart merges quantities

        Returns the stored line with its post-merge quantity.
        """
        teacher_id = require_text(teacher_id, "teacher_id")
        student_id = require_text(student_id, "student_id")
        product_id = ensure_object_id(product_id)
        if not isinstance(quantity, int) or quantity < 1:
            raise ValidationError("quantity must be greater than 0", field="quantity")

        product = self.catalog.get_product(product_id)

        def apply(items: list[CartItem]) -> _CartChange:
            existing = _find(items, product_id)
            if existing is not None:
                existing.quantity += quantity
                item = existing
            else:
                item = CartItem(
                    product_id=product_id,
                    product_name=product.name,
                    topic_name=product.topic_name,
                    category_name=product.category_name,
                    price=product.price_store,
                    price_service=product.price_service,
                    quantity=quantity,
                    image_url=product.image_url,
                )
                items.append(item)
            return _CartChange(items, [(product_id, EVENT_ADD, quantity)], item)

        change = self._mutate(session, "add_item", teacher_id, student_id, apply)
        return change.item

    def change_quantity(
        self,
        session: Session,
        teacher_id: str,
        student_id: str,
        product_id: str,
        direction: QuantityDirection,
    ) -> CartItem | None:
        """
        Move a line's quantity by one.

          increase          : qty + 1, history add x1
          decrease (qty > 1): qty - 1, history remove x1
          decrease (qty = 1): line removed, history remove x1

        Returns the updated line, or None when it was removed.
        """
        teacher_id = require_text(teacher_id, "teacher_id")
        student_id = require_text(student_id, "student_id")
        product_id = ensure_object_id(product_id)
        if direction not in ("increase", "decrease"):
            raise ValidationError("type must be 'increase' or 'decrease'", field="types")

        def apply(items: list[CartItem]) -> _CartChange:
            existing = _find(items, product_id)
            if existing is None:
                raise ItemNotFoundError(
                    "product not found in cart",
                    teacher_id=teacher_id,
                    student_id=student_id,
                    product_id=product_id,
                )

            if direction == "increase":
                existing.quantity += 1
                return _CartChange(items, [(product_id, EVENT_ADD, 1)], existing)

            if existing.quantity > 1:
                existing.quantity -= 1
                return _CartChange(items, [(product_id, EVENT_REMOVE, 1)], existing)

            remaining = [it for it in items if it.product_id != product_id]
            return _CartChange(remaining, [(product_id, EVENT_REMOVE, 1)], None)

        change = self._mutate(session, "change_quantity", teacher_id, student_id, apply)
        return change.item

    def remove_item(
        self,
        session: Session,
        teacher_id: str,
        student_id: str,
        product_id: str,
    ) -> CartItem:
        """
        Remove a whole line. History records the full prior quantity.
        """
        teacher_id = require_text(teacher_id, "teacher_id")
        student_id = require_text(student_id, "student_id")
        product_id = ensure_object_id(product_id)

        def apply(items: list[CartItem]) -> _CartChange:
            existing = _find(items, product_id)
            if existing is None:
                raise ItemNotFoundError(
                    "product not found in cart",
                    teacher_id=teacher_id,
                    student_id=student_id,
                    product_id=product_id,
                )
            remaining = [it for it in items if it.product_id != product_id]
            return _CartChange(
                remaining, [(product_id, EVENT_REMOVE, existing.quantity)], existing
            )

        change = self._mutate(session, "remove_item", teacher_id, student_id, apply)
        return change.item

    def clear(
        self,
        session: Session,
        teacher_id: str,
        student_id: str | None = None,
    ) -> int:
        """
        Archive and empty every cart in scope.

        Scope is all of the teacher's carts, or one cart when student_id
        is given. Each item gets an `order` history entry carrying its
        quantity before the cart is wiped. All carts in scope are written
        in one transaction.

        Returns the number of archived entries.
        """
        teacher_id = require_text(teacher_id, "teacher_id")
        if student_id is not None:
            student_id = require_text(student_id, "student_id")

        archived = 0
        for attempt in self._retrying():
            with attempt:
                if student_id is None:
                    carts = self.cart_repo.list_for_teacher(session, teacher_id)
                else:
                    cart = self.cart_repo.get(session, teacher_id, student_id)
                    carts = [cart] if cart is not None else []

                archived = 0
                try:
                    for cart in carts:
                        items = load_items(cart)
                        if not items:
                            continue
                        self.history_repo.append_many(
                            session,
                            self._history(
                                teacher_id,
                                cart.student_id,
                                [(it.product_id, EVENT_ORDER, it.quantity) for it in items],
                            ),
                        )
                        self.cart_repo.replace(session, cart, [], 0.0, 0.0)
                        archived += len(items)
                except CartServiceError:
                    session.rollback()
                    raise
                self._commit(
                    session, "clear_cart", teacher_id=teacher_id, student_id=student_id
                )

        logger.info(
            "Cleared carts for teacher %s (student=%s): %d items archived",
            teacher_id,
            student_id or "*",
            archived,
        )
        return archived

    # ---- reads ----

    def get_cart(self, session: Session, teacher_id: str, student_id: str) -> CartRead:
        teacher_id = require_text(teacher_id, "teacher_id")
        student_id = require_text(student_id, "student_id")
        cart = self.cart_repo.get_or_create(session, teacher_id, student_id)
        return to_cart_read(cart)

    def list_teacher_carts(self, session: Session, teacher_id: str) -> list[StudentCartView]:
        teacher_id = require_text(teacher_id, "teacher_id")
        return self.cart_repo.list_by_teacher(session, teacher_id)

    def list_all_carts(self, session: Session) -> list[TeacherCartGroup]:
        return self.cart_repo.list_all_grouped_by_teacher(session)

    def get_history(self, session: Session, teacher_id: str) -> TeacherCartHistory:
        teacher_id = require_text(teacher_id, "teacher_id")
        return self.history_repo.query_by_teacher(session, teacher_id)
