# app/repositories/cart_repo.py
from collections import defaultdict
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import CartVersionConflictError, StoreError
from app.core.money import round_money
from app.models.cart import Cart
from app.schemas.cart import CartItem, CartRead, StudentCartView, TeacherCartGroup


def load_items(cart: Cart) -> list[CartItem]:
    """Parse the embedded item documents of a cart."""
    return [CartItem.model_validate(raw) for raw in (cart.items or [])]


def to_cart_read(cart: Cart) -> CartRead:
    return CartRead(
        id=cart.id,
        teacher_id=cart.teacher_id,
        student_id=cart.student_id,
        items=load_items(cart),
        total_price=cart.total_price,
        total_price_service=cart.total_price_service,
        created_at=cart.created_at,
        updated_at=cart.updated_at,
    )


class CartRepository:
    """
    Data access layer for cart documents.

    NOTE:
      - get_or_create commits a lazily created empty cart on its own.
      - replace does NOT commit; the service commits the cart write
        together with its history entries.
      - Reads use populate_existing so a retry never sees a stale copy
        from the session identity map.
    """

    def _by_owner(self, teacher_id: str, student_id: str):
        return (
            select(Cart)
            .where(Cart.teacher_id == teacher_id, Cart.student_id == student_id)
            .execution_options(populate_existing=True)
        )

    def get(self, session: Session, teacher_id: str, student_id: str) -> Cart | None:
        try:
            return session.exec(self._by_owner(teacher_id, student_id)).first()
        except SQLAlchemyError as exc:
            raise StoreError(
                "failed to load cart",
                operation="get_cart",
                teacher_id=teacher_id,
                student_id=student_id,
            ) from exc

    def get_or_create(self, session: Session, teacher_id: str, student_id: str) -> Cart:
        """
        Return the cart for (teacher_id, student_id), creating an empty one
        if none exists. A concurrent creator wins through the unique
        constraint; the loser re-reads the winner's row.
        """
        cart = self.get(session, teacher_id, student_id)
        if cart is not None:
            return cart

        cart = Cart(teacher_id=teacher_id, student_id=student_id)
        try:
            session.add(cart)
            session.commit()
        except IntegrityError:
            session.rollback()
            cart = self.get(session, teacher_id, student_id)
            if cart is None:
                raise StoreError(
                    "cart vanished after concurrent create",
                    operation="get_or_create_cart",
                    teacher_id=teacher_id,
                    student_id=student_id,
                )
            return cart
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(
                "failed to create cart",
                operation="get_or_create_cart",
                teacher_id=teacher_id,
                student_id=student_id,
            ) from exc

        session.refresh(cart)
        return cart

    def replace(
        self,
        session: Session,
        cart: Cart,
        items: list[CartItem],
        total_price: float,
        total_price_service: float,
    ) -> int:
        """
        Overwrite items, totals and updated_at, but only if the stored
        version still matches the version that was read.

        Returns:
            The new version.

        Raises:
            CartVersionConflictError: someone else wrote the cart first.
        """
        expected = cart.version
        stmt = (
            update(Cart)
            .where(Cart.id == cart.id, Cart.version == expected)
            .values(
                items=[it.model_dump() for it in items],
                total_price=total_price,
                total_price_service=total_price_service,
                updated_at=datetime.now(timezone.utc),
                version=expected + 1,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            result = session.exec(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(
                "failed to write cart",
                operation="replace_cart",
                cart_id=cart.id,
                teacher_id=cart.teacher_id,
                student_id=cart.student_id,
            ) from exc

        if result.rowcount != 1:
            raise CartVersionConflictError(
                "cart was modified concurrently",
                operation="replace_cart",
                cart_id=cart.id,
                teacher_id=cart.teacher_id,
                student_id=cart.student_id,
                expected_version=expected,
            )
        return expected + 1

    def list_for_teacher(self, session: Session, teacher_id: str) -> list[Cart]:
        stmt = (
            select(Cart)
            .where(Cart.teacher_id == teacher_id)
            .order_by(Cart.student_id)
            .execution_options(populate_existing=True)
        )
        try:
            return list(session.exec(stmt).all())
        except SQLAlchemyError as exc:
            raise StoreError(
                "failed to list carts",
                operation="list_carts_for_teacher",
                teacher_id=teacher_id,
            ) from exc

    def list_by_teacher(self, session: Session, teacher_id: str) -> list[StudentCartView]:
        """
        One view per student of this teacher, newest cart first.
        """
        carts = self.list_for_teacher(session, teacher_id)
        carts.sort(key=lambda c: c.created_at, reverse=True)
        return [
            StudentCartView(
                student_id=c.student_id,
                items=load_items(c),
                total_price=round_money(c.total_price),
                total_price_service=round_money(c.total_price_service),
                created_at=c.created_at,
            )
            for c in carts
        ]

    def list_all_grouped_by_teacher(self, session: Session) -> list[TeacherCartGroup]:
        stmt = select(Cart).order_by(Cart.teacher_id, Cart.created_at)
        try:
            carts = session.exec(stmt).all()
        except SQLAlchemyError as exc:
            raise StoreError("failed to list carts", operation="list_all_carts") from exc

        grouped: dict[str, list[CartRead]] = defaultdict(list)
        for cart in carts:
            grouped[cart.teacher_id].append(to_cart_read(cart))

        return [
            TeacherCartGroup(teacher_id=teacher_id, carts=group)
            for teacher_id, group in grouped.items()
        ]
