"""
Tests for optimistic concurrency on cart writes
"""

import pytest
from sqlmodel import Session

from app.core.errors import CartVersionConflictError
from app.repositories.cart_history_repo import CartHistoryRepository
from app.repositories.cart_repo import CartRepository, load_items
from app.services.cart_service import CartService

from tests.conftest import PRODUCT_A, STUDENT_ID, TEACHER_ID


def _quantity(engine):
    with Session(engine) as s:
        cart = CartRepository().get(s, TEACHER_ID, STUDENT_ID)
        items = load_items(cart)
        return items[0].quantity if items else 0


def _history_count(engine):
    with Session(engine) as s:
        return len(CartHistoryRepository().list_for_teacher(s, TEACHER_ID))


class TestInterleavedWrites:
    """A write that loses the compare-and-swap replays against fresh state."""

    def test_increase_and_decrease_net_to_zero(
        self, engine, session, cart_service, cart_repo, catalog, monkeypatch
    ):
        cart_service.add_item(session, TEACHER_ID, STUDENT_ID, PRODUCT_A, 2)
        before = _history_count(engine)

        rival = CartService(CartRepository(), CartHistoryRepository(), catalog)
        original_replace = cart_repo.replace
        calls = []

        def racing_replace(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                with Session(engine) as other:
                    rival.change_quantity(other, TEACHER_ID, STUDENT_ID, PRODUCT_A, "decrease")
            return original_replace(*args, **kwargs)

        monkeypatch.setattr(cart_repo, "replace", racing_replace)

        item = cart_service.change_quantity(session, TEACHER_ID, STUDENT_ID, PRODUCT_A, "increase")

        assert len(calls) == 2
        assert item.quantity == 2
        assert _quantity(engine) == 2
        assert _history_count(engine) == before + 2

    def test_conflict_surfaces_after_max_attempts(
        self, engine, session, cart_repo, history_repo, catalog, monkeypatch
    ):
        service = CartService(cart_repo, history_repo, catalog, max_write_attempts=3)
        service.add_item(session, TEACHER_ID, STUDENT_ID, PRODUCT_A, 1)
        before = _history_count(engine)
        calls = []

        def always_stale(session, cart, *args, **kwargs):
            calls.append(cart.id)
            raise CartVersionConflictError("cart was modified concurrently", cart_id=cart.id)

        monkeypatch.setattr(cart_repo, "replace", always_stale)

        with pytest.raises(CartVersionConflictError):
            service.change_quantity(session, TEACHER_ID, STUDENT_ID, PRODUCT_A, "increase")

        assert len(calls) == 3
        assert _quantity(engine) == 1
        assert _history_count(engine) == before
