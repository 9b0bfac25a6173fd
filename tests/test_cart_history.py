"""
Tests for the cart history ledger
"""

from datetime import datetime, timedelta, timezone

from sqlmodel import Session

from app.models.cart_history import CartHistory

from tests.conftest import PRODUCT_A, PRODUCT_B, TEACHER_ID


class TestHistoryRepository:
    """Tests for CartHistoryRepository."""

    def test_append_needs_commit(self, engine, session, history_repo):
        history_repo.append(
            session,
            CartHistory(
                teacher_id=TEACHER_ID,
                student_id="s-1",
                product_id=PRODUCT_A,
                event_type="add",
                quantity=1,
            ),
        )

        with Session(engine) as other:
            assert history_repo.list_for_teacher(other, TEACHER_ID) == []

        session.commit()

        with Session(engine) as other:
            assert len(history_repo.list_for_teacher(other, TEACHER_ID)) == 1

    def test_query_groups_per_student_in_order(self, session, history_repo):
        base = datetime(2024, 5, 1, 9, 0, 0, tzinfo=timezone.utc)
        history_repo.append_many(
            session,
            [
                CartHistory(teacher_id=TEACHER_ID, student_id="s-2", product_id=PRODUCT_B,
                            event_type="add", quantity=2, occurred_at=base + timedelta(minutes=5)),
                CartHistory(teacher_id=TEACHER_ID, student_id="s-1", product_id=PRODUCT_A,
                            event_type="remove", quantity=1, occurred_at=base + timedelta(minutes=3)),
                CartHistory(teacher_id=TEACHER_ID, student_id="s-1", product_id=PRODUCT_A,
                            event_type="add", quantity=3, occurred_at=base),
                CartHistory(teacher_id="teacher-2", student_id="s-1", product_id=PRODUCT_A,
                            event_type="add", quantity=9, occurred_at=base),
            ],
        )
        session.commit()

        history = history_repo.query_by_teacher(session, TEACHER_ID)

        assert history.teacher_id == TEACHER_ID
        assert [s.student_id for s in history.students] == ["s-1", "s-2"]
        s1 = history.students[0]
        assert [(e.event_type, e.quantity) for e in s1.events] == [("add", 3), ("remove", 1)]
        assert history.students[1].events[0].quantity == 2

    def test_query_unknown_teacher_is_empty(self, session, history_repo):
        history = history_repo.query_by_teacher(session, "nobody")

        assert history.students == []


class TestServiceHistory:
    """History written by cart operations is visible through get_history."""

    def test_full_lifecycle(self, session, cart_service):
        cart_service.add_item(session, TEACHER_ID, "s-1", PRODUCT_A, 2)
        cart_service.change_quantity(session, TEACHER_ID, "s-1", PRODUCT_A, "increase")
        cart_service.change_quantity(session, TEACHER_ID, "s-1", PRODUCT_A, "decrease")
        cart_service.add_item(session, TEACHER_ID, "s-1", PRODUCT_B, 1)
        cart_service.remove_item(session, TEACHER_ID, "s-1", PRODUCT_B)
        cart_service.clear(session, TEACHER_ID)

        history = cart_service.get_history(session, TEACHER_ID)

        events = [(e.product_id, e.event_type, e.quantity) for e in history.students[0].events]
        assert events == [
            (PRODUCT_A, "add", 2),
            (PRODUCT_A, "add", 1),
            (PRODUCT_A, "remove", 1),
            (PRODUCT_B, "add", 1),
            (PRODUCT_B, "remove", 1),
            (PRODUCT_A, "order", 2),
        ]
