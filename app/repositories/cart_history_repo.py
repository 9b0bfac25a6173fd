# app/repositories/cart_history_repo.py
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.errors import StoreError
from app.models.cart_history import CartHistory
from app.schemas.history import HistoryEvent, StudentHistory, TeacherCartHistory


class CartHistoryRepository:
    """
    Append-only ledger of cart events.

    No commits here: entries are flushed with the cart write they
    describe when the service commits.
    """

    def append(self, session: Session, entry: CartHistory) -> CartHistory:
        session.add(entry)
        return entry

    def append_many(self, session: Session, entries: list[CartHistory]) -> list[CartHistory]:
        session.add_all(entries)
        return entries

    def list_for_teacher(self, session: Session, teacher_id: str) -> list[CartHistory]:
        stmt = (
            select(CartHistory)
            .where(CartHistory.teacher_id == teacher_id)
            .order_by(CartHistory.student_id, CartHistory.occurred_at, CartHistory.id)
        )
        try:
            return list(session.exec(stmt).all())
        except SQLAlchemyError as exc:
            raise StoreError(
                "failed to load cart history",
                operation="list_history_for_teacher",
                teacher_id=teacher_id,
            ) from exc

    def query_by_teacher(self, session: Session, teacher_id: str) -> TeacherCartHistory:
        """
        Group a teacher's history per student, each in order of occurrence.
        """
        students: dict[str, list[HistoryEvent]] = {}
        for row in self.list_for_teacher(session, teacher_id):
            students.setdefault(row.student_id, []).append(
                HistoryEvent(
                    product_id=row.product_id,
                    event_type=row.event_type,
                    quantity=row.quantity,
                    occurred_at=row.occurred_at,
                )
            )

        return TeacherCartHistory(
            teacher_id=teacher_id,
            students=[
                StudentHistory(student_id=student_id, events=events)
                for student_id, events in students.items()
            ],
        )
