from datetime import datetime
from typing import Literal

from sqlmodel import SQLModel

HistoryEventType = Literal["add", "remove", "order"]

EVENT_ADD: HistoryEventType = "add"
EVENT_REMOVE: HistoryEventType = "remove"
EVENT_ORDER: HistoryEventType = "order"


class HistoryEvent(SQLModel):
    product_id: str
    event_type: HistoryEventType
    quantity: int
    occurred_at: datetime


class StudentHistory(SQLModel):
    """
    Events for one student, oldest first.
    """

    student_id: str
    events: list[HistoryEvent]


class TeacherCartHistory(SQLModel):
    teacher_id: str
    students: list[StudentHistory]
