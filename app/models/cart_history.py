from datetime import datetime, timezone

from sqlmodel import SQLModel, Field

from app.core.identifiers import new_object_id


class CartHistory(SQLModel, table=True):
    """
    Append-only audit entry for a cart-affecting event.

    Linked to a cart by (teacher_id, student_id), not by foreign key.
    Rows are never updated or deleted.
    """

    __tablename__ = "cart_history"

    id: str = Field(
        default_factory=new_object_id,
        primary_key=True,
        max_length=24,
    )

    teacher_id: str = Field(index=True)
    student_id: str = Field(index=True)
    product_id: str = Field(index=True, max_length=24)

    # add | remove | order
    event_type: str = Field(index=True)

    quantity: int = Field(description="Units affected by the event (>=1)")

    occurred_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
