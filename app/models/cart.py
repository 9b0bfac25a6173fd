from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import SQLModel, Field

from app.core.identifiers import new_object_id


class Cart(SQLModel, table=True):
    """
    One cart document per (teacher_id, student_id).

    `items` is an embedded array of CartItem documents (see
    app.schemas.cart.CartItem); totals are derived from it on every write.
    `version` is bumped on every write and used for compare-and-swap.
    """

    __tablename__ = "carts"
    __table_args__ = (
        UniqueConstraint("teacher_id", "student_id", name="uq_carts_teacher_student"),
    )

    id: str = Field(
        default_factory=new_object_id,
        primary_key=True,
        max_length=24,
    )

    teacher_id: str = Field(index=True)
    student_id: str = Field(index=True)

    items: list[dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    total_price: float = Field(default=0.0)
    total_price_service: float = Field(default=0.0)

    version: int = Field(
        default=0,
        description="Optimistic concurrency counter",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
