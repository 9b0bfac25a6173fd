from datetime import datetime
from typing import Literal

from sqlmodel import SQLModel, Field

QuantityDirection = Literal["increase", "decrease"]


class CartItem(SQLModel):
    """
    Line item embedded in a cart document.

    Name, prices and image are a snapshot of the catalog taken when the
    product was first added; later catalog changes do not leak in.
    """

    product_id: str
    product_name: str
    topic_name: str | None = None
    category_name: str | None = None
    price: float = Field(ge=0, description="Store price snapshot")
    price_service: float = Field(default=0.0, ge=0, description="Service price snapshot")
    quantity: int = Field(ge=1)
    image_url: str | None = None


class AddToCartRequest(SQLModel):
    """
    Payload for adding a product to a student's cart.
    Teacher id comes from the token.
    """

    student_id: str
    product_id: str
    quantity: int = Field(default=1, ge=1)


class UpdateCartItemRequest(SQLModel):
    """
    Payload for nudging a line's quantity by one.
    """

    student_id: str
    types: QuantityDirection


class CartRead(SQLModel):
    """
    Full cart document.
    """

    id: str
    teacher_id: str
    student_id: str
    items: list[CartItem]
    total_price: float
    total_price_service: float
    created_at: datetime
    updated_at: datetime


class StudentCartView(SQLModel):
    """
    One student's cart as seen by their teacher.
    """

    student_id: str
    items: list[CartItem]
    total_price: float
    total_price_service: float
    created_at: datetime


class TeacherCartGroup(SQLModel):
    """
    All carts belonging to one teacher (admin view).
    """

    teacher_id: str
    carts: list[CartRead]


class ClearCartResult(SQLModel):
    archived_items: int
