from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel

PAYMENT_TYPES = ("cod", "bank_transfer")


class CheckoutRequest(SQLModel):
    """
    Shipping / contact details for checkout.

    Fields default to "" so that CheckoutService reports the *first* missing
    field itself (email, types, street, city, country, phone) instead of
    the request parser rejecting the body wholesale.
    """

    model_config = ConfigDict(extra="forbid")

    email: str = ""
    types: str = ""
    street: str = ""
    city: str = ""
    state: str | None = None
    country: str = ""
    phone: str = ""

    @field_validator("email", "types", "street", "city", "country", "phone", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderRequest(SQLModel):
    """
    Body sent to the order service.
    """

    teacher_id: str
    email: str
    types: str
    street: str
    city: str
    state: str | None = None
    country: str
    phone: str


class OrderResult(SQLModel):
    """
    Decoded order service response.

    The order service reports failures in-band: a body `status_code >= 400`
    with `error` / `error_code`. Anything else it returns is kept in extras.
    """

    model_config = ConfigDict(extra="allow")

    status_code: int | None = None
    message: str | None = None
    error: Any = None
    error_code: str | int | None = None
    data: Any = None

    @property
    def is_error(self) -> bool:
        return self.status_code is not None and self.status_code >= 400


class CheckoutResult(SQLModel):
    order: OrderResult
    archived_items: int
