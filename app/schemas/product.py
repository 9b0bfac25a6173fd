from typing import Any

from pydantic import ConfigDict, model_validator
from sqlmodel import SQLModel, Field


class ProductSnapshot(SQLModel):
    """
    What the cart needs to know about a catalog product.

    Accepts the product service payload shape:

        {
          "product_name": "...",
          "original_price": 12.5,      # or "price_store"
          "price_service": 3.0,        # optional
          "cover_image": "https://...",# or "image_url"
          "topic": {"topic_name": "..."},
          "category": {"category_name": "..."}
        }
    """

    model_config = ConfigDict(extra="ignore")

    name: str = Field(min_length=1)
    price_store: float = Field(ge=0)
    price_service: float = Field(default=0.0, ge=0)
    image_url: str | None = None
    topic_name: str | None = None
    category_name: str | None = None

    @model_validator(mode="before")
    @classmethod
    def from_catalog_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        out = dict(data)
        out.setdefault("name", data.get("product_name"))
        if "price_store" not in out:
            out["price_store"] = data.get("original_price", data.get("price"))
        out.setdefault("image_url", data.get("cover_image"))

        topic = data.get("topic")
        if isinstance(topic, dict):
            out.setdefault("topic_name", topic.get("topic_name"))
        category = data.get("category")
        if isinstance(category, dict):
            out.setdefault("category_name", category.get("category_name"))

        if out.get("price_service") is None:
            out.pop("price_service", None)
        return out
