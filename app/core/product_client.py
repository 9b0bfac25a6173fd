# app/core/product_client.py
import logging
from typing import Protocol

import httpx
import pydantic

from app.core.errors import ProductNotFoundError, TransportError
from app.schemas.product import ProductSnapshot

logger = logging.getLogger(__name__)


class ProductCatalog(Protocol):
    """Capability the cart needs from the catalog."""

    def get_product(self, product_id: str) -> ProductSnapshot: ...


class ProductClient:
    """
    HTTP client for the product service.

    GET {base_url}/api/v1/products/{product_id} -> {"data": {...}}

    Raises:
        ProductNotFoundError: 404 from the product service.
        TransportError: timeout, network failure, non-2xx, or an
            undecodable body.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
        )

    def get_product(self, product_id: str) -> ProductSnapshot:
        url = f"{self.base_url}/api/v1/products/{product_id}"
        try:
            resp = self._client.get(url)
        except httpx.TimeoutException as exc:
            raise TransportError(
                "product service timed out",
                operation="get_product",
                product_id=product_id,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"product service unreachable: {exc}",
                operation="get_product",
                product_id=product_id,
            ) from exc

        if resp.status_code == 404:
            raise ProductNotFoundError("product not found", product_id=product_id)
        if resp.status_code >= 400:
            raise TransportError(
                f"product service returned {resp.status_code}",
                operation="get_product",
                product_id=product_id,
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise TransportError(
                "product service returned invalid JSON",
                operation="get_product",
                product_id=product_id,
            ) from exc

        data = body.get("data") if isinstance(body, dict) else None
        if data is None:
            raise ProductNotFoundError("product not found", product_id=product_id)

        try:
            return ProductSnapshot.model_validate(data)
        except pydantic.ValidationError as exc:
            logger.warning("Undecodable product payload for %s: %s", product_id, exc)
            raise TransportError(
                "product service returned an unexpected payload",
                operation="get_product",
                product_id=product_id,
            ) from exc

    def close(self) -> None:
        self._client.close()
