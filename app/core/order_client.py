# app/core/order_client.py
import logging
from typing import Protocol

import httpx
import pydantic

from app.core.errors import OrderRejectedError, OrderTransportError
from app.schemas.checkout import OrderRequest, OrderResult

logger = logging.getLogger(__name__)


class OrderPlacement(Protocol):
    """Capability checkout needs from the order service."""

    def create_order(self, order: OrderRequest, auth_token: str) -> OrderResult: ...


class OrderClient:
    """
    HTTP client for the order service.

    POST {base_url}/api/orders/items with the caller's bearer token.

    The order service reports failures in the body (`status_code >= 400`,
    `error`, `error_code`), sometimes with a 2xx HTTP status, so both are
    checked.

    Raises:
        OrderRejectedError: structured failure from the order service.
        OrderTransportError: timeout, network failure, or a body that does
            not decode into OrderResult. Whether the order exists is unknown.
    """

    ENDPOINT = "/api/orders/items"

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(timeout, 5.0)),
        )

    def create_order(self, order: OrderRequest, auth_token: str) -> OrderResult:
        headers = {"Content-Type": "application/json"}
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"

        payload = order.model_dump(exclude_none=True)
        try:
            resp = self._client.post(
                f"{self.base_url}{self.ENDPOINT}", json=payload, headers=headers
            )
        except httpx.TimeoutException as exc:
            raise OrderTransportError(
                "order service timed out",
                operation="create_order",
                teacher_id=order.teacher_id,
            ) from exc
        except httpx.HTTPError as exc:
            raise OrderTransportError(
                f"order service unreachable: {exc}",
                operation="create_order",
                teacher_id=order.teacher_id,
            ) from exc

        try:
            body = resp.json()
        except ValueError as exc:
            if resp.status_code >= 400:
                raise OrderRejectedError(
                    f"order service returned {resp.status_code}",
                    remote_status=resp.status_code,
                    teacher_id=order.teacher_id,
                ) from exc
            raise OrderTransportError(
                "order service returned invalid JSON",
                operation="create_order",
                teacher_id=order.teacher_id,
            ) from exc

        if not isinstance(body, dict):
            raise OrderTransportError(
                "order service returned an unexpected payload",
                operation="create_order",
                teacher_id=order.teacher_id,
            )

        try:
            result = OrderResult.model_validate(body)
        except pydantic.ValidationError as exc:
            logger.warning("Undecodable order response for %s: %s", order.teacher_id, exc)
            raise OrderTransportError(
                "order service returned an unexpected payload",
                operation="create_order",
                teacher_id=order.teacher_id,
            ) from exc

        if result.status_code is None and resp.status_code >= 400:
            result.status_code = resp.status_code

        if result.is_error:
            remote_code = None if result.error_code is None else str(result.error_code)
            raise OrderRejectedError(
                f"order rejected: {result.error or result.message or 'unknown error'}",
                remote_code=remote_code,
                remote_status=result.status_code,
                teacher_id=order.teacher_id,
            )

        return result

    def close(self) -> None:
        self._client.close()
