# app/routers/deps.py
"""
Service wiring for the HTTP layer.

Capabilities (catalog, order service) are built once from settings and
passed into the services through their constructors. Tests replace these
with app.dependency_overrides.
"""
from functools import lru_cache

from fastapi import Depends

from app.core.config import get_settings
from app.core.order_client import OrderClient
from app.core.product_client import ProductClient
from app.repositories.cart_history_repo import CartHistoryRepository
from app.repositories.cart_repo import CartRepository
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService


@lru_cache
def get_product_client() -> ProductClient:
    settings = get_settings()
    return ProductClient(
        settings.PRODUCT_SERVICE_URL,
        timeout=settings.PRODUCT_SERVICE_TIMEOUT_SECONDS,
    )


@lru_cache
def get_order_client() -> OrderClient:
    settings = get_settings()
    return OrderClient(
        settings.ORDER_SERVICE_URL,
        timeout=settings.ORDER_SERVICE_TIMEOUT_SECONDS,
    )


def get_cart_service(
    catalog: ProductClient = Depends(get_product_client),
) -> CartService:
    return CartService(
        CartRepository(),
        CartHistoryRepository(),
        catalog,
        max_write_attempts=get_settings().CART_WRITE_MAX_ATTEMPTS,
    )


def get_checkout_service(
    cart_service: CartService = Depends(get_cart_service),
    order_client: OrderClient = Depends(get_order_client),
) -> CheckoutService:
    return CheckoutService(cart_service, order_client)
