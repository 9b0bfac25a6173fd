"""Pytest configuration and fixtures"""
import os

import pytest
from sqlmodel import Session, SQLModel

# Set test environment variables (before any app module reads settings)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test_jwt_secret")
os.environ.setdefault("PRODUCT_SERVICE_URL", "http://products.test")
os.environ.setdefault("ORDER_SERVICE_URL", "http://orders.test")

from app.core.errors import ProductNotFoundError  # noqa: E402
from app.database import build_engine  # noqa: E402
from app.models import cart as _cart_models  # noqa: E402,F401
from app.models import cart_history as _cart_history_models  # noqa: E402,F401
from app.repositories.cart_history_repo import CartHistoryRepository  # noqa: E402
from app.repositories.cart_repo import CartRepository  # noqa: E402
from app.schemas.checkout import OrderResult  # noqa: E402
from app.schemas.product import ProductSnapshot  # noqa: E402
from app.services.cart_service import CartService  # noqa: E402
from app.services.checkout_service import CheckoutService  # noqa: E402

TEACHER_ID = "teacher-1"
STUDENT_ID = "student-1"
PRODUCT_A = "64b7f0c2a1b2c3d4e5f60718"
PRODUCT_B = "64b7f0c2a1b2c3d4e5f60719"
PRODUCT_C = "64b7f0c2a1b2c3d4e5f6071a"


class FakeCatalog:
    """In-memory product catalog that records lookups."""

    def __init__(self, products: dict[str, ProductSnapshot]):
        self.products = products
        self.calls: list[str] = []

    def get_product(self, product_id: str) -> ProductSnapshot:
        self.calls.append(product_id)
        if product_id not in self.products:
            raise ProductNotFoundError("product not found", product_id=product_id)
        return self.products[product_id]


class FakeOrderClient:
    """Order service stand-in: returns `result` or raises `error`."""

    def __init__(self, result: OrderResult | None = None, error: Exception | None = None):
        self.result = result or OrderResult(status_code=201, message="created", data={"id": "o-1"})
        self.error = error
        self.calls: list[tuple] = []

    def create_order(self, order, auth_token: str) -> OrderResult:
        self.calls.append((order, auth_token))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite so separate sessions see each other's commits."""
    engine = build_engine(f"sqlite:///{tmp_path / 'cart.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def products():
    return {
        PRODUCT_A: ProductSnapshot(
            name="Watercolor Set",
            price_store=10.1,
            price_service=1.05,
            image_url="https://img.test/a.png",
            topic_name="Art",
            category_name="Supplies",
        ),
        PRODUCT_B: ProductSnapshot(name="Notebook", price_store=2.2, price_service=0.0),
        PRODUCT_C: ProductSnapshot(name="Glue Stick", price_store=0.3, price_service=0.15),
    }


@pytest.fixture
def catalog(products):
    return FakeCatalog(products)


@pytest.fixture
def cart_repo():
    return CartRepository()


@pytest.fixture
def history_repo():
    return CartHistoryRepository()


@pytest.fixture
def cart_service(cart_repo, history_repo, catalog):
    return CartService(cart_repo, history_repo, catalog, max_write_attempts=5)


@pytest.fixture
def order_client():
    return FakeOrderClient()


@pytest.fixture
def checkout_service(cart_service, order_client):
    return CheckoutService(cart_service, order_client)
