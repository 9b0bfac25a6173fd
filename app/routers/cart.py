# app/routers/cart.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import Principal, require_teacher
from app.database import get_session
from app.routers.deps import get_cart_service, get_checkout_service
from app.schemas.cart import (
    AddToCartRequest,
    CartItem,
    CartRead,
    ClearCartResult,
    StudentCartView,
    UpdateCartItemRequest,
)
from app.schemas.checkout import CheckoutRequest, CheckoutResult
from app.services.cart_service import CartService
from app.services.checkout_service import CheckoutService

router = APIRouter(prefix="/cart", tags=["Cart"])


@router.get("/items", response_model=list[StudentCartView])
def list_my_carts(
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_teacher),
    service: CartService = Depends(get_cart_service),
):
    """
    All carts of the current teacher, one per student, newest first.
    """
    return service.list_teacher_carts(session, principal.user_id)


@router.get("/items/{student_id}", response_model=CartRead)
def get_student_cart(
    student_id: str,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_teacher),
    service: CartService = Depends(get_cart_service),
):
    """
    One student's cart (created empty on first access).
    """
    return service.get_cart(session, principal.user_id, student_id)


@router.post("/items", response_model=CartItem)
def add_to_cart(
    payload: AddToCartRequest,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_teacher),
    service: CartService = Depends(get_cart_service),
):
    """
    Add a product to a student's cart.

    Returns the stored line (quantity after merge).
    """
    return service.add_item(
        session,
        teacher_id=principal.user_id,
        student_id=payload.student_id,
        product_id=payload.product_id,
        quantity=payload.quantity,
    )


@router.put("/items/{product_id}", response_model=CartItem | None)
def update_quantity(
    product_id: str,
    payload: UpdateCartItemRequest,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_teacher),
    service: CartService = Depends(get_cart_service),
):
    """
    Increase or decrease a line by one.

    Returns the updated line, or null when a decrease removed it.
    """
    return service.change_quantity(
        session,
        teacher_id=principal.user_id,
        student_id=payload.student_id,
        product_id=product_id,
        direction=payload.types,
    )


@router.delete("/items/{product_id}", response_model=CartItem)
def remove_from_cart(
    product_id: str,
    student_id: str = Query(...),
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_teacher),
    service: CartService = Depends(get_cart_service),
):
    """
    Remove a whole line from a student's cart.
    """
    return service.remove_item(session, principal.user_id, student_id, product_id)


@router.delete("/items", response_model=ClearCartResult)
def clear_cart(
    student_id: str | None = Query(default=None),
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_teacher),
    service: CartService = Depends(get_cart_service),
):
    """
    Archive (history `order` entries) and empty the teacher's carts,
    or a single student's cart when student_id is given.

    Also the recovery path after ORDER_CREATED_CART_NOT_CLEARED.
    """
    archived = service.clear(session, principal.user_id, student_id)
    return ClearCartResult(archived_items=archived)


@router.post("/items/checkout", response_model=CheckoutResult)
def checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    principal: Principal = Depends(require_teacher),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Place the order with the order service, then clear the carts.
    """
    return service.checkout(session, principal.user_id, payload, principal.token)
