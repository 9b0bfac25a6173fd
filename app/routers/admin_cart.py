# app/routers/admin_cart.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.routers.deps import get_cart_service
from app.schemas.cart import TeacherCartGroup
from app.schemas.history import TeacherCartHistory
from app.services.cart_service import CartService

router = APIRouter(
    prefix="/admin/cart",
    tags=["Admin Cart"],
    dependencies=[Depends(require_admin)],
)


@router.get("", response_model=list[TeacherCartGroup])
def list_all_carts(
    session: Session = Depends(get_session),
    service: CartService = Depends(get_cart_service),
):
    """
    Every cart, grouped by teacher (admin only).
    """
    return service.list_all_carts(session)


@router.get("/history", response_model=TeacherCartHistory)
def get_teacher_history(
    teacher_id: str = Query(...),
    session: Session = Depends(get_session),
    service: CartService = Depends(get_cart_service),
):
    """
    A teacher's cart history grouped per student (admin only).
    """
    return service.get_history(session, teacher_id)
