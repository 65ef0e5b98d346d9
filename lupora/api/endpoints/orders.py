from typing import List, Optional
from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session
from lupora.database import get_db
from lupora.api.deps import CurrentUser, get_current_user, get_dispatcher
from lupora.schemas.order import OrderCreate, OrderResponse, OrderCreatedResponse
from lupora.services import order_service
from lupora.utils.notifications import NotificationDispatcher

router = APIRouter()


@router.post("", response_model=OrderCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_order(
    order_data: OrderCreate,
    response: Response,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher)
):
    """Check out the cart"""
    order, created = order_service.place_order(db, current_user, order_data, dispatcher, idempotency_key)
    if not created:
        response.status_code = status.HTTP_200_OK

    return OrderCreatedResponse(
        message="Order placed successfully" if created else "Order already placed",
        order_id=order.id,
        order=OrderResponse.model_validate(order),
    )


@router.get("", response_model=List[OrderResponse])
def get_orders(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get user's orders, newest first"""
    return order_service.list_orders(db, current_user.id)


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get order details"""
    return order_service.get_order(db, current_user.id, order_id)
