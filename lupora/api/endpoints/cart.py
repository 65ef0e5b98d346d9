from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from lupora.database import get_db
from lupora.api.deps import CurrentUser, get_current_user
from lupora.schemas.cart import CartItemAdd, CartItemUpdate, CartResponse
from lupora.schemas.common import MessageResponse
from lupora.services import cart_service

router = APIRouter()


@router.get("", response_model=CartResponse)
def get_cart(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get user's cart"""
    return cart_service.get_cart(db, current_user.id)


@router.post("/add", response_model=CartResponse)
def add_to_cart(
    item_data: CartItemAdd,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add item to cart"""
    return cart_service.add_item(db, current_user.id, str(item_data.product_id), item_data.quantity)


@router.put("/update", response_model=CartResponse)
def update_cart_item(
    item_data: CartItemUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set a line's quantity; zero removes it"""
    return cart_service.update_quantity(db, current_user.id, str(item_data.product_id), item_data.quantity)


@router.delete("/remove/{product_id}", response_model=CartResponse)
def remove_from_cart(
    product_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove item from cart"""
    return cart_service.remove_item(db, current_user.id, product_id)


@router.delete("/clear", response_model=MessageResponse)
def clear_cart(current_user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Clear all items from cart"""
    cart_service.clear_cart(db, current_user.id)
    return MessageResponse(message="Cart cleared")
