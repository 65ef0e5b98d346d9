import logging
import uuid
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from lupora.config import settings
from lupora.models.order import CheckoutRequest, Order, OrderItem, PaymentMethod, PaymentStatus, OrderStatus
from lupora.schemas.order import OrderCreate
from lupora.services import cart_service
from lupora.utils.errors import ConflictError, InternalError, NotFoundError, ValidationError
from lupora.utils.notifications import NotificationDispatcher, ORDER_PLACED
from lupora.utils.validation import is_valid_id

logger = logging.getLogger(__name__)


def _find_checkout(db: Session, user_id: str, idempotency_key: str) -> Optional[Order]:
    """Order created earlier for this key, if the key has not expired"""
    cutoff = datetime.utcnow() - timedelta(hours=settings.IDEMPOTENCY_TTL_HOURS)
    record = db.query(CheckoutRequest).filter(
        CheckoutRequest.user_id == user_id,
        CheckoutRequest.idempotency_key == idempotency_key,
        CheckoutRequest.created_at >= cutoff,
    ).first()
    if record is None:
        return None
    return db.query(Order).filter(Order.id == record.order_id).first()


def _persist_order(db: Session, order: Order, checkout: Optional[CheckoutRequest]) -> None:
    db.add(order)
    if checkout is not None:
        db.add(checkout)
    db.commit()


def build_order_event(order: Order, customer_name: str, customer_email: str) -> dict:
    """Plain-data snapshot of an order for the notification queue"""
    return {
        "type": ORDER_PLACED,
        "order_id": order.id,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "customer": {"name": customer_name, "email": customer_email},
        "items": [
            {
                "name": item.name,
                "price": float(item.price),
                "quantity": item.quantity,
                "subtotal": float(item.subtotal),
            }
            for item in order.items
        ],
        "total_amount": float(order.total_amount),
        "payment_method": order.payment_method,
        "payment_status": order.payment_status,
        "shipping_address": dict(order.shipping_address or {}),
    }


def place_order(
    db: Session,
    current_user,
    order_data: OrderCreate,
    dispatcher: NotificationDispatcher,
    idempotency_key: Optional[str] = None,
) -> Tuple[Order, bool]:
    """
    Turn the user's cart into an order.

    Returns (order, created). created is False when idempotency_key matches
    an earlier checkout, in which case nothing is written and nobody is
    notified again.
    """
    user_id = current_user.id
    if idempotency_key is not None:
        idempotency_key = idempotency_key.strip()
        if not idempotency_key or len(idempotency_key) > 255:
            raise ValidationError("Invalid Idempotency-Key header")
        existing = _find_checkout(db, user_id, idempotency_key)
        if existing is not None:
            logger.info(f"Replaying order {existing.id} for idempotency key")
            return existing, False
        # An expired record still holds the (user, key) slot until the purge runs
        db.query(CheckoutRequest).filter(
            CheckoutRequest.user_id == user_id,
            CheckoutRequest.idempotency_key == idempotency_key,
        ).delete(synchronize_session=False)

    _, lines = cart_service.load_cart_lines(db, user_id)
    if not lines:
        raise ValidationError("Cart is empty")

    # Snapshot the live product data so later catalog edits never touch the order
    items = []
    total_amount = Decimal("0.00")
    for position, (cart_item, product) in enumerate(lines):
        price = Decimal(product.price or 0)
        items.append(OrderItem(
            position=position,
            product_id=product.id,
            name=product.name,
            price=price,
            quantity=cart_item.quantity,
            image=product.image,
        ))
        total_amount += price * cart_item.quantity

    payment_method = order_data.payment_method
    order = Order(
        id=str(uuid.uuid4()),
        user_id=user_id,
        items=items,
        total_amount=total_amount,
        shipping_address=order_data.shipping_address.model_dump(by_alias=True),
        payment_method=payment_method.value,
        payment_status=(PaymentStatus.PENDING if payment_method == PaymentMethod.COD else PaymentStatus.PAID).value,
        order_status=OrderStatus.PLACED.value,
        gateway_order_id=order_data.gateway_order_id,
        gateway_payment_id=order_data.gateway_payment_id,
    )
    checkout = None
    if idempotency_key is not None:
        checkout = CheckoutRequest(user_id=user_id, idempotency_key=idempotency_key, order=order)

    # The order must be committed before the cart goes away
    try:
        _persist_order(db, order, checkout)
    except IntegrityError:
        db.rollback()
        if idempotency_key is not None:
            existing = _find_checkout(db, user_id, idempotency_key)
            if existing is not None:
                return existing, False
        logger.error(f"Order insert rejected for user {user_id}", exc_info=True)
        raise InternalError()
    except SQLAlchemyError:
        db.rollback()
        logger.error(f"Failed to persist order for user {user_id}", exc_info=True)
        raise InternalError()

    db.refresh(order)
    logger.info(f"Order {order.id} placed by user {user_id}, total {order.total_amount}")

    try:
        cart_service.clear_cart(db, user_id)
    except (SQLAlchemyError, ConflictError):
        # The order stands; a leftover cart only risks a repeat checkout
        logger.error(f"Order {order.id} placed but cart for user {user_id} was not cleared", exc_info=True)

    dispatcher.publish(build_order_event(order, current_user.name, current_user.email))
    return order, True


def list_orders(db: Session, user_id: str) -> List[Order]:
    """User's orders, newest first"""
    return db.query(Order).filter(Order.user_id == user_id).order_by(Order.created_at.desc()).all()


def get_order(db: Session, user_id: str, order_id: str) -> Order:
    """Order by id, only if it belongs to user_id"""
    if not is_valid_id(order_id):
        raise NotFoundError("Order not found")

    order = db.query(Order).filter(
        Order.id == order_id,
        Order.user_id == user_id
    ).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def purge_expired_checkout_requests(db: Session, now: Optional[datetime] = None) -> int:
    now = now or datetime.utcnow()
    cutoff = now - timedelta(hours=settings.IDEMPOTENCY_TTL_HOURS)
    deleted = db.query(CheckoutRequest).filter(CheckoutRequest.created_at < cutoff).delete(synchronize_session=False)
    db.commit()
    return deleted
