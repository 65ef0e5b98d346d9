import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.exc import IntegrityError
from lupora.config import settings
from lupora.models.cart import Cart, CartItem
from lupora.models.product import Product
from lupora.utils.errors import ConflictError, NotFoundError, ValidationError
from lupora.utils.validation import is_valid_id

logger = logging.getLogger(__name__)

CartLine = Tuple[CartItem, Product]


def _is_expired(cart: Cart, now: Optional[datetime] = None) -> bool:
    now = now or datetime.utcnow()
    return cart.updated_at < now - timedelta(days=settings.CART_TTL_DAYS)


def _load_cart(db: Session, user_id: str) -> Optional[Cart]:
    """User's cart, or None. An expired cart is deleted on sight."""
    cart = db.query(Cart).filter(Cart.user_id == user_id).first()
    if cart is not None and _is_expired(cart):
        logger.info(f"Cart {cart.id} expired, deleting")
        db.delete(cart)
        db.flush()
        return None
    return cart


def _touch(cart: Cart) -> None:
    # Dirties the cart row so the version check runs even when only lines changed
    cart.updated_at = datetime.utcnow()


def _find_item(cart: Cart, product_id: str) -> Optional[CartItem]:
    return next((item for item in cart.items if item.product_id == product_id), None)


def _check_quantity(quantity) -> None:
    max_quantity = settings.MAX_LINE_QUANTITY
    if isinstance(quantity, bool) or not isinstance(quantity, int) or not 1 <= quantity <= max_quantity:
        raise ValidationError(f"Quantity must be an integer between 1 and {max_quantity}")


def _check_product_id(product_id: str) -> None:
    if not is_valid_id(product_id):
        raise ValidationError("Invalid product ID")


def _write(db: Session, operation: Callable[[], None]) -> None:
    """
    Run a cart mutation and commit it, retrying when another request changed
    the same cart in between (stale version or concurrent first insert).
    """
    attempts = settings.CART_WRITE_RETRIES
    for attempt in range(1, attempts + 1):
        try:
            operation()
            db.commit()
            return
        except (StaleDataError, IntegrityError):
            db.rollback()
            logger.warning(f"Concurrent cart write detected (attempt {attempt}/{attempts})")
        except Exception:
            db.rollback()
            raise
    raise ConflictError("Cart was modified by another request, please retry")


def load_cart_lines(db: Session, user_id: str) -> Tuple[Optional[Cart], List[CartLine]]:
    """
    Cart plus its lines joined with live products. Lines whose product no
    longer exists are left out.
    """
    cart = _load_cart(db, user_id)
    if cart is None or not cart.items:
        return cart, []

    product_ids = [item.product_id for item in cart.items]
    products = {p.id: p for p in db.query(Product).filter(Product.id.in_(product_ids)).all()}

    lines = []
    for item in cart.items:
        product = products.get(item.product_id)
        if product is None:
            logger.debug(f"Dropping dangling cart line for product {item.product_id}")
            continue
        lines.append((item, product))
    return cart, lines


def get_cart(db: Session, user_id: str) -> dict:
    """Cart view with totals derived from live prices"""
    _, lines = load_cart_lines(db, user_id)
    # Persist a lazy expiry deletion, if any
    db.commit()

    items = []
    total_items = 0
    total_price = Decimal("0.00")
    for item, product in lines:
        price = Decimal(product.price or 0)
        subtotal = price * item.quantity
        items.append({
            "product_id": product.id,
            "name": product.name,
            "category": product.category,
            "price": float(price),
            "image": product.image,
            "quantity": item.quantity,
            "subtotal": float(subtotal),
        })
        total_items += item.quantity
        total_price += subtotal

    return {
        "items": items,
        "total_items": total_items,
        "total_price": float(total_price),
    }


def add_item(db: Session, user_id: str, product_id: str, quantity: int = 1) -> dict:
    """Add quantity of a product, creating the cart or the line as needed"""
    _check_product_id(product_id)
    _check_quantity(quantity)

    if not db.query(Product).filter(Product.id == product_id).first():
        raise NotFoundError("Product not found")

    max_quantity = settings.MAX_LINE_QUANTITY

    def operation():
        cart = _load_cart(db, user_id)
        if cart is None:
            cart = Cart(user_id=user_id)
            db.add(cart)
            cart.items.append(CartItem(product_id=product_id, quantity=quantity))
        else:
            item = _find_item(cart, product_id)
            if item is None:
                cart.items.append(CartItem(product_id=product_id, quantity=quantity))
            elif item.quantity + quantity > max_quantity:
                raise ValidationError(f"Cannot hold more than {max_quantity} units of one product")
            else:
                item.quantity += quantity
        _touch(cart)

    _write(db, operation)
    return get_cart(db, user_id)


def update_quantity(db: Session, user_id: str, product_id: str, quantity: int) -> dict:
    """Set a line's quantity exactly; zero or less removes the line"""
    _check_product_id(product_id)
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("Quantity must be an integer")
    if quantity > settings.MAX_LINE_QUANTITY:
        raise ValidationError(f"Quantity must be at most {settings.MAX_LINE_QUANTITY}")

    def operation():
        cart = _load_cart(db, user_id)
        if cart is None:
            raise NotFoundError("Cart not found")

        item = _find_item(cart, product_id)
        if quantity <= 0:
            if item is None:
                return
            cart.items.remove(item)
        else:
            if item is None:
                raise NotFoundError("Item not in cart")
            item.quantity = quantity
        _touch(cart)

    _write(db, operation)
    return get_cart(db, user_id)


def remove_item(db: Session, user_id: str, product_id: str) -> dict:
    """Remove a line. Missing cart or line is not an error."""

    def operation():
        cart = _load_cart(db, user_id)
        if cart is None:
            return
        item = _find_item(cart, product_id)
        if item is None:
            return
        cart.items.remove(item)
        _touch(cart)

    _write(db, operation)
    return get_cart(db, user_id)


def clear_cart(db: Session, user_id: str) -> None:
    """Delete the cart. Missing cart is not an error."""

    def operation():
        cart = _load_cart(db, user_id)
        if cart is not None:
            db.delete(cart)

    _write(db, operation)


def purge_expired_carts(db: Session, now: Optional[datetime] = None) -> int:
    """Delete carts idle for longer than CART_TTL_DAYS. Returns how many went."""
    now = now or datetime.utcnow()
    cutoff = now - timedelta(days=settings.CART_TTL_DAYS)
    carts = db.query(Cart).filter(Cart.updated_at < cutoff).all()
    for cart in carts:
        db.delete(cart)
    try:
        db.commit()
    except StaleDataError:
        # A cart was touched meanwhile; it is no longer idle
        db.rollback()
        logger.warning("Cart purge raced with a cart update, will retry next run")
        return 0

    if carts:
        logger.info(f"Purged {len(carts)} expired carts")
    return len(carts)
