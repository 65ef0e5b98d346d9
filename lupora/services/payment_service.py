import hashlib
import hmac
import logging
import secrets
import requests
from sqlalchemy.orm import Session
from lupora.config import settings
from lupora.models.order import Order, PaymentStatus
from lupora.utils.errors import ServiceUnavailableError, ValidationError

logger = logging.getLogger(__name__)


def _require_credentials() -> None:
    if not settings.RAZORPAY_KEY_ID or not settings.RAZORPAY_KEY_SECRET:
        logger.error("Payment gateway credentials are not configured")
        raise ServiceUnavailableError("Payment gateway not configured")


def to_minor_units(amount: float) -> int:
    """Rupees to paise"""
    return int(round(amount * 100))


def create_payment_intent(amount: float) -> dict:
    """Create a gateway order for amount (rupees)"""
    if amount is None or amount <= 0:
        raise ValidationError("Amount must be greater than zero")
    _require_credentials()

    payload = {
        "amount": to_minor_units(amount),
        "currency": settings.PAYMENT_CURRENCY,
        "receipt": f"rcpt_{secrets.token_hex(8)}",
    }
    try:
        response = requests.post(
            f"{settings.RAZORPAY_API_URL}/orders",
            json=payload,
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET),
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError):
        logger.error("Payment gateway order creation failed", exc_info=True)
        raise ServiceUnavailableError("Payment gateway unavailable")

    logger.info(f"Created gateway order {data.get('id')} for {payload['amount']} {payload['currency']}")
    return {
        "order_id": data["id"],
        "amount": data.get("amount", payload["amount"]),
        "currency": data.get("currency", payload["currency"]),
    }


def compute_signature(order_ref: str, payment_ref: str, secret: str) -> str:
    """Hex HMAC-SHA256 of "order_ref|payment_ref", as the gateway signs it"""
    message = f"{order_ref}|{payment_ref}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(db: Session, order_ref: str, payment_ref: str, signature: str) -> bool:
    """
    Check the gateway's payment signature.

    On success the order carrying order_ref (if one exists yet) is marked
    paid. A mismatch returns False and changes nothing.
    """
    _require_credentials()

    expected = compute_signature(order_ref, payment_ref, settings.RAZORPAY_KEY_SECRET)
    if not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        logger.warning(f"Payment signature mismatch for gateway order {order_ref}")
        return False

    order = db.query(Order).filter(Order.gateway_order_id == order_ref).first()
    if order is not None:
        order.payment_status = PaymentStatus.PAID.value
        order.gateway_payment_id = payment_ref
        db.commit()
        logger.info(f"Order {order.id} marked paid ({payment_ref})")
    else:
        logger.info(f"Payment {payment_ref} verified before its order was placed")
    return True
