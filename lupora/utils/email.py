import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import List, NamedTuple
from lupora.config import settings

logger = logging.getLogger(__name__)


class EmailMessage(NamedTuple):
    to_email: str
    subject: str
    body: str


def send_email(message: EmailMessage) -> bool:
    """Send a plaintext email over SMTP. Errors propagate to the caller."""
    if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        logger.debug(f"Email not configured. Would send to {message.to_email}: {message.subject}")
        return False

    msg = MIMEMultipart()
    msg['From'] = settings.EMAIL_FROM
    msg['To'] = message.to_email
    msg['Subject'] = message.subject
    msg.attach(MIMEText(message.body, 'plain'))

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
        server.send_message(msg)
    return True


def _format_items(items: list) -> str:
    lines = []
    for item in items:
        lines.append(f"  - {item['name']} x{item['quantity']} @ Rs. {item['price']:,.2f} = Rs. {item['subtotal']:,.2f}")
    return "\n".join(lines)


def _format_address(address: dict) -> str:
    return (
        f"  {address.get('fullName', '')}\n"
        f"  {address.get('address', '')}\n"
        f"  {address.get('city', '')}, {address.get('state', '')} - {address.get('pincode', '')}\n"
        f"  Phone: {address.get('phone', '')}"
    )


def _payment_label(event: dict) -> str:
    method = "Cash on Delivery" if event["payment_method"] == "cod" else "Online (Razorpay)"
    return f"{method} ({event['payment_status']})"


def compose_order_emails(event: dict, owner_email: str) -> List[EmailMessage]:
    """
    Emails for a placed order: full details for the shop owner, and a
    customer-facing confirmation sent to the owner for forwarding (there is
    no direct customer mail channel).
    """
    customer = event["customer"]
    short_id = event["order_id"][-8:].upper()
    items = _format_items(event["items"])
    address = _format_address(event["shipping_address"])
    total = f"Rs. {event['total_amount']:,.2f}"

    owner_body = (
        f"New order received: #{short_id}\n"
        f"Order ID: {event['order_id']}\n"
        f"Placed at: {event['created_at']}\n\n"
        f"Customer: {customer['name']} <{customer['email']}>\n\n"
        f"Items:\n{items}\n\n"
        f"Total: {total}\n"
        f"Payment: {_payment_label(event)}\n\n"
        f"Ship to:\n{address}\n"
    )

    customer_body = (
        f"Please forward to: {customer['email']}\n"
        f"{'-' * 40}\n\n"
        f"Dear {customer['name']},\n\n"
        f"Thank you for shopping with Lupora. Your order #{short_id} has been placed.\n\n"
        f"Items:\n{items}\n\n"
        f"Total: {total}\n"
        f"Payment: {_payment_label(event)}\n\n"
        f"We will ship to:\n{address}\n\n"
        f"Warm regards,\nLupora Perfumes\n"
    )

    return [
        EmailMessage(owner_email, f"New Order #{short_id} - {total}", owner_body),
        EmailMessage(owner_email, f"[Forward to customer] Order Confirmation #{short_id}", customer_body),
    ]
