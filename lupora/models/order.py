from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from lupora.database import Base


class PaymentMethod(str, enum.Enum):
    COD = "cod"
    GATEWAY = "gateway"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class OrderStatus(str, enum.Enum):
    PLACED = "placed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Numeric(12, 2), nullable=False)
    shipping_address = Column(JSON, nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    order_status = Column(String(20), default=OrderStatus.PLACED.value, nullable=False)
    gateway_order_id = Column(String(100), nullable=True, index=True)
    gateway_payment_id = Column(String(100), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.position")


class OrderItem(Base):
    """Copy of a cart line taken at checkout; never follows later product edits."""
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, default=0, nullable=False)
    product_id = Column(String(36), nullable=False)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    image = Column(String(500), nullable=True)

    # Relationships
    order = relationship("Order", back_populates="items")

    @property
    def subtotal(self):
        return self.price * self.quantity


class CheckoutRequest(Base):
    """Dedup record for a client-supplied Idempotency-Key"""
    __tablename__ = "checkout_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    idempotency_key = Column(String(255), nullable=False)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    order = relationship("Order")

    __table_args__ = (
        UniqueConstraint('user_id', 'idempotency_key', name='uq_checkout_requests_user_key'),
    )
