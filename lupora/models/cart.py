from sqlalchemy import Column, Integer, DateTime, ForeignKey, String, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from lupora.database import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False, index=True)
    # Bumped on every write; a stale version makes the UPDATE match no rows
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="cart")
    items = relationship("CartItem", back_populates="cart", cascade="all, delete-orphan", order_by="CartItem.created_at")

    __mapper_args__ = {"version_id_col": version}


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    # Not a foreign key: products can disappear and the line is dropped on read
    product_id = Column(String(36), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    cart = relationship("Cart", back_populates="items")

    __table_args__ = (
        UniqueConstraint('cart_id', 'product_id', name='uq_cart_items_cart_product'),
        CheckConstraint('quantity >= 1', name='check_cart_item_quantity_positive'),
    )
