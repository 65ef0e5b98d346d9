from sqlalchemy import Column, String, Numeric, Text, DateTime, CheckConstraint
import uuid
from datetime import datetime
from lupora.database import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, index=True)
    category = Column(String(100), nullable=True)
    image = Column(String(500), nullable=True)  # Asset path resolved by the front end
    price = Column(Numeric(10, 2), default=0, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint('price >= 0', name='check_price_non_negative'),
    )


class Media(Base):
    __tablename__ = "media"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=True)  # e.g. "video"
    url = Column(String(500), nullable=False)
