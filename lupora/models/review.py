from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from lupora.database import Base


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_name = Column(String(50), nullable=False)  # Display name at the time of writing
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="reviews")

    __table_args__ = (
        UniqueConstraint('user_id', 'product_id', name='uq_reviews_user_product'),
        CheckConstraint('rating >= 1 AND rating <= 5', name='check_review_rating_range'),
    )
