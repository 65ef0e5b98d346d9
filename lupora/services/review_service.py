import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from lupora.models.review import Review
from lupora.services.catalog_service import get_product
from lupora.utils.errors import ConflictError

logger = logging.getLogger(__name__)


def list_reviews(db: Session, product_id: str) -> dict:
    """Reviews for a product, newest first, with the average rating"""
    product = get_product(db, product_id)
    reviews = db.query(Review).filter(
        Review.product_id == product.id
    ).order_by(Review.created_at.desc()).all()

    average = db.query(func.avg(Review.rating)).filter(Review.product_id == product.id).scalar()
    return {
        "reviews": reviews,
        "average_rating": round(float(average), 1) if average is not None else 0.0,
        "count": len(reviews),
    }


def add_review(db: Session, current_user, product_id: str, rating: int, comment: str = None) -> Review:
    """One review per user and product"""
    product = get_product(db, product_id)

    existing = db.query(Review).filter(
        Review.user_id == current_user.id,
        Review.product_id == product.id
    ).first()
    if existing:
        raise ConflictError("You have already reviewed this product")

    review = Review(
        user_id=current_user.id,
        product_id=product.id,
        user_name=current_user.name,
        rating=rating,
        comment=comment or None,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already reviewed this product")
    db.refresh(review)

    logger.info(f"User {current_user.id} reviewed product {product.id} ({rating}/5)")
    return review
