import logging
from typing import List, Tuple
from sqlalchemy.orm import Session
from lupora.database import db_state
from lupora.models.product import Product, Media
from lupora.schemas.product import ProductResponse, MediaResponse
from lupora.utils.cache import TTLCache
from lupora.utils.errors import NotFoundError, ServiceUnavailableError, ValidationError
from lupora.utils.validation import is_valid_id

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "products"
MEDIA_KEY = "media"


def _require_connection() -> None:
    if not db_state.connected:
        logger.error("Database not connected yet")
        raise ServiceUnavailableError("Database not connected")


def list_products(db: Session, cache: TTLCache) -> Tuple[List[dict], bool]:
    """
    Return (products, cache_hit). A fresh cache entry is served without
    touching the database.
    """
    cached, fresh = cache.get(PRODUCTS_KEY)
    if fresh:
        return cached, True

    _require_connection()
    products = db.query(Product).order_by(Product.name.asc()).all()
    data = [ProductResponse.model_validate(p).model_dump(by_alias=True) for p in products]
    cache.put(PRODUCTS_KEY, data)
    logger.info(f"Loaded {len(data)} products from database")
    return data, False


def list_media(db: Session, cache: TTLCache) -> Tuple[List[dict], bool]:
    cached, fresh = cache.get(MEDIA_KEY)
    if fresh:
        return cached, True

    _require_connection()
    media = db.query(Media).order_by(Media.name.asc()).all()
    data = [MediaResponse.model_validate(m).model_dump(by_alias=True) for m in media]
    cache.put(MEDIA_KEY, data)
    logger.info(f"Loaded {len(data)} media items from database")
    return data, False


def get_product(db: Session, product_id: str) -> Product:
    if not is_valid_id(product_id):
        raise ValidationError("Invalid product ID")

    _require_connection()
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product
