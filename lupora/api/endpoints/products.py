from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session
from lupora.config import settings
from lupora.database import get_db
from lupora.schemas.product import ProductResponse, MediaResponse
from lupora.schemas.review import ReviewCreate, ReviewResponse, ReviewListResponse
from lupora.services import catalog_service, review_service
from lupora.api.deps import CurrentUser, get_current_user, get_catalog_cache
from lupora.utils.cache import TTLCache

router = APIRouter()
media_router = APIRouter()


def _cache_headers(response: Response, hit: bool) -> None:
    response.headers["Cache-Control"] = f"public, max-age={settings.CATALOG_CACHE_TTL_SECONDS}"
    response.headers["X-Cache"] = "HIT" if hit else "MISS"


@router.get("", response_model=List[ProductResponse])
def get_products(
    response: Response,
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_catalog_cache)
):
    """List the catalog"""
    products, hit = catalog_service.list_products(db, cache)
    _cache_headers(response, hit)
    return products


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: str, db: Session = Depends(get_db)):
    """Get product details"""
    return catalog_service.get_product(db, product_id)


@router.get("/{product_id}/reviews", response_model=ReviewListResponse)
def get_reviews(product_id: str, db: Session = Depends(get_db)):
    """Reviews for a product"""
    return review_service.list_reviews(db, product_id)


@router.post("/{product_id}/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_review(
    product_id: str,
    review_data: ReviewCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Review a product (once per user)"""
    return review_service.add_review(db, current_user, product_id, review_data.rating, review_data.comment)


@media_router.get("", response_model=List[MediaResponse])
def get_media(
    response: Response,
    db: Session = Depends(get_db),
    cache: TTLCache = Depends(get_catalog_cache)
):
    """List gallery media (videos)"""
    media, hit = catalog_service.list_media(db, cache)
    _cache_headers(response, hit)
    return media
