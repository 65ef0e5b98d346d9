from pydantic import StrictInt
from typing import List, Optional
from uuid import UUID
from lupora.schemas.common import CamelModel


class CartItemAdd(CamelModel):
    product_id: UUID
    # Range is checked by the cart service so the limit stays configurable
    quantity: StrictInt = 1


class CartItemUpdate(CamelModel):
    product_id: UUID
    quantity: StrictInt


class CartItemResponse(CamelModel):
    product_id: str
    name: str
    category: Optional[str] = None
    price: float
    image: Optional[str] = None
    quantity: int
    subtotal: float


class CartResponse(CamelModel):
    items: List[CartItemResponse]
    total_items: int
    total_price: float
