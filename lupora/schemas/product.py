from typing import Optional
from pydantic import computed_field
from lupora.schemas.common import CamelModel


class ProductResponse(CamelModel):
    id: str
    name: str
    category: Optional[str] = None
    image: Optional[str] = None
    price: float
    description: Optional[str] = None

    @computed_field(alias="_id")
    @property
    def document_id(self) -> str:
        # The storefront addresses records by _id
        return self.id


class MediaResponse(CamelModel):
    id: str
    name: str
    type: Optional[str] = None
    url: str
