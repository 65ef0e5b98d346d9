from pydantic import AliasChoices, Field, computed_field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime
from lupora.models.order import PaymentMethod
from lupora.schemas.common import CamelModel, SanitizedStr


class ShippingAddress(CamelModel):
    full_name: SanitizedStr = Field(..., min_length=1, max_length=100)
    phone: SanitizedStr = Field(..., pattern=r"^\d{10}$")
    address: SanitizedStr = Field(..., min_length=1, max_length=300)
    city: SanitizedStr = Field(..., min_length=1, max_length=100)
    state: SanitizedStr = Field(..., min_length=1, max_length=100)
    pincode: SanitizedStr = Field(..., pattern=r"^\d{6}$")


class OrderCreate(CamelModel):
    shipping_address: ShippingAddress
    payment_method: PaymentMethod = PaymentMethod.COD
    gateway_order_id: Optional[str] = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("gatewayOrderId", "razorpayOrderId", "gateway_order_id"),
    )
    gateway_payment_id: Optional[str] = Field(
        default=None,
        max_length=100,
        validation_alias=AliasChoices("gatewayPaymentId", "razorpayPaymentId", "gateway_payment_id"),
    )

    @field_validator("payment_method", mode="before")
    @classmethod
    def _normalize_payment_method(cls, value):
        # The storefront names the gateway after its provider
        if isinstance(value, str):
            value = value.strip().lower()
            if value == "razorpay":
                return PaymentMethod.GATEWAY.value
        return value


class OrderItemResponse(CamelModel):
    product_id: str
    name: str
    price: float
    quantity: int
    image: Optional[str] = None
    subtotal: float


class OrderResponse(CamelModel):
    id: str
    items: List[OrderItemResponse] = Field(default_factory=list)
    total_amount: float
    shipping_address: Dict[str, Any]
    payment_method: str
    payment_status: str
    order_status: str
    gateway_order_id: Optional[str] = None
    gateway_payment_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @computed_field(alias="_id")
    @property
    def document_id(self) -> str:
        return self.id


class OrderCreatedResponse(CamelModel):
    message: str
    order_id: str
    order: OrderResponse
