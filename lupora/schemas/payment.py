from pydantic import AliasChoices, BaseModel, Field
from typing import Optional
from lupora.schemas.common import CamelModel


class PaymentIntentCreate(CamelModel):
    amount: float = Field(..., gt=0, le=10_000_000)  # Rupees


class PaymentIntentResponse(CamelModel):
    order_id: str
    amount: int  # Paise
    currency: str


class PaymentVerify(BaseModel):
    # The gateway checkout callback hands these over in snake_case
    razorpay_order_id: str = Field(
        ..., min_length=1, max_length=100,
        validation_alias=AliasChoices("razorpay_order_id", "orderRef", "gatewayOrderId"),
    )
    razorpay_payment_id: str = Field(
        ..., min_length=1, max_length=100,
        validation_alias=AliasChoices("razorpay_payment_id", "paymentRef", "gatewayPaymentId"),
    )
    razorpay_signature: str = Field(
        ..., min_length=1, max_length=256,
        validation_alias=AliasChoices("razorpay_signature", "signature"),
    )


class PaymentVerifyResponse(BaseModel):
    verified: bool
    message: Optional[str] = None
