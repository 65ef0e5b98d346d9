from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from lupora.database import get_db
from lupora.api.deps import CurrentUser, get_current_user
from lupora.schemas.payment import PaymentIntentCreate, PaymentIntentResponse, PaymentVerify, PaymentVerifyResponse
from lupora.services import payment_service

router = APIRouter()


@router.post("/create-order", response_model=PaymentIntentResponse)
def create_payment_order(
    payment_data: PaymentIntentCreate,
    current_user: CurrentUser = Depends(get_current_user)
):
    """Create a gateway order the storefront opens checkout with"""
    return payment_service.create_payment_intent(payment_data.amount)


@router.post(
    "/verify",
    response_model=PaymentVerifyResponse,
    responses={400: {"model": PaymentVerifyResponse}},
)
def verify_payment(
    payment_data: PaymentVerify,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Verify the gateway's payment signature"""
    verified = payment_service.verify_signature(
        db,
        payment_data.razorpay_order_id,
        payment_data.razorpay_payment_id,
        payment_data.razorpay_signature,
    )
    if not verified:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=PaymentVerifyResponse(verified=False, message="Payment verification failed").model_dump(),
        )
    return PaymentVerifyResponse(verified=True, message="Payment verified")
