"""
Membership payments.

- POST /payments/process  member pays for themself
- POST /payments/record   desk records an offline payment for a member
"""

from fastapi import APIRouter, Depends

from clubhub.api.deps import get_fallback_reader, get_payment_service
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.common import ListResponse
from clubhub.schemas.membership import (
    PaymentResponse,
    PaymentResultResponse,
    ProcessPaymentRequest,
    RecordPaymentRequest,
)
from clubhub.services.payment_service import PaymentResult, PaymentService
from clubhub.services.read_fallback import FallbackReader

router = APIRouter()


def _result_response(result: PaymentResult) -> PaymentResultResponse:
    return PaymentResultResponse(
        payment=PaymentResponse.model_validate(result.payment),
        new_expiry=result.new_expiry,
        membership_level=result.membership_level,
    )


@router.post("/process", response_model=PaymentResultResponse)
async def process_payment(
    request: ProcessPaymentRequest,
    current_user: User = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    result = await payments.process_payment(
        current_user.id,
        amount=request.amount,
        payment_method=request.payment_method,
        reference_number=request.reference_number,
        payment_type=request.payment_type,
    )
    return _result_response(result)


@router.post("/record", response_model=PaymentResultResponse)
async def record_payment(
    request: RecordPaymentRequest,
    current_user: User = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    result = await payments.record_payment(
        current_user.id, request.user_id, request.amount, request.payment_type
    )
    return _result_response(result)


@router.get("/me", response_model=ListResponse[PaymentResponse])
async def my_payments(
    current_user: User = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
    reader: FallbackReader = Depends(get_fallback_reader),
):
    result = await reader.read_list(
        payments.store.db,
        f"payments:{current_user.id}",
        lambda: payments.get_payments(current_user.id, current_user.id),
        PaymentResponse,
    )
    return ListResponse[PaymentResponse].from_read(result)


@router.get("/user/{user_id}", response_model=ListResponse[PaymentResponse])
async def user_payments(
    user_id: str,
    current_user: User = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    rows = await payments.get_payments(current_user.id, user_id)
    return ListResponse[PaymentResponse](
        items=[PaymentResponse.model_validate(p) for p in rows], total=len(rows)
    )


@router.get("", response_model=ListResponse[PaymentResponse])
async def all_payments(
    current_user: User = Depends(get_current_user),
    payments: PaymentService = Depends(get_payment_service),
):
    rows = await payments.list_all_payments(current_user.id)
    return ListResponse[PaymentResponse](
        items=[PaymentResponse.model_validate(p) for p in rows], total=len(rows)
    )
