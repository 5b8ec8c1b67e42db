"""Payment submission, review and reporting endpoints."""

from datetime import date, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Body, File, Form, Query, UploadFile, status

from cookschool.api.dependencies import ActorDep, PaymentsDep
from cookschool.api.models import (
    APIResponse,
    PaymentDetailResponse,
    PaymentReportResponse,
    PaymentResponse,
    PaymentVerifyRequest,
    WebhookAck,
    payment_detail_to_response,
    payment_report_to_response,
)
from cookschool.api.uploads import read_upload
from cookschool.payments import MAX_PROOF_BYTES
from cookschool.store import VerificationStatus

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "",
    response_model=APIResponse[PaymentResponse],
    status_code=status.HTTP_201_CREATED,
)
def submit_payment(
    registration_id: Annotated[int, Form()],
    transaction_id: Annotated[str, Form(max_length=100)],
    payment_date: Annotated[datetime, Form()],
    payment_proof: Annotated[UploadFile, File()],
    workflow: PaymentsDep,
    actor: ActorDep,
) -> APIResponse[PaymentResponse]:
    """Submit proof of payment for a registration (multipart form)."""
    payment = workflow.submit(
        registration_id=registration_id,
        transaction_id=transaction_id,
        payment_date=payment_date,
        proof=read_upload(payment_proof, MAX_PROOF_BYTES),
        actor=actor,
    )
    return APIResponse(
        message="Payment submitted successfully, awaiting verification",
        data=PaymentResponse.model_validate(payment),
    )


@router.post("/webhook", response_model=APIResponse[WebhookAck])
def payment_webhook(
    workflow: PaymentsDep, payload: Annotated[dict[str, Any], Body()]
) -> APIResponse[WebhookAck]:
    """Gateway callback. Public; the payload is only logged."""
    workflow.handle_webhook(payload)
    return APIResponse(message="Webhook received", data=WebhookAck())


@router.get("/report", response_model=APIResponse[PaymentReportResponse])
def payment_report(
    workflow: PaymentsDep,
    actor: ActorDep,
    status_filter: VerificationStatus | None = Query(default=None, alias="status"),
    start_date: date | None = None,
    end_date: date | None = None,
    course_id: int | None = None,
    limit: int = Query(default=15, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> APIResponse[PaymentReportResponse]:
    """Payments with amount totals, filtered by status, date range and course."""
    report = workflow.report(
        actor,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        course_id=course_id,
        limit=limit,
        offset=offset,
    )
    return APIResponse(
        message="Payment report generated successfully",
        data=payment_report_to_response(report),
    )


@router.get("/{payment_id}", response_model=APIResponse[PaymentDetailResponse])
def get_payment(
    payment_id: int, workflow: PaymentsDep, actor: ActorDep
) -> APIResponse[PaymentDetailResponse]:
    """Get a payment with its student and course."""
    payment = workflow.get(payment_id, actor)
    return APIResponse(
        message="Payment retrieved successfully",
        data=payment_detail_to_response(payment),
    )


@router.put("/{payment_id}/verify", response_model=APIResponse[PaymentResponse])
def verify_payment(
    payment_id: int, review: PaymentVerifyRequest, workflow: PaymentsDep, actor: ActorDep
) -> APIResponse[PaymentResponse]:
    """Verify or reject a pending payment."""
    payment = workflow.verify(
        payment_id, review.status, actor, rejection_reason=review.rejection_reason
    )
    return APIResponse(
        message=f"Payment {payment.verification_status} successfully",
        data=PaymentResponse.model_validate(payment),
    )
