"""Certificate issuance and verification endpoints."""

from fastapi import APIRouter, status

from cookschool.api.dependencies import ActorDep, CertificatesDep
from cookschool.api.models import (
    APIResponse,
    CertificateResponse,
    CertificateVerificationResponse,
    certificate_to_response,
)

router = APIRouter(prefix="/certificates", tags=["certificates"])


@router.post(
    "/generate/{registration_id}",
    response_model=APIResponse[CertificateResponse],
    status_code=status.HTTP_201_CREATED,
)
def generate_certificate(
    registration_id: int, issuer: CertificatesDep, actor: ActorDep
) -> APIResponse[CertificateResponse]:
    """Issue the certificate for a completed, paid registration."""
    certificate = issuer.generate(registration_id, actor)
    return APIResponse(
        message="Certificate generated successfully",
        data=certificate_to_response(certificate),
    )


@router.get(
    "/verify/{certificate_number}",
    response_model=APIResponse[CertificateVerificationResponse],
)
def verify_certificate(
    certificate_number: str, issuer: CertificatesDep
) -> APIResponse[CertificateVerificationResponse]:
    """Confirm a certificate number. Public."""
    verification = issuer.verify(certificate_number)
    return APIResponse(
        message="Certificate verified successfully",
        data=CertificateVerificationResponse.model_validate(verification),
    )


@router.get("/{certificate_id}", response_model=APIResponse[CertificateResponse])
def get_certificate(
    certificate_id: int, issuer: CertificatesDep, actor: ActorDep
) -> APIResponse[CertificateResponse]:
    """Get a certificate by ID."""
    certificate = issuer.get(certificate_id, actor)
    return APIResponse(
        message="Certificate retrieved successfully",
        data=certificate_to_response(certificate),
    )
