from fastapi import APIRouter, Depends

from clubhub.api.deps import get_fallback_reader, get_level_service
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.common import ListResponse
from clubhub.schemas.membership import (
    CertificateResponse,
    LevelDecisionResponse,
    LevelVerificationResponse,
    LevelVerifyRequest,
)
from clubhub.services.level_progression_service import LevelProgressionService
from clubhub.services.read_fallback import FallbackReader

router = APIRouter()


@router.post("/verify", response_model=LevelDecisionResponse)
async def verify_level_up(
    request: LevelVerifyRequest,
    current_user: User = Depends(get_current_user),
    levels: LevelProgressionService = Depends(get_level_service),
):
    """Tutor approves or rejects a student's move to the next level"""
    decision = await levels.verify_level_up(
        current_user.id, request.student_id, request.approved, request.tutor_notes
    )
    return LevelDecisionResponse(
        success=decision.success,
        outcome=decision.outcome.value,
        message=decision.message,
        current_level=decision.current_level,
        new_level=decision.new_level,
        certificate=CertificateResponse.model_validate(decision.certificate) if decision.certificate else None,
        verification=(
            LevelVerificationResponse.model_validate(decision.verification)
            if decision.verification else None
        ),
    )


@router.get("/{student_id}/verifications", response_model=ListResponse[LevelVerificationResponse])
async def level_verifications(
    student_id: str,
    current_user: User = Depends(get_current_user),
    levels: LevelProgressionService = Depends(get_level_service),
):
    rows = await levels.get_verifications(current_user.id, student_id)
    return ListResponse[LevelVerificationResponse](
        items=[LevelVerificationResponse.model_validate(v) for v in rows], total=len(rows)
    )


@router.get("/{student_id}/certificates", response_model=ListResponse[CertificateResponse])
async def certificates(
    student_id: str,
    current_user: User = Depends(get_current_user),
    levels: LevelProgressionService = Depends(get_level_service),
    reader: FallbackReader = Depends(get_fallback_reader),
):
    result = await reader.read_list(
        levels.store.db,
        f"certificates:{current_user.id}:{student_id}",
        lambda: levels.get_certificates(current_user.id, student_id),
        CertificateResponse,
    )
    return ListResponse[CertificateResponse].from_read(result)
