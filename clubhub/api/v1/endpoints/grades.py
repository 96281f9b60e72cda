from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from clubhub.api.deps import get_fallback_reader, get_grading_service
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.common import ListResponse
from clubhub.schemas.membership import GradeRequest, GradeResponse, GradeSummaryResponse
from clubhub.services.grading_service import GradingService
from clubhub.services.read_fallback import FallbackReader

router = APIRouter()


@router.post("", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def grade_student(
    request: GradeRequest,
    current_user: User = Depends(get_current_user),
    grading: GradingService = Depends(get_grading_service),
):
    grade = await grading.grade_student(
        current_user.id,
        request.student_id,
        request.assessment_type,
        request.grade,
        level=request.level,
        comments=request.comments,
    )
    return GradeResponse.model_validate(grade)


@router.get("/student/{student_id}", response_model=ListResponse[GradeResponse])
async def student_grades(
    student_id: str,
    level: Optional[int] = Query(None, ge=1, le=5),
    current_user: User = Depends(get_current_user),
    grading: GradingService = Depends(get_grading_service),
    reader: FallbackReader = Depends(get_fallback_reader),
):
    result = await reader.read_list(
        grading.store.db,
        f"grades:{current_user.id}:{student_id}:{level or 'all'}",
        lambda: grading.get_student_grades(current_user.id, student_id, level),
        GradeResponse,
    )
    return ListResponse[GradeResponse].from_read(result)


@router.get("/student/{student_id}/summary", response_model=GradeSummaryResponse)
async def student_grade_summary(
    student_id: str,
    level: Optional[int] = Query(None, ge=1, le=5),
    current_user: User = Depends(get_current_user),
    grading: GradingService = Depends(get_grading_service),
):
    """Average and pass rate (grade >= pass threshold)"""
    summary = await grading.get_grade_summary(current_user.id, student_id, level)
    return GradeSummaryResponse(
        student_id=student_id,
        level=level,
        count=summary.count,
        average=summary.average,
        passed=summary.passed,
        pass_rate=summary.pass_rate,
        pass_threshold=summary.pass_threshold,
    )


@router.get("/given", response_model=ListResponse[GradeResponse])
async def grades_given(
    current_user: User = Depends(get_current_user),
    grading: GradingService = Depends(get_grading_service),
):
    rows = await grading.get_grades_by_tutor(current_user.id)
    return ListResponse[GradeResponse](
        items=[GradeResponse.model_validate(g) for g in rows], total=len(rows)
    )
