from fastapi import APIRouter, Depends, status

from clubhub.api.deps import get_attendance_service, get_fallback_reader
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.common import ListResponse
from clubhub.schemas.membership import AttendanceResponse, CheckInRequest, CheckInResponse
from clubhub.services.attendance_service import AttendanceService
from clubhub.services.read_fallback import FallbackReader

router = APIRouter()


@router.post("/check-in", response_model=CheckInResponse, status_code=status.HTTP_201_CREATED)
async def check_in(
    request: CheckInRequest,
    current_user: User = Depends(get_current_user),
    attendance: AttendanceService = Depends(get_attendance_service),
):
    """Check in to an event or class with its session code"""
    result = await attendance.check_in(current_user.id, request.session_code)
    return CheckInResponse(
        message=f"Checked in to {result.name}",
        attendance=AttendanceResponse.model_validate(result.attendance),
    )


@router.get("/me", response_model=ListResponse[AttendanceResponse])
async def my_attendance(
    current_user: User = Depends(get_current_user),
    attendance: AttendanceService = Depends(get_attendance_service),
    reader: FallbackReader = Depends(get_fallback_reader),
):
    result = await reader.read_list(
        attendance.store.db,
        f"attendance:{current_user.id}",
        lambda: attendance.get_user_attendance(current_user.id, current_user.id),
        AttendanceResponse,
    )
    return ListResponse[AttendanceResponse].from_read(result)


@router.get("/user/{user_id}", response_model=ListResponse[AttendanceResponse])
async def user_attendance(
    user_id: str,
    current_user: User = Depends(get_current_user),
    attendance: AttendanceService = Depends(get_attendance_service),
):
    rows = await attendance.get_user_attendance(current_user.id, user_id)
    return ListResponse[AttendanceResponse](
        items=[AttendanceResponse.model_validate(a) for a in rows], total=len(rows)
    )


@router.get("/event/{event_id}", response_model=ListResponse[AttendanceResponse])
async def event_attendance(
    event_id: str,
    current_user: User = Depends(get_current_user),
    attendance: AttendanceService = Depends(get_attendance_service),
):
    rows = await attendance.get_event_attendance(current_user.id, event_id)
    return ListResponse[AttendanceResponse](
        items=[AttendanceResponse.model_validate(a) for a in rows], total=len(rows)
    )


@router.get("/class/{class_name}", response_model=ListResponse[AttendanceResponse])
async def class_attendance(
    class_name: str,
    current_user: User = Depends(get_current_user),
    attendance: AttendanceService = Depends(get_attendance_service),
):
    rows = await attendance.get_class_attendance(current_user.id, class_name)
    return ListResponse[AttendanceResponse](
        items=[AttendanceResponse.model_validate(a) for a in rows], total=len(rows)
    )
