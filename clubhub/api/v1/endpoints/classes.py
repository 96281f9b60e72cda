from fastapi import APIRouter, Depends, status

from clubhub.api.deps import get_directory_service, get_fallback_reader
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.auth import UserResponse
from clubhub.schemas.common import ListResponse
from clubhub.schemas.directory import AssignTutorRequest, ClassCreate, ClassResponse, TutorClassResponse
from clubhub.schemas.membership import AttendanceResponse
from clubhub.services.directory_service import DirectoryService
from clubhub.services.read_fallback import FallbackReader

router = APIRouter()


@router.post("", response_model=ClassResponse, status_code=status.HTTP_201_CREATED)
async def create_class(
    class_data: ClassCreate,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    club_class = await directory.create_class(current_user.id, **class_data.model_dump())
    return ClassResponse.model_validate(club_class)


@router.get("", response_model=ListResponse[ClassResponse])
async def list_classes(
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
    reader: FallbackReader = Depends(get_fallback_reader),
):
    result = await reader.read_list(directory.store.db, "classes:all", directory.list_classes, ClassResponse)
    return ListResponse[ClassResponse].from_read(result)


@router.get("/mine", response_model=TutorClassResponse)
async def my_class(
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    """Tutor's assigned class with its students and attendance"""
    view = await directory.get_tutor_class(current_user.id)
    return TutorClassResponse(
        club_class=ClassResponse.model_validate(view.club_class),
        students=[UserResponse.from_user(s) for s in view.students],
        attendance=[AttendanceResponse.model_validate(a) for a in view.attendance],
    )


@router.post("/{class_id}/assign-tutor", response_model=ClassResponse)
async def assign_tutor(
    class_id: str,
    request: AssignTutorRequest,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    club_class = await directory.assign_tutor(current_user.id, class_id, request.tutor_id)
    return ClassResponse.model_validate(club_class)
