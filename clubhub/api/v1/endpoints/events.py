from fastapi import APIRouter, Depends, status

from clubhub.api.deps import get_directory_service, get_fallback_reader
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.common import ListResponse, MessageResponse
from clubhub.schemas.directory import EventCreate, EventResponse, EventUpdate, RSVPResponse
from clubhub.services.directory_service import DirectoryService
from clubhub.services.read_fallback import FallbackReader

router = APIRouter()


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    event_data: EventCreate,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    """Create an event; a session code is generated for check-in"""
    event = await directory.create_event(current_user.id, **event_data.model_dump())
    return EventResponse.model_validate(event)


@router.get("", response_model=ListResponse[EventResponse])
async def list_events(
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
    reader: FallbackReader = Depends(get_fallback_reader),
):
    result = await reader.read_list(directory.store.db, "events:active", directory.list_events, EventResponse)
    return ListResponse[EventResponse].from_read(result)


@router.get("/rsvps/me", response_model=ListResponse[RSVPResponse])
async def my_rsvps(
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    rows = await directory.list_my_rsvps(current_user.id)
    return ListResponse[RSVPResponse](items=[RSVPResponse.model_validate(r) for r in rows], total=len(rows))


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    return EventResponse.model_validate(await directory.get_event(event_id))


@router.patch("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    changes: EventUpdate,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    event = await directory.update_event(current_user.id, event_id, changes.model_dump(exclude_unset=True))
    return EventResponse.model_validate(event)


@router.delete("/{event_id}", response_model=EventResponse)
async def deactivate_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    """Close the event for check-in. Attendance already recorded is kept."""
    return EventResponse.model_validate(await directory.deactivate_event(current_user.id, event_id))


@router.post("/{event_id}/rsvp", response_model=RSVPResponse)
async def rsvp(
    event_id: str,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    return RSVPResponse.model_validate(await directory.rsvp(current_user.id, event_id))


@router.delete("/{event_id}/rsvp", response_model=MessageResponse)
async def cancel_rsvp(
    event_id: str,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    removed = await directory.cancel_rsvp(current_user.id, event_id)
    return MessageResponse(success=removed, message="RSVP cancelled" if removed else "No RSVP to cancel")


@router.get("/{event_id}/rsvps", response_model=ListResponse[RSVPResponse])
async def event_rsvps(
    event_id: str,
    current_user: User = Depends(get_current_user),
    directory: DirectoryService = Depends(get_directory_service),
):
    rows = await directory.list_event_rsvps(current_user.id, event_id)
    return ListResponse[RSVPResponse](items=[RSVPResponse.model_validate(r) for r in rows], total=len(rows))
