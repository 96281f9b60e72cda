"""
Admin membership controls.

Every route re-checks the caller's stored role in AccountService; the token's
role claim is not consulted.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from clubhub.api.deps import get_account_service
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.admin import (
    LevelResetRequest,
    MembershipResetResponse,
    RoleUpdateRequest,
    StatsResponse,
    VerifyAccountRequest,
)
from clubhub.schemas.auth import UserResponse
from clubhub.schemas.common import ListResponse
from clubhub.services.account_service import AccountService

router = APIRouter()


@router.get("/users", response_model=ListResponse[UserResponse])
async def list_users(
    role: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    users = await accounts.list_users(current_user.id, role)
    return ListResponse[UserResponse](items=[UserResponse.from_user(u) for u in users], total=len(users))


@router.get("/verifications/pending", response_model=ListResponse[UserResponse])
async def pending_verifications(
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    users = await accounts.list_pending_verifications(current_user.id)
    return ListResponse[UserResponse](items=[UserResponse.from_user(u) for u in users], total=len(users))


@router.post("/users/{user_id}/verify", response_model=UserResponse)
async def verify_account(
    user_id: str,
    request: VerifyAccountRequest,
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    return UserResponse.from_user(await accounts.verify_account(current_user.id, user_id, request.approved))


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: str,
    request: RoleUpdateRequest,
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    return UserResponse.from_user(await accounts.update_role(current_user.id, user_id, request.role))


@router.patch("/users/{user_id}/level", response_model=UserResponse)
async def reset_level(
    user_id: str,
    request: LevelResetRequest,
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    return UserResponse.from_user(await accounts.reset_level(current_user.id, user_id, request.level))


@router.post("/memberships/reset", response_model=MembershipResetResponse)
async def reset_all_memberships(
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    """Expire every non-admin membership"""
    count = await accounts.reset_all_memberships(current_user.id)
    return MembershipResetResponse(reset_count=count)


@router.get("/stats", response_model=StatsResponse)
async def stats(
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    return StatsResponse(**await accounts.get_stats(current_user.id))
