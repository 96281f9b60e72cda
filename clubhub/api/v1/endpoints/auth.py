from fastapi import APIRouter, Depends, HTTPException, status

from clubhub.api.deps import get_account_service
from clubhub.core.exceptions import UserNotFoundError
from clubhub.core.security import create_access_token, create_refresh_token, decode_token
from clubhub.models.user import User
from clubhub.modules.auth.dependencies import get_current_user
from clubhub.schemas.auth import LoginResponse, RefreshRequest, UserLogin, UserRegister, UserResponse
from clubhub.services.account_service import AccountService
from clubhub.services.access_policy import ensure_may_sign_in

router = APIRouter()


def _tokens_for(user: User) -> dict:
    # Role is informational for clients; the server never authorizes on it
    token_data = {"sub": str(user.id), "email": user.email, "role": user.role.value}
    return {
        "access_token": create_access_token(token_data),
        "refresh_token": create_refresh_token(token_data),
    }


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    accounts: AccountService = Depends(get_account_service),
):
    """Sign up as a student, committee member or tutor"""
    user = await accounts.register(
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
        role=user_data.role,
        student_id=user_data.student_id,
        phone=user_data.phone,
    )
    return UserResponse.from_user(user)


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: UserLogin,
    accounts: AccountService = Depends(get_account_service),
):
    user = await accounts.authenticate(credentials.email, credentials.password)
    return LoginResponse(**_tokens_for(user), user=UserResponse.from_user(user))


@router.post("/refresh", response_model=LoginResponse)
async def refresh(
    request: RefreshRequest,
    accounts: AccountService = Depends(get_account_service),
):
    payload = decode_token(request.refresh_token)
    if payload.get("type") != "refresh" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type"
        )
    try:
        user = await accounts.store.get_profile(payload["sub"])
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User profile not found. Please log out and log back in."
        )
    # An account rejected after login must not be able to mint fresh tokens
    ensure_may_sign_in(user)
    return LoginResponse(**_tokens_for(user), user=UserResponse.from_user(user))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return UserResponse.from_user(current_user)
