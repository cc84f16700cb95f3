import logging
from fastapi import APIRouter, Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import JWTError
from sqlmodel import select

from ..core.context import RequestContext, get_request_context
from ..core.permission import dashboard_path_for
from ..core.security import decode_token, get_current_user, remaining_lifetime, security
from ..models.users import AuthIdentity, User
from ..schemas.auth import LoginRequest, TokenResponse
from ..schemas.users import ClubRead, CurrentUserResponse, UserRead
from ..services.bindings import accessible_clubs
from ..services.redis_service import RedisService, get_redis_service


router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=TokenResponse)
async def login(login_data: LoginRequest, ctx: RequestContext = Depends(get_request_context)):
    identity = ctx.auth.sign_in(login_data.email, login_data.password)

    user = ctx.session.exec(select(User).where(User.auth_user_id == identity.id)).first()
    if not user:
        logger.warning("Auth identity %s has no user profile", identity.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account not found. Please contact support.",
        )

    tokens = ctx.auth.issue_session(identity)
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        token_type=tokens.token_type,
        redirect_path=dashboard_path_for(user.role),
        user=UserRead.model_validate(user),
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
    ctx: RequestContext = Depends(get_request_context),
):
    identity = ctx.session.get(AuthIdentity, current_user.auth_user_id)
    return CurrentUserResponse(
        user=UserRead.model_validate(current_user),
        email=identity.email if identity else "",
        role=current_user.role,
        redirect_path=dashboard_path_for(current_user.role),
        clubs=[ClubRead.model_validate(club) for club in accessible_clubs(ctx.session, current_user)],
    )


@router.post("/logout")
async def logout(
    credentials: HTTPAuthorizationCredentials = Security(security),
    current_user: User = Depends(get_current_user),
    redis_service: RedisService = Depends(get_redis_service),
):
    try:
        expires_in = remaining_lifetime(decode_token(credentials.credentials))
    except JWTError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    redis_service.add_to_blacklist(credentials.credentials, expires_in)
    logger.info("User %s logged out", current_user.id)
    return {"message": "Logged out successfully"}
