"""
Public invitation endpoints, reached from the link in an invitation email.

- `GET  /invites/{token}`           invite details for the choice page
- `POST /invites/{token}/register`  create an account from the invite
- `POST /invites/{token}/assign`    sign in and attach the invite to an existing account

None of these require a bearer token; the invite token is the credential.
"""
from fastapi import APIRouter, Depends

from ..core.context import RequestContext, get_request_context
from ..core.errors import InvalidInput
from ..schemas.invitations import (
    InviteAssignRequest,
    InviteConsumedResponse,
    InviteInfoResponse,
    InviteRegisterRequest,
)
from ..services import invite_service
from ..services.invite_service import ConsumedInvite


router = APIRouter()


def _consumed_response(result: ConsumedInvite) -> InviteConsumedResponse:
    return InviteConsumedResponse(
        message=result.message,
        user_id=result.user.id,
        role=result.user.role,
        club_id=result.club_id,
        club_name=result.club_name,
        redirect_path=result.redirect_path,
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        token_type=result.tokens.token_type,
        is_new_user=result.is_new_user,
        already_member=result.already_member,
    )


@router.get("/{token}", response_model=InviteInfoResponse)
async def get_invite(token: str, ctx: RequestContext = Depends(get_request_context)):
    info = invite_service.validate_invite(ctx, token)
    return InviteInfoResponse(
        club_name=info.club_name,
        role=info.role,
        role_display_name=info.role_display_name,
        position=info.position,
        email=info.email,
        expires_at=info.expires_at,
    )


@router.post("/{token}/register", response_model=InviteConsumedResponse)
async def register_from_invite(
    token: str,
    body: InviteRegisterRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    if body.password != body.confirm_password:
        raise InvalidInput("Passwords must match")
    if len(body.password) < ctx.settings.MIN_PASSWORD_LENGTH:
        raise InvalidInput(
            f"Password must be at least {ctx.settings.MIN_PASSWORD_LENGTH} characters"
        )

    result = invite_service.register_from_invite(
        ctx,
        token,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
    )
    return _consumed_response(result)


@router.post("/{token}/assign", response_model=InviteConsumedResponse)
async def assign_invite(
    token: str,
    body: InviteAssignRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    result = invite_service.assign_invite_to_existing_user(
        ctx, token, email=body.email, password=body.password
    )
    return _consumed_response(result)
