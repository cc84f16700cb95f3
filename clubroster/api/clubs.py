from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends

from ..core.context import RequestContext, get_request_context
from ..core.permission import Permission, require_permission
from ..models.users import User
from ..schemas.invitations import (
    InvitationBatchCreate,
    InvitationBatchResponse,
    InvitationListItem,
    InvitationResponse,
)
from ..services import invite_service
from ..services.invite_service import InviteRequest, IssuedInvite


router = APIRouter()


def issued_response(issued: IssuedInvite) -> InvitationResponse:
    invitation = issued.invitation
    return InvitationResponse(
        id=invitation.id,
        email=invitation.email,
        role=invitation.role,
        position=invitation.position,
        expires_at=invitation.expires_at,
        club_name=issued.club_name,
        invite_link=issued.invite_link,
    )


@router.post("/{club_id}/invites", response_model=InvitationBatchResponse)
async def create_invitations(
    club_id: int,
    body: InvitationBatchCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission(Permission.INVITE_OFFICERS)),
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Invite one or more officers to a club.

    All invitations are created together; one email per invitation is sent
    after the response. A failed email does not undo its invitation.
    """
    issued = invite_service.issue_invites(
        ctx,
        current_user,
        club_id,
        [InviteRequest(email=i.email, role=i.role, position=i.position) for i in body.invites],
    )
    for item in issued:
        background_tasks.add_task(invite_service.deliver_invite_email, ctx.mailer, item)

    return InvitationBatchResponse(invitations=[issued_response(i) for i in issued])


@router.get("/{club_id}/invites", response_model=List[InvitationListItem])
async def list_invitations(
    club_id: int,
    current_user: User = Depends(require_permission(Permission.INVITE_OFFICERS)),
    ctx: RequestContext = Depends(get_request_context),
):
    now = ctx.now()
    return [
        InvitationListItem(
            id=invitation.id,
            email=invitation.email,
            role=invitation.role,
            position=invitation.position,
            status=invitation.status_at(now),
            created_at=invitation.created_at,
            expires_at=invitation.expires_at,
            used_at=invitation.used_at,
        )
        for invitation in invite_service.list_club_invites(ctx, current_user, club_id)
    ]
