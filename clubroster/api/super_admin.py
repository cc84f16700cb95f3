from fastapi import APIRouter, BackgroundTasks, Depends

from ..core.context import RequestContext, get_request_context
from ..core.permission import Permission, require_permission
from ..models.users import User
from ..schemas.invitations import InvitationResponse, PruneResponse, SuperAdminInvitationCreate
from ..services import invite_service
from .clubs import issued_response


router = APIRouter()


@router.post("/invites", response_model=InvitationResponse)
async def create_super_admin_invitation(
    body: SuperAdminInvitationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(require_permission(Permission.GRANT_SUPER_ADMIN)),
    ctx: RequestContext = Depends(get_request_context),
):
    issued = invite_service.issue_super_admin_invite(ctx, current_user, body.email)
    background_tasks.add_task(invite_service.deliver_invite_email, ctx.mailer, issued)
    return issued_response(issued)


@router.delete("/invites/expired", response_model=PruneResponse)
async def prune_expired_invitations(
    current_user: User = Depends(require_permission(Permission.MANAGE_INVITES)),
    ctx: RequestContext = Depends(get_request_context),
):
    return PruneResponse(removed=invite_service.prune_expired_invites(ctx, current_user))
