"""
Club invitation lifecycle: issuance, validation and the two consumption paths.

An invitation is usable while ``now < expires_at`` and ``used_at`` is null.
Consumption is claimed with a single conditional UPDATE inside the same
transaction that creates the account, profile and club binding, so either
all of those rows are committed together or none are.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from pydantic.networks import validate_email
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from ..core.context import RequestContext
from ..core.errors import (
    AlreadyConsumed,
    ClubRosterError,
    EmailMismatch,
    Expired,
    InvalidInput,
    NotFound,
    RegistrationFailed,
    TransientFailure,
    Unauthorized,
    WeakPassword,
)
from ..core.permission import (
    Permission,
    can_manage_club,
    dashboard_path_for,
    grantable_roles,
    has_permission,
    role_display_name,
)
from ..models.clubs import Club
from ..models.invitations import Invitation
from ..models.types import UserRole
from ..models.users import User
from . import bindings
from .auth_provider import SessionTokens, normalize_email
from .email_services import EmailService

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
MAX_TOKEN_LENGTH = 128
MAX_POSITION_LENGTH = 64


@dataclass
class InviteRequest:
    email: str
    role: UserRole = UserRole.ADMIN
    position: Optional[str] = None


@dataclass
class IssuedInvite:
    invitation: Invitation
    club_name: Optional[str]
    invite_link: str

    @property
    def token(self) -> str:
        return self.invitation.token

    @property
    def role_name(self) -> str:
        return self.invitation.position or role_display_name(self.invitation.role)


@dataclass(frozen=True)
class InviteInfo:
    club_name: Optional[str]
    role: UserRole
    role_display_name: str
    position: Optional[str]
    email: str
    expires_at: datetime


@dataclass
class ConsumedInvite:
    user: User
    club_id: Optional[int]
    club_name: Optional[str]
    tokens: SessionTokens
    redirect_path: str
    message: str
    is_new_user: bool = False
    already_member: bool = False


# Helpers

def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


def _check_email(email: str) -> str:
    try:
        _, address = validate_email((email or "").strip())
    except ValueError:
        raise InvalidInput(f"Invalid email address: {email!r}")
    return normalize_email(address)


def _check_role(role) -> UserRole:
    try:
        return UserRole(role)
    except ValueError:
        raise InvalidInput(f"Unrecognized role: {role!r}")


def _check_position(position: Optional[str]) -> Optional[str]:
    if position is None:
        return None
    position = position.strip()
    if len(position) > MAX_POSITION_LENGTH:
        raise InvalidInput(f"Position must be at most {MAX_POSITION_LENGTH} characters")
    return position or None


def _build_link(ctx: RequestContext, invitation: Invitation) -> str:
    base = ctx.settings.APP_URL.rstrip("/")
    if invitation.club_id is None:
        return f"{base}/join-super-admin/{invitation.token}"
    return f"{base}/join-club/{invitation.token}"


def _expiry(ctx: RequestContext, now: datetime, ttl: Optional[timedelta]) -> datetime:
    if ttl is None:
        ttl = timedelta(days=ctx.settings.INVITE_EXPIRE_DAYS)
    if ttl <= timedelta(0):
        raise InvalidInput("Invitation lifetime must be positive")
    return now + ttl


def _get_club(ctx: RequestContext, club_id: int) -> Club:
    club = ctx.session.get(Club, club_id)
    if not club:
        raise NotFound("Club not found")
    return club


def _ensure_can_manage(ctx: RequestContext, issuer: User, club_id: int) -> None:
    led = bindings.leadership_clubs_for(ctx.session, issuer.id)
    if not can_manage_club(issuer.role, club_id, led):
        logger.warning("User %s denied access to club %s invitations", issuer.id, club_id)
        raise Unauthorized("You do not have permission to manage this club's invitations")


def _get_usable_invite(ctx: RequestContext, token: str, now: datetime) -> Invitation:
    if not token or len(token) > MAX_TOKEN_LENGTH:
        raise NotFound()
    invitation = ctx.session.exec(
        select(Invitation).where(Invitation.token == token)
    ).first()
    if not invitation:
        raise NotFound()
    # Expiry is reported ahead of consumption
    if invitation.is_expired(now):
        raise Expired()
    if invitation.is_consumed:
        raise AlreadyConsumed()
    return invitation


def _club_name_for(ctx: RequestContext, invitation: Invitation) -> Optional[str]:
    if invitation.club_id is None:
        return None
    return _get_club(ctx, invitation.club_id).club_name


def _claim(ctx: RequestContext, invitation: Invitation, now: datetime) -> None:
    """
    Mark the invitation consumed if and only if it is still usable.

    This is the only place ``used_at`` is written. Losing the race to a
    concurrent consumer (or to the clock) leaves the row untouched.
    """
    result = ctx.session.exec(
        update(Invitation)
        .where(
            Invitation.id == invitation.id,
            Invitation.used_at.is_(None),
            Invitation.expires_at > now,
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 1:
        return

    ctx.session.refresh(invitation)
    if invitation.is_expired(now):
        raise Expired()
    raise AlreadyConsumed()


def _commit(ctx: RequestContext, action: str) -> None:
    try:
        ctx.session.commit()
    except SQLAlchemyError as e:
        ctx.session.rollback()
        logger.exception("Database error while %s", action)
        raise TransientFailure(cause=e)


# Issuer

def issue_invites(
    ctx: RequestContext,
    issuer: User,
    club_id: int,
    invites: Sequence[InviteRequest],
    ttl: Optional[timedelta] = None,
) -> List[IssuedInvite]:
    """
    Create one invitation per request for ``club_id`` in a single transaction.

    Args:
        ctx: Request context
        issuer: Authenticated user issuing the invitations
        club_id: Club the invitees will lead
        invites: Email, role and optional position for each invitee
        ttl: Invitation lifetime, defaults to INVITE_EXPIRE_DAYS

    Returns:
        The persisted invitations with their links

    Raises:
        Unauthorized: issuer lacks rights over the club or over a requested role
        NotFound: club does not exist
        InvalidInput: empty batch, inactive club, bad email, role or position
    """
    if not invites:
        raise InvalidInput("At least one invitation is required")

    _ensure_can_manage(ctx, issuer, club_id)
    allowed_roles = grantable_roles(issuer.role)

    prepared = []
    for request in invites:
        role = _check_role(request.role)
        if role not in allowed_roles:
            raise Unauthorized(f"You cannot grant the {role.value} role")
        prepared.append((_check_email(request.email), role, _check_position(request.position)))

    club = _get_club(ctx, club_id)
    if not club.is_active:
        raise InvalidInput("Club is not active")

    now = ctx.now()
    expires_at = _expiry(ctx, now, ttl)
    invitations = []
    for email, role, position in prepared:
        invitation = Invitation(
            token=generate_token(),
            email=email,
            club_id=club.id,
            role=role,
            position=position,
            invited_by_id=issuer.id,
            created_at=now,
            expires_at=expires_at,
        )
        ctx.session.add(invitation)
        invitations.append(invitation)

    _commit(ctx, "issuing invitations")

    issued = []
    for invitation in invitations:
        ctx.session.refresh(invitation)
        logger.info(
            "Issued %s invitation %s for club %s (expires %s)",
            invitation.role.value, invitation.id, club.id, invitation.expires_at
        )
        issued.append(IssuedInvite(invitation, club.club_name, _build_link(ctx, invitation)))
    return issued


def issue_invite(
    ctx: RequestContext,
    issuer: User,
    club_id: int,
    email: str,
    role: UserRole = UserRole.ADMIN,
    position: Optional[str] = None,
    ttl: Optional[timedelta] = None,
) -> IssuedInvite:
    return issue_invites(ctx, issuer, club_id, [InviteRequest(email, role, position)], ttl)[0]


def issue_super_admin_invite(
    ctx: RequestContext,
    issuer: User,
    email: str,
    ttl: Optional[timedelta] = None,
) -> IssuedInvite:
    if not has_permission(issuer.role, Permission.GRANT_SUPER_ADMIN):
        raise Unauthorized("Only super admins can invite super admins")

    email = _check_email(email)
    if ctx.auth.get_identity_by_email(email):
        raise InvalidInput("A user with this email already exists in the system")

    now = ctx.now()
    pending = ctx.session.exec(
        select(Invitation).where(
            Invitation.email == email,
            Invitation.club_id.is_(None),
            Invitation.role == UserRole.SUPER_ADMIN,
            Invitation.used_at.is_(None),
            Invitation.expires_at > now,
        )
    ).first()
    if pending:
        raise InvalidInput("An invitation for this email already exists and is still valid")

    invitation = Invitation(
        token=generate_token(),
        email=email,
        role=UserRole.SUPER_ADMIN,
        invited_by_id=issuer.id,
        created_at=now,
        expires_at=_expiry(ctx, now, ttl),
    )
    ctx.session.add(invitation)
    _commit(ctx, "issuing a super admin invitation")
    ctx.session.refresh(invitation)
    logger.info("Issued super_admin invitation %s", invitation.id)
    return IssuedInvite(invitation, None, _build_link(ctx, invitation))


def deliver_invite_email(mailer: EmailService, issued: IssuedInvite) -> None:
    """Send the invitation email. Runs after the response; failures are only logged."""
    invitation = issued.invitation
    try:
        if issued.club_name is None:
            mailer.send_super_admin_invite(
                to_email=invitation.email,
                invite_link=issued.invite_link,
                expires_at=invitation.expires_at,
            )
        else:
            mailer.send_club_invite(
                to_email=invitation.email,
                club_name=issued.club_name,
                role_name=issued.role_name,
                invite_link=issued.invite_link,
                expires_at=invitation.expires_at,
            )
    except Exception:
        # No retry: the invitation stays valid and can be re-sent by the issuer
        logger.exception("Failed to deliver invitation %s", invitation.id)


# Validator

def validate_invite(ctx: RequestContext, token: str) -> InviteInfo:
    invitation = _get_usable_invite(ctx, token, ctx.now())
    return InviteInfo(
        club_name=_club_name_for(ctx, invitation),
        role=invitation.role,
        role_display_name=invitation.position or role_display_name(invitation.role),
        position=invitation.position,
        email=invitation.email,
        expires_at=invitation.expires_at,
    )


# Consumers

def register_from_invite(
    ctx: RequestContext,
    token: str,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
) -> ConsumedInvite:
    """
    Create a new account from an invitation and bind it to the invited club.

    Auth identity, profile, binding and consumption are one unit of work: a
    failure at any step rolls all of them back.
    """
    session = ctx.session
    now = ctx.now()

    invitation = _get_usable_invite(ctx, token, now)
    if normalize_email(email) != normalize_email(invitation.email):
        raise EmailMismatch()
    first_name, last_name = (first_name or "").strip(), (last_name or "").strip()
    if not first_name or not last_name:
        raise InvalidInput("All fields are required")
    if len(password or "") < ctx.settings.MIN_PASSWORD_LENGTH:
        raise WeakPassword(
            f"Password must be at least {ctx.settings.MIN_PASSWORD_LENGTH} characters"
        )
    club_name = _club_name_for(ctx, invitation)

    try:
        _claim(ctx, invitation, now)
        identity = ctx.auth.sign_up(email, password)
        user = User(
            auth_user_id=identity.id,
            first_name=first_name,
            last_name=last_name,
            role=invitation.role,
        )
        session.add(user)
        session.flush()

        if invitation.club_id is not None:
            bindings.bind(session, user.id, invitation.club_id, invitation.position)

        invitation.used_by_id = user.id
        session.add(invitation)
        session.commit()
    except ClubRosterError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Registration from invitation %s failed", invitation.id)
        raise RegistrationFailed(cause=e)

    session.refresh(user)
    logger.info("Registered user %s from invitation %s", user.id, invitation.id)
    role_name = invitation.position or role_display_name(invitation.role)
    message = (
        f"Account created! You've joined {club_name} as {role_name}"
        if club_name else f"Account created! You've joined as {role_name}"
    )
    return ConsumedInvite(
        user=user,
        club_id=invitation.club_id,
        club_name=club_name,
        tokens=ctx.auth.issue_session(identity),
        redirect_path=dashboard_path_for(user.role),
        message=message,
        is_new_user=True,
    )


def assign_invite_to_existing_user(
    ctx: RequestContext,
    token: str,
    email: str,
    password: str,
) -> ConsumedInvite:
    """
    Authenticate an existing account and bind it to the invited club.

    A user who already leads the club gets a successful result flagged
    ``already_member``; no second binding row is written.
    """
    session = ctx.session
    identity = ctx.auth.sign_in(email, password)

    now = ctx.now()
    invitation = _get_usable_invite(ctx, token, now)
    club_name = _club_name_for(ctx, invitation)

    try:
        _claim(ctx, invitation, now)

        user = session.exec(select(User).where(User.auth_user_id == identity.id)).first()
        created_profile = user is None
        if created_profile:
            user = User(
                auth_user_id=identity.id,
                first_name=identity.email.split("@")[0],
                last_name="",
                role=invitation.role,
            )
            session.add(user)
            session.flush()
        elif invitation.role == UserRole.SUPER_ADMIN and user.role != UserRole.SUPER_ADMIN:
            logger.info("Promoting user %s to super_admin", user.id)
            user.role = UserRole.SUPER_ADMIN
            session.add(user)

        outcome = None
        if invitation.club_id is not None:
            outcome = bindings.bind(session, user.id, invitation.club_id, invitation.position)

        invitation.used_by_id = user.id
        session.add(invitation)
        session.commit()
    except ClubRosterError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Assigning invitation %s failed", invitation.id)
        raise TransientFailure(cause=e)

    session.refresh(user)
    already_member = outcome == bindings.BindOutcome.ALREADY_BOUND
    role_name = invitation.position or role_display_name(invitation.role)
    if already_member:
        message = f"You are already a leader of {club_name}"
    elif club_name:
        message = f"Successfully joined {club_name} as {role_name}"
    else:
        message = f"Successfully joined as {role_name}"
    logger.info("Assigned invitation %s to user %s (%s)", invitation.id, user.id, outcome)

    return ConsumedInvite(
        user=user,
        club_id=invitation.club_id,
        club_name=club_name,
        tokens=ctx.auth.issue_session(identity),
        redirect_path=dashboard_path_for(user.role),
        message=message,
        is_new_user=created_profile,
        already_member=already_member,
    )


# Administration

def list_club_invites(ctx: RequestContext, issuer: User, club_id: int) -> List[Invitation]:
    _ensure_can_manage(ctx, issuer, club_id)
    _get_club(ctx, club_id)
    return list(ctx.session.exec(
        select(Invitation)
        .where(Invitation.club_id == club_id)
        .order_by(Invitation.created_at.desc())
    ).all())


def prune_expired_invites(ctx: RequestContext, issuer: User) -> int:
    """Delete invitations that expired without being used. Returns the number removed."""
    if not has_permission(issuer.role, Permission.MANAGE_INVITES):
        raise Unauthorized("Only super admins can prune invitations")

    result = ctx.session.exec(
        delete(Invitation)
        .where(
            Invitation.used_at.is_(None),
            Invitation.expires_at <= ctx.now(),
        )
        .execution_options(synchronize_session=False)
    )
    removed = result.rowcount
    _commit(ctx, "pruning expired invitations")
    logger.info("Pruned %d expired invitations", removed)
    return removed
