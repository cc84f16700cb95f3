import logging
from enum import Enum
from typing import List, Optional, Set
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.permission import Permission, has_permission
from ..models.clubs import Club, ClubLeader
from ..models.types import ClubStatus
from ..models.users import User

logger = logging.getLogger(__name__)


class BindOutcome(str, Enum):
    BOUND = "bound"
    ALREADY_BOUND = "already_bound"


def bind(session: Session, user_id: UUID, club_id: int, position: Optional[str] = None) -> BindOutcome:
    """
    Record that ``user_id`` leads ``club_id``.

    Binding a pair that already exists is a successful no-op. The insert runs
    in a savepoint so that a concurrent duplicate only rolls back the insert
    itself, not the caller's transaction. Any other integrity failure (an
    unknown user or club) propagates. Does not commit.
    """
    if _is_bound(session, user_id, club_id):
        return BindOutcome.ALREADY_BOUND

    try:
        with session.begin_nested():
            session.add(ClubLeader(user_id=user_id, club_id=club_id, position=position))
    except IntegrityError:
        if not _is_bound(session, user_id, club_id):
            logger.error("Could not bind user %s to club %s", user_id, club_id)
            raise
        logger.info("Concurrent bind of user %s to club %s", user_id, club_id)
        return BindOutcome.ALREADY_BOUND

    logger.info("Bound user %s to club %s", user_id, club_id)
    return BindOutcome.BOUND


def _is_bound(session: Session, user_id: UUID, club_id: int) -> bool:
    return session.exec(
        select(ClubLeader).where(
            ClubLeader.user_id == user_id,
            ClubLeader.club_id == club_id
        )
    ).first() is not None


def leadership_clubs_for(session: Session, user_id: UUID) -> Set[int]:
    # Always read through to the database so a bind made earlier in the
    # same request is visible
    return set(session.exec(
        select(ClubLeader.club_id).where(ClubLeader.user_id == user_id)
    ).all())


def accessible_clubs(session: Session, user: User) -> List[Club]:
    """Active clubs the user may see: all of them for super admins, led ones for admins."""
    query = select(Club).where(Club.status == ClubStatus.ACTIVE).order_by(Club.club_name)

    if has_permission(user.role, Permission.MANAGE_ALL_CLUBS):
        return list(session.exec(query).all())
    if has_permission(user.role, Permission.VIEW_CLUBS):
        return list(session.exec(
            query.join(ClubLeader, ClubLeader.club_id == Club.id)
            .where(ClubLeader.user_id == user.id)
        ).all())
    return []
