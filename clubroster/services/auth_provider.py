import logging
from dataclasses import dataclass
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..core.config import Settings
from ..core.errors import DuplicateEmail, InvalidCredentials, WeakPassword
from ..core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
)
from ..models.users import AuthIdentity

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


@dataclass(frozen=True)
class SessionTokens:
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LocalAuthProvider:
    """
    Identity store backed by the application database.

    An instance is bound to the request's session, so identities it creates
    are committed or rolled back together with the rest of the request's
    unit of work. Nothing here commits.
    """

    def __init__(self, session: Session, settings: Settings):
        self.session = session
        self.settings = settings

    def get_identity_by_email(self, email: str):
        return self.session.exec(
            select(AuthIdentity).where(AuthIdentity.email == normalize_email(email))
        ).first()

    def sign_up(self, email: str, password: str) -> AuthIdentity:
        if len(password or "") < self.settings.MIN_PASSWORD_LENGTH:
            raise WeakPassword(
                f"Password must be at least {self.settings.MIN_PASSWORD_LENGTH} characters"
            )
        if self.get_identity_by_email(email):
            raise DuplicateEmail()

        identity = AuthIdentity(
            email=normalize_email(email),
            password_hash=get_password_hash(password),
        )
        self.session.add(identity)
        try:
            self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent sign-up for the same address
            raise DuplicateEmail(cause=e)
        logger.info("Created auth identity %s", identity.id)
        return identity

    def sign_in(self, email: str, password: str) -> AuthIdentity:
        identity = self.get_identity_by_email(email)
        if not identity or not identity.is_active or not verify_password(password, identity.password_hash):
            logger.info("Failed sign-in attempt")
            raise InvalidCredentials()
        return identity

    def issue_session(self, identity: AuthIdentity) -> SessionTokens:
        claims = {"sub": str(identity.id)}
        return SessionTokens(
            access_token=create_access_token(claims),
            refresh_token=create_refresh_token(claims),
        )
