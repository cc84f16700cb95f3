from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from fastapi import Depends
from sqlmodel import Session

from .config import Settings, get_settings
from .database import get_session
from ..models.base import utcnow
from ..services.auth_provider import LocalAuthProvider
from ..services.email_services import EmailService, get_email_service


@dataclass
class RequestContext:
    """Collaborators for a single request, built fresh by `get_request_context`."""
    session: Session
    settings: Settings
    auth: LocalAuthProvider
    mailer: EmailService
    clock: Callable[[], datetime]

    def now(self) -> datetime:
        return self.clock()


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_request_context(
    session: Session = Depends(get_session),
    mailer: EmailService = Depends(get_email_service),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> RequestContext:
    settings = get_settings()
    return RequestContext(
        session=session,
        settings=settings,
        auth=LocalAuthProvider(session, settings),
        mailer=mailer,
        clock=clock,
    )
