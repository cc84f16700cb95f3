"""
Pytest configuration and fixtures for ClubRoster tests
"""
import os

# Settings are read at import time, so the environment must be ready first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("MAIL_USERNAME", "mailer")
os.environ.setdefault("MAIL_PASSWORD", "mailer-password")
os.environ.setdefault("MAIL_FROM", "noreply@clubroster.test")
os.environ.setdefault("MAIL_SERVER", "smtp.clubroster.test")
os.environ.setdefault("APP_URL", "https://clubs.example.com")

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from unittest.mock import MagicMock

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from clubroster.core.config import get_settings
from clubroster.core.context import RequestContext, get_clock
from clubroster.core.database import get_session
from clubroster.core.security import create_access_token, get_password_hash
from clubroster.main import app
from clubroster.models import AuthIdentity, Club, ClubLeader, ClubStatus, User, UserRole
from clubroster.services.auth_provider import LocalAuthProvider
from clubroster.services.email_services import EmailService, get_email_service
from clubroster.services.redis_service import RedisService, get_redis_service


class FakeClock:
    """Controllable replacement for the request clock."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


def enforce_foreign_keys(engine):
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enforce_foreign_keys(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def file_engine(tmp_path):
    """File-backed database where every thread gets its own connection."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'clubroster.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    enforce_foreign_keys(engine)
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def mailer():
    return MagicMock(spec=EmailService)


@pytest.fixture
def redis_service():
    return RedisService(client=fakeredis.FakeRedis())


@pytest.fixture
def make_ctx(clock, mailer):
    def factory(session: Session) -> RequestContext:
        settings = get_settings()
        return RequestContext(
            session=session,
            settings=settings,
            auth=LocalAuthProvider(session, settings),
            mailer=mailer,
            clock=clock,
        )
    return factory


@pytest.fixture
def ctx(session, make_ctx):
    return make_ctx(session)


@pytest.fixture
def client(engine, clock, mailer, redis_service):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_email_service] = lambda: mailer
    app.dependency_overrides[get_redis_service] = lambda: redis_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_club(session):
    def factory(club_name: str = "Chess Club", id: Optional[int] = None,
                status: ClubStatus = ClubStatus.ACTIVE) -> Club:
        club = Club(id=id, club_name=club_name, status=status)
        session.add(club)
        session.commit()
        session.refresh(club)
        return club
    return factory


@pytest.fixture
def make_user(session):
    def factory(email: str, password: str = "secret-pass", role: UserRole = UserRole.ADMIN,
                clubs: Iterable[int] = (), first_name: str = "Test", last_name: str = "User") -> User:
        identity = AuthIdentity(email=email.lower(), password_hash=get_password_hash(password))
        session.add(identity)
        session.flush()
        user = User(auth_user_id=identity.id, first_name=first_name, last_name=last_name, role=role)
        session.add(user)
        session.flush()
        for club_id in clubs:
            session.add(ClubLeader(user_id=user.id, club_id=club_id, position="President"))
        session.commit()
        session.refresh(user)
        return user
    return factory


@pytest.fixture
def auth_headers():
    def factory(user: User) -> dict:
        token = create_access_token({"sub": str(user.auth_user_id)})
        return {"Authorization": f"Bearer {token}"}
    return factory


@pytest.fixture
def chess_club(make_club):
    return make_club("Chess Club", id=42)


@pytest.fixture
def super_admin(make_user):
    return make_user("root@clubs.example.com", role=UserRole.SUPER_ADMIN,
                     first_name="Sam", last_name="Root")


@pytest.fixture
def club_admin(make_user, chess_club):
    return make_user("lead@clubs.example.com", clubs=[chess_club.id],
                     first_name="Lee", last_name="Lead")
