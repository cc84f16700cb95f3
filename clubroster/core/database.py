from sqlmodel import create_engine, Session
from .config import get_settings


settings = get_settings()

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)

def get_session():
    with Session(engine) as session:
        yield session
