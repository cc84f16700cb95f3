import logging
from datetime import datetime, timezone, timedelta
from uuid import UUID
from jose import jwt, JWTError
from passlib.context import CryptContext
from .config import get_settings
from .database import get_session
from ..models.users import User
from ..services.redis_service import RedisService, get_redis_service
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session, select


logger = logging.getLogger(__name__)
settings = get_settings()
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
security = HTTPBearer()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(data: dict):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(
        days=settings.REFRESH_TOKEN_EXPIRE_DAYS
    )
    to_encode.update({"exp": expire, "type": "refresh"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def remaining_lifetime(payload: dict) -> int:
    """Seconds until the token's ``exp`` claim, never less than one."""
    exp = payload.get("exp")
    if not exp:
        return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    remaining = int(exp - datetime.now(timezone.utc).timestamp())
    return max(remaining, 1)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
    session: Session = Depends(get_session),
    redis_service: RedisService = Depends(get_redis_service),
) -> User:
    if redis_service.is_blacklisted(credentials.credentials):
        raise HTTPException(status_code=401, detail="Token has been revoked")

    try:
        payload = decode_token(credentials.credentials)
        auth_user_id = payload.get("sub")
        if not auth_user_id or payload.get("type") != "access":
            raise HTTPException(status_code=401, detail="Could not validate credentials")
        user = session.exec(
            select(User).where(User.auth_user_id == UUID(auth_user_id))
        ).first()
        if not user:
            raise HTTPException(status_code=401, detail="User account not found")
        return user
    except (JWTError, ValueError):
        logger.info("Rejected bearer token")
        raise HTTPException(status_code=401, detail="Could not validate credentials")
