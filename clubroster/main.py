import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel
from .core.config import get_settings
from .core.database import engine
from .core.errors import ClubRosterError, TransientFailure
from .api.auth import router as auth_router
from .api.clubs import router as club_router
from .api.invites import router as invite_router
from .api.super_admin import router as super_admin_router
from . import models  # noqa: F401  (registers tables on SQLModel.metadata)

settings = get_settings()
logger = logging.getLogger("clubroster")


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    )


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    create_db_and_tables()
    logger.info("ClubRoster API started")
    yield


app = FastAPI(
    title="ClubRoster API",
    description="API for club officer invitations and role assignment",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ClubRosterError)
async def club_roster_error_handler(request: Request, exc: ClubRosterError):
    if exc.cause is not None:
        logger.error("%s on %s %s: %r", exc.code, request.method, request.url.path, exc.cause)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(OperationalError)
async def database_unavailable_handler(request: Request, exc: OperationalError):
    logger.exception("Database unavailable on %s %s", request.method, request.url.path)
    error = TransientFailure()
    return JSONResponse(
        status_code=error.status_code,
        content={"detail": error.message, "code": error.code},
    )


@app.get("/api/health", tags=['Health Check'])
async def health_check():
    return {"status": "ok", "message": "ClubRoster API is running"}

app.include_router(auth_router, prefix='/api/auth', tags=['Authentication'])
app.include_router(invite_router, prefix='/api/invites', tags=['Invitations'])
app.include_router(club_router, prefix='/api/clubs', tags=['Club Invitations'])
app.include_router(super_admin_router, prefix='/api/super-admin', tags=['Super Admin'])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("clubroster.main:app", host="0.0.0.0", port=8000, reload=True)
