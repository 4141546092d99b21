# main.py
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from config import CORS_ORIGINS, PORT
from database import build_engine, build_session_factory, check_connection
from routers import access_router, invitations_router, properties_router, units_router
from services.errors import AccessDenied, DenyReason, MalformedIdentifierError, UnknownRoleError
from utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

# HTTP status per denial reason
DENIAL_STATUS = {
    DenyReason.NOT_A_MEMBER: status.HTTP_403_FORBIDDEN,
    DenyReason.INSUFFICIENT_ROLE: status.HTTP_403_FORBIDDEN,
    DenyReason.NOT_INVITEE: status.HTTP_403_FORBIDDEN,
    DenyReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    DenyReason.DUPLICATE_GRANT: status.HTTP_409_CONFLICT,
    DenyReason.ALREADY_ACCEPTED: status.HTTP_409_CONFLICT,
    DenyReason.INVALID_TRANSITION: status.HTTP_409_CONFLICT,
    DenyReason.LAST_OWNER: status.HTTP_409_CONFLICT,
    DenyReason.INVITATION_EXPIRED: status.HTTP_410_GONE,
    DenyReason.PROPERTY_DISABLED: status.HTTP_410_GONE,
}


def create_app(session_factory: Optional[sessionmaker] = None, jwt_secret: Optional[str] = None) -> FastAPI:
    """
    Build the application.

    Storage is injected: pass a session factory (tests do), or one is
    built from DATABASE_URL.
    """
    setup_logging()

    app = FastAPI(title="CondoEase Property Access")
    app.state.session_factory = session_factory or build_session_factory(build_engine())
    app.state.jwt_secret = jwt_secret

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AccessDenied)
    async def access_denied_handler(request: Request, exc: AccessDenied):
        return JSONResponse(
            status_code=DENIAL_STATUS.get(exc.reason, status.HTTP_403_FORBIDDEN),
            content={"error": exc.reason.value, "detail": exc.detail},
        )

    @app.exception_handler(UnknownRoleError)
    @app.exception_handler(MalformedIdentifierError)
    async def malformed_input_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "MALFORMED_INPUT", "detail": str(exc)},
        )

    @app.exception_handler(OperationalError)
    async def storage_unavailable_handler(request: Request, exc: OperationalError):
        logger.error("Storage unavailable on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "STORAGE_UNAVAILABLE", "detail": "Please retry"},
        )

    @app.get("/health", tags=["health"])
    def health():
        engine = app.state.session_factory.kw["bind"]
        return {"status": "ok", "database": "connected" if check_connection(engine) else "unavailable"}

    app.include_router(properties_router)
    app.include_router(access_router)
    app.include_router(invitations_router)
    app.include_router(units_router)

    return app


if __name__ == "__main__":
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=PORT, reload=True)
