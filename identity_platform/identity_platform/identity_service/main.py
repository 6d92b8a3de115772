"""
Identity Service - email/password and Apple Sign-In authentication
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .apple import AppleIdentityVerifier
from .config import Settings
from .routes import auth, health
from .store import CredentialStore, build_store

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part != "body"]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    return msg.removeprefix("Value error, ")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": _clean_message(err.get("msg", "Invalid value"))}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "errors": errors},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CredentialStore] = None,
    verifier: Optional[AppleIdentityVerifier] = None,
) -> FastAPI:
    """
    Build the application around an explicit configuration.

    The store and verifier are built from settings unless supplied.
    Serve with `uvicorn identity_platform.identity_platform.identity_service.main:create_app --factory`.
    """
    settings = settings or Settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        if settings.uses_default_secret:
            logger.warning("JWT_SECRET is not set; using the built-in development secret")
        logger.info("Identity Service started, routes mounted at %s", settings.API_PREFIX)
        yield

    app = FastAPI(
        title="Identity Service",
        description="Sign-up and sign-in with email/password or Apple Sign-In",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.store = store or build_store(settings)
    app.state.verifier = verifier or AppleIdentityVerifier.from_settings(settings)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(health.router)
    return app


if __name__ == "__main__":
    import uvicorn

    application = create_app()
    uvicorn.run(application, host="0.0.0.0", port=application.state.settings.PORT)
