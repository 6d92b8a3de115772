"""
Sign-up and sign-in endpoints.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError

from ..apple import AppleIdentityVerifier, AppleTokenError
from ..auth import burn_password_check, create_access_token, hash_password, verify_password
from ..config import Settings
from ..models import CredentialRecord
from ..schemas import AuthResponse, ErrorResponse, SignInRequest, SignUpRequest, UserView
from ..store import CredentialExistsError, CredentialStore
from ..utils.event_logger import log_auth_event

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)

USER_EXISTS = "User already exists"
INVALID_CREDENTIALS = "Invalid email or password"
INVALID_APPLE_TOKEN = "Invalid Apple ID token"
APPLE_EMAIL_MISMATCH = "Email does not match Apple ID token"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> CredentialStore:
    return request.app.state.store


def get_verifier(request: Request) -> AppleIdentityVerifier:
    return request.app.state.verifier


def issue_session_token(record: CredentialRecord, settings: Settings) -> str:
    return create_access_token(
        record.identifier,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid input or user already exists", "model": ErrorResponse},
        401: {"description": "Apple ID token rejected", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
    },
)
def signup(
    payload: SignUpRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    store: CredentialStore = Depends(get_store),
    verifier: AppleIdentityVerifier = Depends(get_verifier),
):
    missing = payload.missing_fields()
    if missing:
        raise RequestValidationError(
            [{"type": "missing", "loc": ("body", name), "msg": "Field required", "input": None} for name in missing]
        )

    email = payload.email
    try:
        apple_user_id = None
        if payload.apple_id_token is not None:
            try:
                identity = verifier.verify(payload.apple_id_token)
            except AppleTokenError as e:
                log_auth_event("signup_failure", email, request, reason="invalid_apple_token")
                raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_APPLE_TOKEN) from e

            if email is not None and email != identity.email:
                log_auth_event("signup_failure", email, request, reason="apple_email_mismatch")
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=APPLE_EMAIL_MISMATCH)
            email = identity.email
            apple_user_id = identity.apple_user_id

        # Early exit only; the conditional insert below is what guarantees uniqueness
        if store.get(email) is not None:
            log_auth_event("signup_failure", email, request, reason="duplicate")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USER_EXISTS)

        password_hash = None
        if payload.password is not None:
            password_hash = hash_password(payload.password, settings.BCRYPT_ROUNDS)

        record = CredentialRecord.new(
            email=email,
            password_hash=password_hash,
            display_name=payload.display_name or settings.DEFAULT_DISPLAY_NAME,
            apple_user_id=apple_user_id,
        )
        try:
            store.create(record)
        except CredentialExistsError as e:
            log_auth_event("signup_failure", email, request, reason="duplicate")
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=USER_EXISTS) from e

        token = issue_session_token(record, settings)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Sign-up error for email=%s", email)
        log_auth_event("signup_failure", email, request, reason="internal_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sign up"
        ) from e

    log_auth_event("signup_success", record.email, request, identifier=record.identifier)
    return AuthResponse(token=token, user=UserView.from_record(record))


@router.post(
    "/signin",
    response_model=AuthResponse,
    responses={
        400: {"description": "Invalid input or credentials", "model": ErrorResponse},
        500: {"description": "Internal server error", "model": ErrorResponse},
    },
)
def signin(
    credentials: SignInRequest,
    request: Request,
    settings: Settings = Depends(get_settings),
    store: CredentialStore = Depends(get_store),
):
    try:
        record = store.find_by_email(credentials.email)
        if record is None or not record.password_hash:
            burn_password_check(credentials.password, settings.BCRYPT_ROUNDS)
            is_valid = False
        else:
            is_valid = verify_password(credentials.password, record.password_hash)

        if not is_valid:
            reason = "unknown_email" if record is None else "bad_password"
            log_auth_event("signin_failure", credentials.email, request, reason=reason)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=INVALID_CREDENTIALS)

        token = issue_session_token(record, settings)

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("Sign-in error for email=%s", credentials.email)
        log_auth_event("signin_failure", credentials.email, request, reason="internal_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sign in"
        ) from e

    log_auth_event("signin_success", record.email, request, identifier=record.identifier)
    return AuthResponse(token=token, user=UserView.from_record(record))
