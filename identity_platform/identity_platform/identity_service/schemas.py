from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator

from typing import List, Optional

from .models import CredentialRecord

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


def normalize_email(value: str) -> str:
    candidate = value.strip()
    try:
        validated = validate_email(candidate, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return validated.normalized.lower()


def _validate_new_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


class SignUpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    password: Optional[str] = None
    apple_id_token: Optional[str] = Field(default=None, alias="appleIdToken")
    display_name: Optional[str] = Field(default=None, alias="displayName", max_length=255)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalize_email(value)

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return _validate_new_password(value)

    @field_validator("apple_id_token")
    @classmethod
    def _check_apple_id_token(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Apple ID token must not be empty")
        return cleaned

    @field_validator("display_name")
    @classmethod
    def _clean_display_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    def missing_fields(self) -> List[str]:
        """Fields that are required because no Apple ID token was supplied."""
        if self.apple_id_token is not None:
            return []
        return [name for name in ("email", "password") if getattr(self, name) is None]


class SignInRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        return normalize_email(value)


class UserView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str
    identifier: str
    display_name: str = Field(alias="displayName", serialization_alias="displayName")

    @classmethod
    def from_record(cls, record: CredentialRecord) -> "UserView":
        return cls(email=record.email, identifier=record.identifier, display_name=record.display_name)


class AuthResponse(BaseModel):
    token: str
    user: UserView


class FieldError(BaseModel):
    field: str
    message: str


class ErrorResponse(BaseModel):
    message: str
    errors: Optional[List[FieldError]] = None
