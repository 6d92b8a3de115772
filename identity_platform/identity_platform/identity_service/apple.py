"""
Apple Sign-In identity token verification.
"""
from dataclasses import dataclass
from typing import Any, Optional
import logging

import jwt
from jwt import PyJWKClient
from jwt.exceptions import InvalidTokenError, PyJWKClientConnectionError, PyJWKClientError

from .config import Settings
from .schemas import normalize_email

logger = logging.getLogger(__name__)

APPLE_ISSUER = "https://appleid.apple.com"
APPLE_KEYS_URL = "https://appleid.apple.com/auth/keys"


class AppleTokenError(Exception):
    """The identity token was rejected (bad signature, expired, wrong audience, missing claims)."""


class AppleServiceError(Exception):
    """Apple's signing keys could not be fetched."""


@dataclass(frozen=True)
class AppleIdentity:
    email: str
    apple_user_id: str


class AppleIdentityVerifier:
    def __init__(
        self,
        client_id: str,
        issuer: str = APPLE_ISSUER,
        keys_url: str = APPLE_KEYS_URL,
        timeout: int = 5,
        jwk_client: Optional[Any] = None,
    ):
        self.client_id = client_id
        self.issuer = issuer
        self.jwk_client = jwk_client or PyJWKClient(keys_url, timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppleIdentityVerifier":
        return cls(
            client_id=settings.APPLE_CLIENT_ID,
            issuer=settings.APPLE_ISSUER,
            keys_url=settings.APPLE_KEYS_URL,
            timeout=settings.APPLE_VERIFY_TIMEOUT_SECONDS,
        )

    def verify(self, id_token: str) -> AppleIdentity:
        """
        Exchange an Apple ID token for the verified email it carries.

        Raises:
            AppleTokenError: If the token is invalid or lacks an email
            AppleServiceError: If the key endpoint is unreachable
        """
        try:
            signing_key = self.jwk_client.get_signing_key_from_jwt(id_token).key
            payload = jwt.decode(
                id_token,
                signing_key,
                algorithms=["RS256"],
                audience=self.client_id,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except PyJWKClientConnectionError as e:
            logger.error("Could not fetch Apple signing keys: %s", e)
            raise AppleServiceError("Apple signing keys are unavailable") from e
        except (PyJWKClientError, InvalidTokenError) as e:
            logger.warning("Apple token verification failed: %s", e)
            raise AppleTokenError("Invalid Apple ID token") from e

        email = payload.get("email")
        if not isinstance(email, str) or not email.strip():
            raise AppleTokenError("Apple ID token carries no email")

        # Apple sends this claim as either a bool or the string "true"/"false"
        email_verified = payload.get("email_verified", True)
        if str(email_verified).lower() != "true":
            raise AppleTokenError("Apple ID email is not verified")

        # Same normalization as the password path, so one mailbox maps to one key
        try:
            normalized = normalize_email(email)
        except ValueError as e:
            raise AppleTokenError("Apple ID token carries an invalid email") from e

        return AppleIdentity(email=normalized, apple_user_id=payload["sub"])
