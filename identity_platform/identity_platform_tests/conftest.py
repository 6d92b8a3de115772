"""
Shared fixtures: an app wired to a file-backed SQLite credential store and a
fake Apple verifier.
"""
import pytest
from fastapi.testclient import TestClient

from identity_platform.identity_platform.identity_service.apple import AppleIdentity, AppleTokenError
from identity_platform.identity_platform.identity_service.config import Settings
from identity_platform.identity_platform.identity_service.main import create_app
from identity_platform.identity_platform.identity_service.store import SqlCredentialStore

JWT_SECRET = "test-secret"


class FakeAppleVerifier:
    """Accepts only the tokens registered in ``identities``."""

    def __init__(self):
        self.identities = {}
        self.calls = []

    def add(self, token: str, email: str, apple_user_id: str = "001234.apple.user") -> None:
        self.identities[token] = AppleIdentity(email=email, apple_user_id=apple_user_id)

    def verify(self, id_token: str) -> AppleIdentity:
        self.calls.append(id_token)
        if id_token not in self.identities:
            raise AppleTokenError("Invalid Apple ID token")
        return self.identities[id_token]


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        CREDENTIAL_STORE="sql",
        DATABASE_URL=f"sqlite:///{tmp_path}/credentials.db",
        JWT_SECRET=JWT_SECRET,
        BCRYPT_ROUNDS=4,
    )


@pytest.fixture
def store(settings):
    return SqlCredentialStore.from_settings(settings)


@pytest.fixture
def verifier():
    return FakeAppleVerifier()


@pytest.fixture
def client(settings, store, verifier):
    app = create_app(settings, store=store, verifier=verifier)
    with TestClient(app) as c:
        yield c
