"""
identity_service tests

Covers the authentication backend in
``identity_platform.identity_platform.identity_service``:

- Sign-up and sign-in endpoints (`routes/auth.py`)
- Credential Store backends (`store.py`)
- Apple ID token verification (`apple.py`)
- Password hashing and session tokens (`auth.py`)
- Authentication event logging (`utils/event_logger.py`)
"""
