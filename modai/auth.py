"""Local account store.

Passwords are kept in plaintext next to the user records. This mirrors the
demo sign-in flow of the web UI and is not meant for production use.
"""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from .kvstore import AUTH_KEY, USERS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@modai.com"
DEMO_PASSWORD = "demo123"

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AuthError(ValueError):
    pass


class User(BaseModel):
    id: str = Field(default_factory=lambda: f"user_{uuid.uuid4().hex[:12]}")
    email: str
    name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserRecord(BaseModel):
    user: User
    password: str


class AuthState(BaseModel):
    user: Optional[User] = None
    is_authenticated: bool = False


class PasswordCheck(BaseModel):
    is_valid: bool
    errors: list[str]
    strength: Literal["weak", "medium", "strong"]


DEMO_USER = User(id="demo_user", email=DEMO_EMAIL, name="Demo User")


def validate_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def validate_password(password: str) -> tuple[bool, list[str]]:
    errors = []
    if len(password) < 6:
        errors.append("Password must be at least 6 characters long")
    if not re.search(r"[A-Za-z]", password):
        errors.append("Password must contain at least one letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    return not errors, errors


def password_strength(password: str) -> str:
    score = sum([
        len(password) >= 8,
        bool(re.search(r"[a-z]", password)),
        bool(re.search(r"[A-Z]", password)),
        bool(re.search(r"[0-9]", password)),
        bool(re.search(r"[^A-Za-z0-9]", password)),
    ])
    if score < 3:
        return "weak"
    if score < 5:
        return "medium"
    return "strong"


def check_password(password: str) -> PasswordCheck:
    is_valid, errors = validate_password(password)
    return PasswordCheck(
        is_valid=is_valid, errors=errors, strength=password_strength(password)
    )


class AuthService:
    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv
        self.state = self._load_state()

    def _load_state(self) -> AuthState:
        raw = self._kv.get(AUTH_KEY)
        if not raw:
            return AuthState()
        try:
            return AuthState.model_validate_json(raw)
        except ValidationError as e:
            logger.error("Failed to load auth state: %s", e)
            self._kv.delete(AUTH_KEY)
            return AuthState()

    def _save_state(self) -> None:
        try:
            self._kv.set(AUTH_KEY, self.state.model_dump_json())
        except Exception as e:
            logger.error("Failed to save auth state: %s", e)

    def _load_users(self) -> list[UserRecord]:
        raw = self._kv.get(USERS_KEY)
        if not raw:
            return []
        try:
            return [UserRecord.model_validate(item) for item in json.loads(raw)]
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            logger.error("Failed to load stored users: %s", e)
            return []

    def _store_user(self, user: User, password: str) -> None:
        records = self._load_users()
        records.append(UserRecord(user=user, password=password))
        try:
            self._kv.set(
                USERS_KEY, json.dumps([r.model_dump(mode="json") for r in records])
            )
        except Exception as e:
            logger.error("Failed to store user: %s", e)

    def sign_up(self, email: str, password: str, name: str) -> User:
        if not email or not password or not name:
            raise AuthError("All fields are required")
        if len(password) < 6:
            raise AuthError("Password must be at least 6 characters")
        if "@" not in email:
            raise AuthError("Please enter a valid email address")
        if any(r.user.email == email for r in self._load_users()):
            raise AuthError("An account with this email already exists")

        user = User(email=email, name=name)
        self._store_user(user, password)
        self.state = AuthState(user=user, is_authenticated=True)
        self._save_state()
        logger.info("Registered user %s", user.id)
        return user

    def sign_in(self, email: str, password: str) -> User:
        if email == DEMO_EMAIL and password == DEMO_PASSWORD:
            self.state = AuthState(user=DEMO_USER, is_authenticated=True)
            self._save_state()
            return DEMO_USER

        if not email or not password:
            raise AuthError("Email and password are required")

        record = next((r for r in self._load_users() if r.user.email == email), None)
        if record is None:
            raise AuthError("No account found with this email address")
        if record.password != password:
            raise AuthError("Incorrect password")

        self.state = AuthState(user=record.user, is_authenticated=True)
        self._save_state()
        return record.user

    def sign_out(self) -> None:
        self._kv.delete(AUTH_KEY)
        self.state = AuthState()

    def current_user(self) -> Optional[User]:
        return self.state.user

    def is_authenticated(self) -> bool:
        return self.state.is_authenticated
