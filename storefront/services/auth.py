"""Authentication state consumed by the checkout gate"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import jwt

logger = logging.getLogger(__name__)


class AuthService(Protocol):
    def is_authenticated(self) -> bool:
        ...


class SessionAuth:
    """Authentication flag held by a cart session"""

    def __init__(self, authenticated: bool = False):
        self.authenticated = authenticated

    def is_authenticated(self) -> bool:
        return self.authenticated

    def login(self) -> None:
        self.authenticated = True

    def logout(self) -> None:
        self.authenticated = False


class TokenAuth:
    """Authentication derived from a bearer token"""

    def __init__(self, token: Optional[str], secret_key: str, algorithm: str = "HS256"):
        self.token = token
        self.secret_key = secret_key
        self.algorithm = algorithm
        self._payload: Optional[dict] = None
        self._checked = False

    @property
    def payload(self) -> Optional[dict]:
        if not self._checked:
            self._payload = self._verify()
            self._checked = True
        return self._payload

    def _verify(self) -> Optional[dict]:
        if not self.token:
            return None
        try:
            payload = jwt.decode(self.token, self.secret_key, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            logger.info(f"Rejected bearer token: {e}")
            return None
        if "sub" not in payload:
            return None
        return payload

    @property
    def subject(self) -> Optional[str]:
        return self.payload["sub"] if self.payload else None

    def is_authenticated(self) -> bool:
        return self.payload is not None


def create_access_token(
    subject: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_minutes: int = 30,
) -> str:
    """Issue a signed access token for a shopper"""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)
