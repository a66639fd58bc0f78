"""
Admin Identity Provider

Authenticates administrators and gates the admin routes.

- Credentials are compared in constant time against ADMIN_USERNAME /
  ADMIN_PASSWORD; an empty password or SECRET_KEY disables login entirely
- Successful logins receive a signed JWT (sub, jti, exp); verify() only
  accepts tokens carrying a jti and issued to ADMIN_USERNAME
- sign_out() revokes a token by its jti until the token would have expired

Redirect resolution never goes through this module.
"""

import hmac
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from jose import JWTError, jwt

from redirections.core.setting import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    username: str
    token_id: Optional[str] = None


class IdentityProvider:
    """Username/password authentication with revocable bearer tokens."""

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        expire_minutes: Optional[int] = None
    ):
        self.username = settings.ADMIN_USERNAME if username is None else username
        self.password = settings.ADMIN_PASSWORD if password is None else password
        self.secret_key = settings.SECRET_KEY if secret_key is None else secret_key
        self.algorithm = algorithm or settings.JWT_ALGORITHM
        self.expire_minutes = expire_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES
        # jti -> expiry; entries are dropped once the token would be expired anyway
        self._revoked: Dict[str, datetime] = {}

    @property
    def enabled(self) -> bool:
        """Admin login needs both a password and a signing key."""
        return bool(self.password) and bool(self.secret_key)

    def authenticate(self, username: str, password: str) -> Optional[Principal]:
        """
        Check administrator credentials.

        Returns:
            Principal on success, None otherwise
        """
        if not self.enabled:
            logger.warning("Admin login attempted but ADMIN_PASSWORD or SECRET_KEY is not configured")
            return None

        # compare_digest only accepts ASCII str, so compare the UTF-8 bytes
        valid = hmac.compare_digest((username or "").encode(), self.username.encode()) and \
            hmac.compare_digest((password or "").encode(), self.password.encode())
        if not valid:
            logger.info(f"Rejected admin login for '{username}'")
            return None
        return Principal(username=username)

    def issue_token(self, principal: Principal, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        claims = {
            "sub": principal.username,
            "jti": uuid.uuid4().hex,
            "exp": expire,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Optional[Principal]:
        """
        Validate a bearer token.

        Returns:
            Principal when the token is well signed, unexpired, not revoked
            and issued to the configured administrator
        """
        if not self.enabled:
            return None

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

        token_id = payload.get("jti")
        subject = payload.get("sub")
        if not token_id or subject != self.username or token_id in self._revoked:
            return None
        return Principal(username=subject, token_id=token_id)

    def sign_out(self, token: str) -> bool:
        """
        Revoke a token.

        Returns:
            True if the token was valid and is now revoked
        """
        principal = self.verify(token)
        if principal is None or principal.token_id is None:
            return False

        claims = jwt.get_unverified_claims(token)
        expires_at = datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        self._purge_revoked()
        self._revoked[principal.token_id] = expires_at
        logger.info(f"Admin '{principal.username}' signed out")
        return True

    def _purge_revoked(self) -> None:
        now = datetime.now(timezone.utc)
        for token_id, expires_at in list(self._revoked.items()):
            if expires_at <= now:
                del self._revoked[token_id]


identity_provider = IdentityProvider()
