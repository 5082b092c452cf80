"""Authentication module for the console's single operator account.

This module provides:
1. A credential check against the operator login from settings.conf
2. Signed session tokens with expiry and revocation on logout
3. A FastAPI dependency for protecting routes
"""

import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_SESSION_EXPIRY_HOURS = 12

class AuthError(Exception):
    """Base exception for authentication errors."""
    pass

class InvalidCredentialsError(AuthError):
    """Raised when the email/password pair is wrong."""
    pass

class SessionExpiredError(AuthError):
    """Raised when a session has expired."""
    pass

class AuthManager:
    """Checks the operator credential and manages session tokens."""

    def __init__(
        self,
        admin_email: str,
        admin_password: str,
        session_expiry_hours: int = DEFAULT_SESSION_EXPIRY_HOURS,
        secret: Optional[str] = None
    ):
        """Initialize auth manager.

        Args:
            admin_email: Operator login email
            admin_password: Operator login password
            session_expiry_hours: Lifetime of issued tokens
            secret: Optional signing secret, random per process if not provided
        """
        self.admin_email = admin_email
        self.admin_password = admin_password
        self.session_expiry = timedelta(hours=session_expiry_hours)
        self.secret = secret or secrets.token_urlsafe(32)
        self._revoked: Dict[str, int] = {}  # jti -> exp

    def check_credentials(self, email: str, password: str) -> bool:
        """Constant-time comparison against the configured credential."""
        email_ok = hmac.compare_digest(email.strip().lower().encode(), self.admin_email.lower().encode())
        password_ok = hmac.compare_digest(password.encode(), self.admin_password.encode())
        return email_ok and password_ok

    def login(self, email: str, password: str) -> Dict[str, str]:
        """Verify the credential and issue a session token.

        Returns:
            Dict containing:
                - token: Session token for future requests
                - expires_at: Session expiration timestamp

        Raises:
            InvalidCredentialsError: If the credential does not match
        """
        if not self.check_credentials(email, password):
            logger.warning(f"Failed login attempt for {email}")
            raise InvalidCredentialsError("Invalid email or password")

        expires_at = datetime.now(timezone.utc) + self.session_expiry
        token = jwt.encode(
            {
                'sub': self.admin_email,
                'jti': uuid.uuid4().hex,
                'exp': int(expires_at.timestamp())
            },
            self.secret,
            algorithm=JWT_ALGORITHM
        )
        logger.info(f"Operator {self.admin_email} logged in")
        return {'token': token, 'expires_at': expires_at.isoformat()}

    def verify_session(self, token: str) -> str:
        """Verify a session token.

        Returns:
            The operator email

        Raises:
            SessionExpiredError: If session has expired
            AuthError: For other verification errors
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except ExpiredSignatureError:
            raise SessionExpiredError("Session has expired")
        except JWTError as e:
            raise AuthError(f"Invalid token: {str(e)}")

        if payload.get('jti') in self._revoked:
            raise AuthError("Session has been revoked")
        return payload['sub']

    def _prune_revoked(self) -> None:
        """Forget revoked tokens that have expired anyway."""
        now = int(datetime.now(timezone.utc).timestamp())
        self._revoked = {jti: exp for jti, exp in self._revoked.items() if exp > now}

    def logout(self, token: str) -> None:
        """Revoke a session token."""
        try:
            payload = jwt.decode(
                token, self.secret, algorithms=[JWT_ALGORITHM],
                options={'verify_exp': False}
            )
        except JWTError as e:
            raise AuthError(f"Invalid token: {str(e)}")
        self._revoked[payload['jti']] = payload.get('exp', 0)
        self._prune_revoked()
        logger.info(f"Operator {payload['sub']} logged out")

_manager: Optional[AuthManager] = None

def get_manager() -> AuthManager:
    """Global auth manager, built from settings on first use."""
    global _manager
    if _manager is None:
        from config import get_settings
        settings = get_settings()
        _manager = AuthManager(
            settings['admin_email'],
            settings['admin_password'],
            settings['session_expiry_hours']
        )
    return _manager

# FastAPI security scheme
auth_scheme = HTTPBearer(
    auto_error=True,  # Return 401 automatically if token is missing
    description="Bearer token from /auth/login"
)

async def get_current_operator(
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme),
    manager: AuthManager = Depends(get_manager)
) -> str:
    """FastAPI dependency for getting the authenticated operator.

    Raises:
        HTTPException: If authentication fails
    """
    try:
        return manager.verify_session(credentials.credentials)
    except SessionExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has expired"
        )
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )

# Export public interface
__all__ = [
    'AuthManager',
    'get_manager',
    'get_current_operator',
    'auth_scheme',
    'AuthError',
    'InvalidCredentialsError',
    'SessionExpiredError'
]
