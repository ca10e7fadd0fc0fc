"""JWT access token issuing and validation."""

import os
from datetime import datetime, timedelta, timezone

import structlog
from jose import JWTError, jwt

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"
DEFAULT_EXPIRES_MINUTES = 480
_DEV_SECRET = "dev-secret-change-me"


class TokenService:
    """Issues and validates HS256 access tokens for administrators.

    Tokens carry the admin e-mail as ``sub`` and the admin role, so a
    request can be authorized without a database round-trip; the current
    admin record is still loaded to reject deactivated accounts.
    """

    def __init__(self, secret: str | None = None, expires_minutes: int | None = None):
        """Initialize token service.

        Args:
            secret: Signing key (defaults to JWT_SECRET env var)
            expires_minutes: Token lifetime (defaults to JWT_EXPIRES_MINUTES env var)
        """
        self.secret = secret or os.getenv("JWT_SECRET", _DEV_SECRET)
        self.expires_minutes = expires_minutes or int(
            os.getenv("JWT_EXPIRES_MINUTES", str(DEFAULT_EXPIRES_MINUTES))
        )

        if self.secret == _DEV_SECRET and os.getenv("APP_ENV") == "production":
            logger.warning("jwt_secret_not_configured")

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return self.expires_minutes * 60

    def create_access_token(self, email: str, role: str) -> str:
        """Issue a signed token for an administrator.

        Args:
            email: Administrator e-mail (token subject)
            role: Administrator role

        Returns:
            Encoded JWT
        """
        now = datetime.now(timezone.utc)
        claims = {
            "sub": email,
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=self.expires_minutes)).timestamp()),
        }
        return jwt.encode(claims, self.secret, algorithm=ALGORITHM)

    def decode_token(self, token: str) -> dict | None:
        """Validate a token and return its claims.

        Args:
            token: Encoded JWT

        Returns:
            Claims dict with ``email`` and ``role`` if valid, None otherwise
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[ALGORITHM])
        except JWTError as e:
            logger.info("token_rejected", reason=str(e))
            return None

        email = payload.get("sub")
        if not email:
            return None

        return {"email": email, "role": payload.get("role")}

    @staticmethod
    def extract_token_from_header(authorization: str | None) -> str | None:
        """Extract bearer token from Authorization header.

        Args:
            authorization: Authorization header value

        Returns:
            Token string if valid format, None otherwise
        """
        if not authorization or not authorization.startswith("Bearer "):
            return None

        return authorization[7:].strip() or None


_token_service: TokenService | None = None


def get_token_service() -> TokenService:
    """Return the process-wide token service, creating it on first use."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService()
    return _token_service


def reset_token_service() -> None:
    """Forget the cached token service (configuration changed)."""
    global _token_service
    _token_service = None
