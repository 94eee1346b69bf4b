"""JWT Bearer Token Handling (HS256, shared secret)"""
import jwt
from typing import Any, Dict, Optional
from datetime import timedelta

from ..config.settings import settings
from ..domain.errors import AuthenticationError
from .time import utc_now
from .logger import get_logger

logger = get_logger(__name__)

DEFAULT_TOKEN_TTL = timedelta(hours=24)


class JWTValidator:
    """Validates bearer tokens signed with the service's shared secret"""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a JWT and return its claims

        Args:
            token: Bearer token (with or without the 'Bearer ' prefix)

        Returns:
            Decoded token claims

        Raises:
            AuthenticationError: If the token is missing, expired, or invalid
        """
        if not token:
            raise AuthenticationError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"verify_exp": True, "require": ["user_id"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token has expired")
        except jwt.MissingRequiredClaimError:
            raise AuthenticationError("Token is missing the user_id claim")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthenticationError("Invalid token")

        return claims

    def get_user_id(self, token: str) -> str:
        """Extract the user ID from a validated token"""
        claims = self.validate_token(token)
        user_id = claims.get("user_id")
        if not isinstance(user_id, str) or not user_id:
            raise AuthenticationError("Invalid user_id claim")
        return user_id

    def create_token(
        self,
        user_id: str,
        tenant_id: Optional[str] = None,
        ttl: timedelta = DEFAULT_TOKEN_TTL
    ) -> str:
        """Issue a signed token (used by seed scripts and tests)"""
        now = utc_now()
        claims: Dict[str, Any] = {"user_id": user_id, "iat": now, "exp": now + ttl}
        if tenant_id:
            claims["tenant_id"] = tenant_id
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_user_id_from_header(authorization: Optional[str]) -> str:
    """
    Resolve the caller's user ID from an Authorization header value

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    return get_jwt_validator().get_user_id(authorization)
