"""JWT token creation and verification (HS256, shared JWT_SECRET).

Access tokens are short-lived and authorise API calls; refresh tokens only
mint new access tokens. The `type` claim is checked on every decode so one
can never stand in for the other.

No revocation list: a token stays valid until `exp`.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pt_common.errors import InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)

ACCESS = "access"
REFRESH = "refresh"


def _issue(user_id: str, token_type: str, ttl: timedelta) -> str:
    now = datetime.now(UTC)
    claims = {"sub": user_id, "type": token_type, "iat": now, "exp": now + ttl}
    return str(jwt.encode(claims, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str) -> str:
    return _issue(user_id, ACCESS, _ACCESS_EXPIRE)


def create_refresh_token(user_id: str) -> str:
    return _issue(user_id, REFRESH, _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, str]:
    """Decode and validate a JWT.

    Raises:
        InvalidCredentialsError: bad/expired token when an access token was expected.
        InvalidRefreshTokenError: bad/expired token when a refresh token was expected.
    """
    error: type[Exception] = (
        InvalidCredentialsError if expected_type == ACCESS else InvalidRefreshTokenError
    )
    try:
        # Explicit algorithm list prevents algorithm confusion
        payload: dict[str, str] = jwt.decode(
            token, settings.JWT_SECRET, algorithms=[_ALGORITHM]
        )
    except JWTError:
        raise error() from None

    if payload.get("type") != expected_type:
        raise error()
    return payload
