"""Bearer token verification.

The platform's authentication service issues the tokens and puts the
caller's profile ID in ``sub``. This service never issues tokens; it only
checks the signature and expiry and extracts the profile ID.
"""

from typing import Any

from jose import JWTError, jwt

from chatpulse.settings import settings

_DEFAULT_SECRET = "dev-secret-key-change-in-production"

if settings.environment == "production" and settings.jwt_secret_key == _DEFAULT_SECRET:
    raise RuntimeError(
        "SECURITY ERROR: JWT_SECRET_KEY must be set to the authentication service's key in production."
    )


class InvalidTokenError(Exception):
    """The token is malformed, expired, wrongly signed or names no profile."""


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify a token and return its claims.

    Raises:
        InvalidTokenError: If verification fails
    """
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise InvalidTokenError(str(e)) from e


def profile_id_from_token(token: str) -> int:
    """Return the profile ID a verified token was issued for.

    Raises:
        InvalidTokenError: If the token fails verification or ``sub`` is not a profile ID
    """
    subject = decode_access_token(token).get("sub")
    if subject is None:
        raise InvalidTokenError("Token has no subject")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise InvalidTokenError(f"Token subject is not a profile ID: {subject!r}") from None
