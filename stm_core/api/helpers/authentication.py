"""
Token creation and verification.

Tokens are JWTs signed with the shared ``secret_key``. The server only
verifies them; ``create_token`` exists for the login flow that hands tokens
to clients. Verification is a pure function of the token and the secret,
there is no server side token list.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from stm_core.models.pydantic_models.token import TokenModel
from stm_core.services.errors import AuthenticationError

ALGORITHM = "HS256"


def create_token(
    user: str,
    secret_key: str,
    expires_delta: timedelta,
    user_name: str | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode: dict[str, Any] = {"sub": user, "exp": expire}
    if user_name:
        to_encode["name"] = user_name
    return jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)


def verify_token(raw_token: str | None, secret_key: str) -> TokenModel:
    """Return the identity of a valid token, raise ``AuthenticationError`` otherwise."""
    if not raw_token:
        raise AuthenticationError("No token given")

    try:
        payload = jwt.decode(raw_token, secret_key, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except JWTError as e:
        raise AuthenticationError(f"Token not valid: {e}")

    user = payload.get("sub")
    if not user:
        raise AuthenticationError("No user found in token")

    exp_timestamp = payload.get("exp")
    if exp_timestamp is None:
        raise AuthenticationError("Token has no expiry")

    return TokenModel(
        user=user,
        user_name=payload.get("name"),
        valid_until=datetime.fromtimestamp(exp_timestamp, tz=timezone.utc),
    )


def get_request_token(request: Any) -> str | None:
    """Read the raw token from the Authorization header or the ``token`` query parameter."""
    auth_header: str | None = request.headers.get("Authorization")
    if auth_header:
        if auth_header.lower().startswith("bearer "):
            return auth_header[7:].strip()
        return auth_header.strip()

    return request.query_params.get("token") or None


def verify_request(request: Any, secret_key: str) -> TokenModel:
    return verify_token(get_request_token(request), secret_key)
