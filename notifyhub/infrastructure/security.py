"""JWT helpers used to authenticate API and websocket clients."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from notifyhub.config import get_settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    return jwt.encode(
        {**data, "exp": expire}, settings.secret_key, algorithm=settings.jwt_algorithm
    )


def create_user_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Return an access token whose subject is ``user_id``."""

    return create_access_token({"sub": str(user_id)}, expires_delta)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise ValueError("Could not validate credentials") from exc
