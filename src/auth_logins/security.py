from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, Request, status
from jose import JWTError, jwt

from src.auth_logins.config import settings


def _require_secret() -> str:
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT secret not configured. Please set JWT_SECRET environment variable.",
        )
    return settings.JWT_SECRET


def create_service_token(subject: str, expires_delta: timedelta) -> str:
    """Create a JWT for a caller of the API, e.g. an identity provider hook."""
    secret = _require_secret()
    now = datetime.now(tz=timezone.utc)
    payload = {"sub": subject, "iat": int(now.timestamp()), "exp": int((now + expires_delta).timestamp())}
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def _decode_token(token: str) -> str:
    """Decode JWT and return its subject."""
    secret = _require_secret()
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return str(sub)


def require_caller(request: Request) -> str:
    """Validate the bearer token and return the calling service's subject."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    token = auth_header.split(" ", 1)[1].strip()
    return _decode_token(token)
