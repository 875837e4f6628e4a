"""
Token helpers. The identity provider issues bearer tokens signed with the shared
secret; create_access_token mints equivalent tokens for tests and local tooling.
"""
from datetime import datetime, timedelta, timezone

from jose import jwt

from tailorcv.app.core.config import settings


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a signed JWT. `data` must carry the user id under "sub"."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
