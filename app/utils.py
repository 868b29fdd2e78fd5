import jwt
from datetime import datetime, timedelta, timezone
from .config import settings


def utc_now() -> datetime:
    """Timezone-aware UTC timestamp; datetime columns reject naive values."""
    return datetime.now(timezone.utc)


# =========================
# JWT Token Handling
# =========================
def create_jwt_token(data: dict, expires_in: timedelta = timedelta(hours=24)):
    """Create JWT access token with expiration (24 hours by default)"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_in
    to_encode.update({"exp": expire, "type": "access"})

    # Ensure SECRET_KEY is properly set
    if not settings.SECRET_KEY or settings.SECRET_KEY == "change-me-in-prod":
        raise ValueError("SECRET_KEY not properly configured")

    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt

def decode_jwt_token(token: str):
    """Decode and verify JWT token"""
    # Ensure SECRET_KEY is properly set
    if not settings.SECRET_KEY or settings.SECRET_KEY == "change-me-in-prod":
        return None
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None
