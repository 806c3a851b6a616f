"""
Password hashing and JWT access/refresh tokens for the identity module.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict
from jose import jwt, JWTError
from passlib.context import CryptContext
from eventhub.core.config import settings
from eventhub.cache.redis_client import cache

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


def validate_password(password: str) -> None:
    """
    Check password strength on signup.

    Raises:
        ValueError: describing the first rule the password breaks
    """
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not any(c.isupper() for c in password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in password):
        raise ValueError("Password must contain at least one digit")
    if not any(c in SPECIAL_CHARACTERS for c in password):
        raise ValueError("Password must contain at least one special character")


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def _encode(data: Dict, token_type: str, lifetime: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + lifetime, "type": token_type})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: Dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed access token.

    Args:
        data: Claims to encode, at least `sub` (the user id)
        expires_delta: Custom lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, "access", lifetime)


def create_refresh_token(data: Dict) -> str:
    return _encode(data, "refresh", timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str) -> Dict:
    """
    Decode and validate a JWT token.

    Raises:
        ValueError: If the token is malformed, expired or has no `sub` claim
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise ValueError("Token has expired")
    except JWTError as e:
        raise ValueError(f"Invalid token: {str(e)}")

    if "sub" not in payload:
        raise ValueError("Invalid token payload: missing 'sub' field")
    return payload


async def revoke_token(token: str, expiry: Optional[int] = None) -> bool:
    """
    Put a token on the Redis revocation list until it would have expired.

    Returns:
        True if the token was stored, False otherwise
    """
    if expiry:
        return await cache.set(f"revoked_token:{token}", True, expire=expiry)
    try:
        payload = decode_token(token)
    except ValueError:
        return False
    ttl = int(payload.get("exp", 0)) - int(datetime.now(timezone.utc).timestamp())
    if ttl <= 0:
        return False
    return await cache.set(f"revoked_token:{token}", True, expire=ttl)


async def is_token_revoked(token: str) -> bool:
    return await cache.exists(f"revoked_token:{token}")
