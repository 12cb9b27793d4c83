# core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext

from core.config import settings
from core.exceptions import AuthError


# ========================================
# 🔑 JWT / APP CONFIG
# ========================================
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM or "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = getattr(settings, "ACCESS_TOKEN_EXPIRE_MINUTES", 60)


# ========================================
# 🔐 Password Hashing (Argon2)
# ========================================
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash password using Argon2."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password using Argon2."""
    return pwd_context.verify(plain_password, hashed_password)


# ========================================
# 🔑 Token Helpers
# ========================================
def create_access_token(uid: str, email: str, expires_delta: Optional[timedelta] = None) -> Tuple[str, str]:
    """
    Issue a signed access token for an account.
    Returns ``(token, token_id)``; the token id (``jti``) is what sign-out revokes.
    """
    token_id = uuid.uuid4().hex
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode: Dict[str, Any] = {
        "sub": uid,
        "email": email,
        "jti": token_id,
        "exp": expire,
    }
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM), token_id


def decode_token(token: str) -> dict:
    """Decode JWT and return payload."""
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise AuthError("Invalid or expired token.")

    if not payload.get("sub") or not payload.get("jti"):
        raise AuthError("Invalid token payload.")
    return payload
