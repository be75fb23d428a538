"""
PriceWatch Authentication Utilities
Resolves the calling owner from an API key or a bearer JWT.

Credentials are read per request and the resolved User is handed to the
services explicitly; nothing about the caller is kept at module level.
"""
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, HTTPException, status, Security
from fastapi.security import APIKeyHeader, HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from pricewatch.config import settings
from pricewatch.database import get_db
from pricewatch.models import User

# Security schemes
api_key_header = APIKeyHeader(name=settings.API_KEY_HEADER, auto_error=False)
bearer_scheme = HTTPBearer(auto_error=False)


def generate_api_key() -> str:
    """Generate a random API key"""
    return secrets.token_urlsafe(32)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a short-lived JWT for a user"""
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {"sub": str(user_id), "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[int]:
    """Return the user id carried by a valid token, else None"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    subject = payload.get("sub")
    if subject is None:
        return None
    try:
        return int(subject)
    except (TypeError, ValueError):
        return None


def get_user_by_api_key(db: Session, api_key: str) -> Optional[User]:
    return db.query(User).filter(User.api_key == api_key, User.is_active == True).first()  # noqa: E712


def create_user(db: Session, email: str) -> User:
    """Create a user with a fresh API key"""
    user = User(email=email, api_key=generate_api_key())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


async def get_current_user(
    db: Session = Depends(get_db),
    api_key: Optional[str] = Security(api_key_header),
    bearer: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[User]:
    """
    Get current user from API key or JWT token
    Returns None for anonymous access
    """
    if api_key:
        user = get_user_by_api_key(db, api_key)
        if user:
            return user

    if bearer:
        user_id = decode_access_token(bearer.credentials)
        if user_id is not None:
            user = db.get(User, user_id)
            if user and user.is_active:
                return user

    return None


async def get_current_user_required(
    user: Optional[User] = Depends(get_current_user),
) -> User:
    """
    Require authenticated user
    Raises 401 if not authenticated
    """
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
