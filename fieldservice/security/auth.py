"""Bearer token authentication"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from fieldservice.config import settings

ACCESS_TOKEN_EXPIRE_HOURS = 24

# HTTP Bearer security scheme
security = HTTPBearer()


class UserRole(str, Enum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    TECHNICIAN = "technician"
    CUSTOMER = "customer"


@dataclass
class CurrentUser:
    """Caller identity taken from the token claims"""
    id: str
    role: UserRole


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create JWT access token

    Args:
        data: Claims to encode; "sub" is the user id and "role" the user role
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decoded claims, or None if the token is invalid or expired"""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> CurrentUser:
    """
    Get the caller from the bearer token

    Raises:
        HTTPException: 401 if the token is missing, invalid or lacks claims
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception

    try:
        role = UserRole(payload.get("role", UserRole.CUSTOMER.value))
    except ValueError:
        raise credentials_exception

    return CurrentUser(id=str(user_id), role=role)


def require_roles(*allowed_roles: UserRole):
    """
    Dependency to require specific user roles

    Args:
        allowed_roles: Roles that are allowed

    Returns:
        Dependency function
    """
    async def role_checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Operation requires one of these roles: {', '.join(r.value for r in allowed_roles)}"
            )
        return user

    return role_checker
