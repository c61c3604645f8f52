from datetime import datetime, timedelta, timezone
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from shared.core.config import settings
from shared.core.exceptions import Unauthenticated, Unauthorized
from shared.core.schemas import UserToken
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_minutes: int | None = None):
    """Mint a token the way the auth collaborator does (used by tooling and tests)."""
    payload = data.copy()

    minutes = expires_minutes if expires_minutes is not None else settings.JWT_EXPIRE_MINUTES
    payload['exp'] = datetime.now(timezone.utc) + timedelta(minutes=minutes)

    if isinstance(payload.get('role'), UserRole):
        payload['role'] = payload['role'].value

    return jwt.encode(payload, settings.JWT_SECRET,
                      algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthenticated(
            "Token has expired",
            app_status_code=AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED,
            headers={"WWW-Authenticate": "Bearer"})
    except JWTError:
        raise Unauthenticated("Invalid or expired token",
                              headers={"WWW-Authenticate": "Bearer"})

    try:
        return UserToken(**payload)
    except ValidationError:
        raise Unauthenticated("Invalid token structure",
                              headers={"WWW-Authenticate": "Bearer"})


def validate_current_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> UserToken:
    if credentials is None:
        raise Unauthenticated("Not authenticated",
                              headers={"WWW-Authenticate": "Bearer"})
    return verify_token(credentials.credentials)


def allow_vendor(current_user: UserToken = Depends(validate_current_token)):
    if current_user.role != UserRole.VENDOR:
        raise Unauthorized("Access forbidden: vendors only")
    return current_user


def allow_customer(current_user: UserToken = Depends(validate_current_token)):
    if current_user.role != UserRole.CUSTOMER:
        raise Unauthorized("Access forbidden: customers only")
    return current_user
