# portal/dependencies.py
import jwt
from jwt.exceptions import PyJWTError as JWTError
from datetime import timedelta
from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from portal.config import Settings, settings as default_settings
from portal.database import get_db, utcnow
from portal.errors import Forbidden, NotFoundError, Unauthorized
from portal.models.client import ClientProfile
from portal.models.user import User
import logging

logger = logging.getLogger(__name__)

# A missing header surfaces as our own 401 envelope rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


# =============================================================================
# APPLICATION STATE
# =============================================================================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_generator(request: Request):
    """The generation invoker configured on the app"""
    return request.app.state.generator


def get_notifier(request: Request):
    """The notification outbox configured on the app"""
    return request.app.state.notifier


# =============================================================================
# AUTHENTICATION
# =============================================================================

def create_access_token(subject: str, role: str = "client", settings: Optional[Settings] = None) -> str:
    """
    Issue a signed session token.

    Tokens are normally issued by the identity provider; this exists for
    local development and tests.
    """
    settings = settings or default_settings
    now = utcnow()
    payload = {
        "sub": subject,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, settings: Settings) -> dict:
    """
    Decode and verify a session token.

    Raises:
        Unauthorized: If the token is expired, malformed or badly signed
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        raise Unauthorized("Unauthorized")
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        raise Unauthorized("Unauthorized")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings)
) -> User:
    """
    Resolve the caller from the bearer token.

    Raises:
        Unauthorized: No token, invalid token, or unknown user
        Forbidden: User account is inactive
    """
    if credentials is None:
        raise Unauthorized("Unauthorized")

    payload = decode_token(credentials.credentials, settings)
    subject = payload.get("sub")
    if not subject:
        raise Unauthorized("Unauthorized")

    user = db.query(User).filter(User.auth_subject == subject).first()
    if not user:
        logger.warning(f"Token subject {subject} has no user")
        raise Unauthorized("Unauthorized")

    if not user.is_active:
        raise Forbidden("User account is inactive")

    return user


async def get_current_profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> ClientProfile:
    """
    Resolve the caller's client profile.

    Raises:
        NotFoundError: The caller has not completed onboarding
    """
    profile = db.query(ClientProfile).filter(ClientProfile.user_id == user.user_id).first()
    if not profile:
        raise NotFoundError("Client profile not found")
    return profile


# =============================================================================
# PAGINATION
# =============================================================================

class PaginationParams:
    """Reusable pagination parameters"""

    def __init__(
        self,
        page: int = 1,
        page_size: int = 20,
    ):
        self.page = max(1, page)
        self.page_size = min(100, max(1, page_size))
        self.skip = (self.page - 1) * self.page_size
        self.limit = self.page_size


# =============================================================================
# ROLE-BASED ACCESS CONTROL
# =============================================================================

class RoleChecker:
    """Dependency to check user roles; defaults to the configured admin role"""

    def __init__(self, allowed_roles: Optional[list] = None):
        self.allowed_roles = allowed_roles

    def __call__(
        self,
        user: User = Depends(get_current_user),
        settings: Settings = Depends(get_settings)
    ) -> User:
        allowed = self.allowed_roles or [settings.ADMIN_ROLE]
        if user.role not in allowed:
            logger.warning(f"User {user.user_id} with role '{user.role}' denied admin access")
            raise Forbidden("Forbidden")
        return user


require_admin = RoleChecker()
