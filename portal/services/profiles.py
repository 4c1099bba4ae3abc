# portal/services/profiles.py
"""
Profile Store

Keyed access to client profiles. Profiles are read by every generation
path and written once, when the client completes the onboarding survey.
"""

import secrets
import string
import time
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from portal.database import utcnow
from portal.errors import InvalidArgument, NotFoundError
from portal.models.client import ClientProfile
from portal.models.user import User

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_unique_client_id() -> str:
    """Human-readable client reference, e.g. ``CL-LQ2X9K1A-7F3KQ2``."""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"CL-{timestamp}-{suffix}"


class ProfileStore:
    """Repository over ``ClientProfile`` rows."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_user_id(self, user_id: UUID) -> Optional[ClientProfile]:
        return self.db.query(ClientProfile).filter(ClientProfile.user_id == user_id).first()

    def get_by_id(self, client_id: UUID) -> Optional[ClientProfile]:
        return self.db.query(ClientProfile).filter(ClientProfile.client_id == client_id).first()

    def require_for_user(self, user_id: UUID) -> ClientProfile:
        """
        Raises:
            NotFoundError: If the user has not completed onboarding
        """
        profile = self.get_by_user_id(user_id)
        if not profile:
            logger.warning(f"No client profile for user {user_id}")
            raise NotFoundError("Client profile not found")
        return profile

    def require(self, client_id: UUID) -> ClientProfile:
        """
        Raises:
            NotFoundError: If no profile has this id
        """
        profile = self.get_by_id(client_id)
        if not profile:
            logger.warning(f"Client {client_id} not found")
            raise NotFoundError("Client not found")
        return profile

    def create(self, user: User, fields: Dict[str, Any]) -> ClientProfile:
        """
        Create the profile for ``user`` from onboarding survey answers.

        The profile is flushed, not committed; the caller commits it together
        with the outbox rows and activity for the same onboarding.

        Raises:
            InvalidArgument: If the user already has a profile
        """
        if self.get_by_user_id(user.user_id):
            logger.warning(f"User {user.user_id} attempted onboarding twice")
            raise InvalidArgument("Onboarding already completed")

        now = utcnow()
        profile = ClientProfile(
            user_id=user.user_id,
            unique_client_id=generate_unique_client_id(),
            status="active",
            onboarding_completed=True,
            onboarding_completed_at=now,
            **fields
        )
        self.db.add(profile)
        self.db.flush()
        self.db.refresh(profile)

        logger.info(f"✅ Client profile created: {profile.company_name} ({profile.unique_client_id})")
        return profile

    def list(self, skip: int = 0, limit: int = 20, search: Optional[str] = None) -> Tuple[List[ClientProfile], int]:
        """Page through profiles, newest first, optionally filtered by company name or client reference."""
        query = self.db.query(ClientProfile)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                ClientProfile.company_name.ilike(pattern),
                ClientProfile.unique_client_id.ilike(pattern),
            ))

        total = query.count()
        profiles = query.order_by(ClientProfile.created_at.desc())\
                        .offset(skip)\
                        .limit(limit)\
                        .all()
        return profiles, total

    def delete(self, client_id: UUID) -> Dict[str, Any]:
        """
        Delete a client account: the profile, everything it owns, and the owning user.

        Returns:
            Identifying details of what was deleted

        Raises:
            NotFoundError: If no profile has this id
        """
        profile = self.require(client_id)
        user = profile.user

        deleted = {
            "client_id": str(profile.client_id),
            "unique_client_id": profile.unique_client_id,
            "company_name": profile.company_name,
            "email": user.email,
            "user_id": str(user.user_id),
        }

        # Cascades through the profile to documents, messages, milestones,
        # links, activity logs and outbox rows
        self.db.delete(user)
        self.db.commit()

        logger.info(f"✅ Client deleted: {deleted['company_name']} ({deleted['unique_client_id']})")
        return deleted
