# portal/routers/client.py
"""
Client Profile Endpoints

Onboarding survey submission and the signed-in client's profile summary.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session
import logging

from portal.database import get_db
from portal.dependencies import get_current_profile, get_current_user, get_notifier
from portal.models.activity import ActivityType
from portal.models.client import ClientProfile
from portal.models.link import Link
from portal.models.user import User
from portal.schemas.client import ClientMeResponse, OnboardingRequest, OnboardingResponse
from portal.services.activity import record_activity
from portal.services.notifications import Notifier
from portal.services.profiles import ProfileStore

logger = logging.getLogger(__name__)
router = APIRouter()


# =============================================================================
# ONBOARDING
# =============================================================================

@router.post("/onboarding", response_model=OnboardingResponse, status_code=status.HTTP_201_CREATED)
async def complete_onboarding(
    request: OnboardingRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Create the caller's client profile from the onboarding survey.

    The onboarding webhook and the welcome and admin emails are queued in
    the outbox and delivered after the response is sent.

    Raises:
        400: Onboarding already completed
    """
    logger.info(f"Onboarding '{request.company_name}' for user {current_user.user_id}")

    profile = ProfileStore(db).create(current_user, request.model_dump())

    notification_ids = notifier.queue_onboarding(db, profile, current_user)
    record_activity(
        db, profile.client_id, ActivityType.ONBOARDING_COMPLETED,
        f"{profile.company_name} completed onboarding",
        {"unique_client_id": profile.unique_client_id},
    )
    # Profile, outbox rows and activity commit together
    db.commit()

    background_tasks.add_task(notifier.deliver_all, notification_ids)

    return OnboardingResponse(client=profile, notifications_queued=len(notification_ids))


# =============================================================================
# PROFILE
# =============================================================================

@router.get("/me", response_model=ClientMeResponse)
async def get_my_profile(
    db: Session = Depends(get_db),
    profile: ClientProfile = Depends(get_current_profile)
):
    """The caller's profile summary and the links the agency shared with them."""
    links = db.query(Link)\
              .filter(Link.client_id == profile.client_id)\
              .order_by(Link.created_at.desc())\
              .all()
    return ClientMeResponse(client=profile, links=links)
