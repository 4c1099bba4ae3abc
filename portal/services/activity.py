# portal/services/activity.py
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from sqlalchemy.orm import Session

from portal.models.activity import ActivityLog, ActivityType

logger = logging.getLogger(__name__)


def record_activity(
    db: Session,
    client_id: UUID,
    activity_type: ActivityType,
    description: str,
    metadata: Optional[Dict[str, Any]] = None
) -> ActivityLog:
    """Add an activity log entry to the session. The caller commits."""
    activity = ActivityLog(
        client_id=client_id,
        activity_type=activity_type,
        description=description,
        activity_metadata=metadata or {},
    )
    db.add(activity)
    logger.debug(f"Activity {activity_type.value} recorded for client {client_id}")
    return activity
