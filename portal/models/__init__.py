# portal/models/__init__.py
from portal.models.user import User
from portal.models.client import ClientProfile
from portal.models.document import GeneratedDocument, DocumentType
from portal.models.chat import ChatMessage
from portal.models.milestone import Milestone
from portal.models.link import Link
from portal.models.activity import ActivityLog, ActivityType
from portal.models.notification import NotificationOutbox, NotificationChannel, NotificationStatus

__all__ = [
    "User",
    "ClientProfile",
    "GeneratedDocument",
    "DocumentType",
    "ChatMessage",
    "Milestone",
    "Link",
    "ActivityLog",
    "ActivityType",
    "NotificationOutbox",
    "NotificationChannel",
    "NotificationStatus",
]
