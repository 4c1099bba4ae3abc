# portal/models/activity.py
from sqlalchemy import Column, DateTime, Text, ForeignKey, JSON, Enum, Uuid
from sqlalchemy.orm import relationship, backref
import uuid
import enum
from portal.database import Base, utcnow

class ActivityType(str, enum.Enum):
    ONBOARDING_COMPLETED = "onboarding_completed"
    DOCUMENT_GENERATED = "document_generated"
    N8N_WEBHOOK_SENT = "n8n_webhook_sent"
    N8N_WEBHOOK_RESENT = "n8n_webhook_resent"
    MILESTONE_CREATED = "milestone_created"
    MILESTONE_COMPLETED = "milestone_completed"
    GIFT_RECOMMENDED = "gift_recommended"

class ActivityLog(Base):
    __tablename__ = "activity_logs"

    activity_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey('client_profiles.client_id', ondelete='CASCADE'), nullable=False, index=True)
    activity_type = Column(Enum(ActivityType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    activity_metadata = Column(JSON, default=dict)

    # Relationships
    client = relationship("ClientProfile", backref=backref("activity_logs", cascade="all, delete-orphan"))
