# portal/models/notification.py
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, JSON, Enum, Uuid
from sqlalchemy.orm import relationship, backref
import uuid
import enum
from portal.database import Base, utcnow

class NotificationChannel(str, enum.Enum):
    WEBHOOK = "webhook"
    EMAIL = "email"

class NotificationStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

class NotificationOutbox(Base):
    __tablename__ = "notification_outbox"

    notification_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey('client_profiles.client_id', ondelete='CASCADE'), nullable=True, index=True)
    channel = Column(Enum(NotificationChannel, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20), nullable=False)
    event_type = Column(String(100), nullable=False, index=True)
    destination = Column(Text, nullable=False)
    subject = Column(String(500))
    payload = Column(JSON, default=dict)
    status = Column(Enum(NotificationStatus, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20), nullable=False, default=NotificationStatus.PENDING, index=True)
    attempts = Column(Integer, default=0)
    last_error = Column(Text)
    response_code = Column(Integer)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    sent_at = Column(DateTime(timezone=True))

    # Relationships
    client = relationship("ClientProfile", backref=backref("notifications", cascade="all, delete-orphan"))
