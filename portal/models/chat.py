# portal/models/chat.py
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship, backref
import uuid
from portal.database import Base, utcnow

class ChatMessage(Base):
    __tablename__ = "chat_messages"

    message_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey('client_profiles.client_id', ondelete='CASCADE'), nullable=False, index=True)
    role = Column(String(20), nullable=False)  # user | assistant
    content = Column(Text, nullable=False)
    flagged = Column(Boolean, default=False)
    # Per-client insertion order, 1-based
    sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    # Relationships
    client = relationship("ClientProfile", backref=backref("chat_messages", cascade="all, delete-orphan"))
