# portal/models/milestone.py
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship, backref
import uuid
from portal.database import Base, utcnow

class Milestone(Base):
    __tablename__ = "milestones"

    milestone_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey('client_profiles.client_id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    due_date = Column(DateTime(timezone=True))
    completed = Column(Boolean, default=False)
    completed_at = Column(DateTime(timezone=True))
    ai_suggested = Column(Boolean, default=False)
    display_order = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    client = relationship("ClientProfile", backref=backref("milestones", cascade="all, delete-orphan"))
