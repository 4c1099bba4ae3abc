# portal/models/link.py
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import relationship, backref
import uuid
from portal.database import Base, utcnow

class Link(Base):
    __tablename__ = "links"

    link_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey('client_profiles.client_id', ondelete='CASCADE'), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    url = Column(Text, nullable=False)
    link_type = Column(String(50))
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    client = relationship("ClientProfile", backref=backref("links", cascade="all, delete-orphan"))
