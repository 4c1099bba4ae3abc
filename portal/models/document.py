# portal/models/document.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum, UniqueConstraint, Text, Uuid
from sqlalchemy.orm import relationship, backref
import uuid
import enum
from portal.database import Base, utcnow

class DocumentType(str, enum.Enum):
    GTM_STRATEGY = "gtm-strategy"
    POSITIONING = "positioning"
    MESSAGING = "messaging"
    FUNNEL_STRATEGY = "funnel-strategy"
    CONTENT_STRATEGY = "content-strategy"
    PAID_ADS = "paid-ads"
    SEO_STRATEGY = "seo-strategy"
    CRM_DESIGN = "crm-design"
    CLIENT_SUCCESS = "client-success"
    KPI_FRAMEWORK = "kpi-framework"
    RISK_MITIGATION = "risk-mitigation"
    TOOL_OPTIMIZATION = "tool-optimization"
    AUTOMATION_MAP = "automation-map"
    QUICK_WINS = "quick-wins"
    SCALE_STRATEGY = "scale-strategy"

class GeneratedDocument(Base):
    __tablename__ = "generated_documents"
    __table_args__ = (
        UniqueConstraint('client_id', 'document_type', name='_client_document_type_uc'),
    )

    document_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(Uuid(as_uuid=True), ForeignKey('client_profiles.client_id', ondelete='CASCADE'), nullable=False, index=True)
    # Stored by value so the column holds the registry key
    document_type = Column(Enum(DocumentType, values_callable=lambda e: [m.value for m in e], native_enum=False, length=50), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    word_count = Column(Integer, default=0)
    generated_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    client = relationship("ClientProfile", backref=backref("documents", cascade="all, delete-orphan"))
