# portal/models/client.py
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, JSON, Uuid
from sqlalchemy.orm import relationship, backref
import uuid
from portal.database import Base, utcnow

class ClientProfile(Base):
    __tablename__ = "client_profiles"

    client_id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    unique_client_id = Column(String(64), unique=True, nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey('users.user_id', ondelete='CASCADE'), unique=True, nullable=False)

    # Step 1: business fundamentals
    company_name = Column(String(255), nullable=False)
    industry = Column(String(255), nullable=False)
    website_url = Column(String(500))
    company_description = Column(Text)
    employee_count = Column(String(50))
    business_model = Column(String(100))

    # Step 2: marketing state
    worked_with_agency = Column(Boolean, default=False)
    current_channels = Column(JSON, default=list)
    marketing_feedback = Column(Text)
    primary_challenges = Column(JSON, default=list)

    # Step 3: analytics
    has_google_analytics = Column(String(50))
    has_facebook_pixel = Column(String(50))
    tracking_tools = Column(JSON, default=list)
    can_provide_analytics_access = Column(String(50))
    analytics_notes = Column(Text)

    # Step 4: social & platforms
    social_platforms = Column(JSON, default=list)
    has_fb_business_manager = Column(String(50))
    has_google_ads = Column(String(50))

    # Step 5: goals
    primary_goal = Column(String(255))
    success_definition = Column(Text)
    key_metrics = Column(JSON, default=list)
    revenue_target = Column(String(100))
    target_cpa = Column(String(100))
    target_roas = Column(String(100))

    # Step 6: audience
    ideal_customer_profile = Column(Text)
    geographic_targeting = Column(String(255))
    age_range = Column(String(50))
    gender_targeting = Column(String(50))
    competitors = Column(JSON, default=list)
    competitor_strengths = Column(Text)

    # Step 7: budget & resources
    monthly_budget_range = Column(String(100))
    has_creative_assets = Column(Boolean, default=False)
    has_marketing_contact = Column(Boolean, default=False)
    marketing_contact_name = Column(String(255))
    marketing_contact_email = Column(String(255))

    # Status
    status = Column(String(50), default='active', nullable=False)
    onboarding_completed = Column(Boolean, default=False)
    onboarding_completed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", backref=backref("client_profile", uselist=False, cascade="all, delete-orphan"))
