# portal/schemas/client.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, List, Optional
from datetime import datetime
from uuid import UUID

# Request schemas
class OnboardingRequest(BaseModel):
    """The seven-step onboarding survey. Keys may be camelCase or snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    # Step 1: business fundamentals
    company_name: str = Field(..., min_length=1, max_length=255)
    industry: str = Field(..., min_length=1, max_length=255)
    website_url: Optional[str] = Field(None, max_length=500)
    company_description: Optional[str] = None
    employee_count: Optional[str] = Field(None, max_length=50)
    business_model: Optional[str] = Field(None, max_length=100)
    # Step 2: marketing state
    worked_with_agency: bool = False
    current_channels: List[str] = []
    marketing_feedback: Optional[str] = None
    primary_challenges: List[str] = []
    # Step 3: analytics
    has_google_analytics: Optional[str] = Field(None, max_length=50)
    has_facebook_pixel: Optional[str] = Field(None, max_length=50)
    tracking_tools: List[str] = []
    can_provide_analytics_access: Optional[str] = Field(None, max_length=50)
    analytics_notes: Optional[str] = None
    # Step 4: social & platforms
    social_platforms: List[str] = []
    has_fb_business_manager: Optional[str] = Field(None, max_length=50)
    has_google_ads: Optional[str] = Field(None, max_length=50)
    # Step 5: goals
    primary_goal: Optional[str] = Field(None, max_length=255)
    success_definition: Optional[str] = None
    key_metrics: List[str] = []
    revenue_target: Optional[str] = Field(None, max_length=100)
    target_cpa: Optional[str] = Field(None, max_length=100)
    target_roas: Optional[str] = Field(None, max_length=100)
    # Step 6: audience
    ideal_customer_profile: Optional[str] = None
    geographic_targeting: Optional[str] = Field(None, max_length=255)
    age_range: Optional[str] = Field(None, max_length=50)
    gender_targeting: Optional[str] = Field(None, max_length=50)
    competitors: List[str] = []
    competitor_strengths: Optional[str] = None
    # Step 7: budget & resources
    monthly_budget_range: Optional[str] = Field(None, max_length=100)
    has_creative_assets: bool = False
    has_marketing_contact: bool = False
    marketing_contact_name: Optional[str] = Field(None, max_length=255)
    marketing_contact_email: Optional[EmailStr] = None

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: value for key, value in data.items()
            if value is not None and not (isinstance(value, str) and not value.strip())
        }

# Response schemas
class LinkResponse(BaseModel):
    link_id: UUID
    title: str
    url: str
    link_type: Optional[str]
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True

class ClientSummary(BaseModel):
    client_id: UUID
    unique_client_id: str
    company_name: str
    industry: str
    status: str
    onboarding_completed: bool
    onboarding_completed_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True

class ClientMeResponse(BaseModel):
    success: bool = True
    client: ClientSummary
    links: list[LinkResponse]

class OnboardingResponse(BaseModel):
    success: bool = True
    client: ClientSummary
    notifications_queued: int
