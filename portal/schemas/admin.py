# portal/schemas/admin.py
from pydantic import AliasGenerator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Optional
from datetime import datetime
from uuid import UUID

from portal.schemas.client import ClientSummary, LinkResponse
from portal.models.activity import ActivityType
from portal.models.notification import NotificationChannel, NotificationStatus
from portal.schemas.chat import ChatMessageResponse

# Request schemas
class GiftRecommendationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_id: UUID

# Model output
class GiftRecommendation(BaseModel):
    # Model output arrives in camelCase; responses stay snake_case
    model_config = ConfigDict(alias_generator=AliasGenerator(validation_alias=to_camel), populate_by_name=True)

    gift_name: str
    description: str = ""
    reasoning: str = ""
    estimated_cost: str = ""
    vendor: str = ""
    fulfillment_notes: str = ""

# Response schemas
class AdminClientListItem(ClientSummary):
    email: Optional[str] = None
    document_count: int = 0

class AdminClientListResponse(BaseModel):
    success: bool = True
    clients: list[AdminClientListItem]
    total: int
    page: int
    page_size: int

class BusinessInfo(BaseModel):
    company_name: str
    industry: str
    website_url: Optional[str]
    company_description: Optional[str]
    employee_count: Optional[str]
    business_model: Optional[str]

    class Config:
        from_attributes = True

class MarketingState(BaseModel):
    worked_with_agency: Optional[bool]
    current_channels: Any
    marketing_feedback: Optional[str]
    primary_challenges: Any

    class Config:
        from_attributes = True

class AnalyticsInfo(BaseModel):
    has_google_analytics: Optional[str]
    has_facebook_pixel: Optional[str]
    tracking_tools: Any
    can_provide_analytics_access: Optional[str]
    analytics_notes: Optional[str]

    class Config:
        from_attributes = True

class SocialMediaInfo(BaseModel):
    social_platforms: Any
    has_fb_business_manager: Optional[str]
    has_google_ads: Optional[str]

    class Config:
        from_attributes = True

class GoalsInfo(BaseModel):
    primary_goal: Optional[str]
    success_definition: Optional[str]
    key_metrics: Any
    revenue_target: Optional[str]
    target_cpa: Optional[str]
    target_roas: Optional[str]

    class Config:
        from_attributes = True

class AudienceInfo(BaseModel):
    ideal_customer_profile: Optional[str]
    geographic_targeting: Optional[str]
    age_range: Optional[str]
    gender_targeting: Optional[str]
    competitors: Any
    competitor_strengths: Optional[str]

    class Config:
        from_attributes = True

class BudgetInfo(BaseModel):
    monthly_budget_range: Optional[str]
    has_creative_assets: Optional[bool]
    has_marketing_contact: Optional[bool]
    marketing_contact_name: Optional[str]
    marketing_contact_email: Optional[str]

    class Config:
        from_attributes = True

class ActivityResponse(BaseModel):
    activity_id: UUID
    activity_type: ActivityType
    description: str
    activity_metadata: Optional[Dict[str, Any]]
    created_at: datetime

    class Config:
        from_attributes = True

class AdminClientDetail(BaseModel):
    client_id: UUID
    unique_client_id: str
    email: str
    created_at: Optional[datetime]
    last_login_at: Optional[datetime]

    business_info: BusinessInfo
    marketing_state: MarketingState
    analytics: AnalyticsInfo
    social_media: SocialMediaInfo
    goals: GoalsInfo
    audience: AudienceInfo
    budget: BudgetInfo

    status: str
    onboarding_completed: bool
    onboarding_completed_at: Optional[datetime]

    @classmethod
    def from_profile(cls, profile) -> "AdminClientDetail":
        """Group a profile's survey answers by onboarding step."""
        return cls(
            client_id=profile.client_id,
            unique_client_id=profile.unique_client_id,
            email=profile.user.email,
            created_at=profile.user.created_at,
            last_login_at=profile.user.last_login_at,
            business_info=BusinessInfo.model_validate(profile),
            marketing_state=MarketingState.model_validate(profile),
            analytics=AnalyticsInfo.model_validate(profile),
            social_media=SocialMediaInfo.model_validate(profile),
            goals=GoalsInfo.model_validate(profile),
            audience=AudienceInfo.model_validate(profile),
            budget=BudgetInfo.model_validate(profile),
            status=profile.status,
            onboarding_completed=bool(profile.onboarding_completed),
            onboarding_completed_at=profile.onboarding_completed_at,
        )

class AdminClientDetailResponse(BaseModel):
    success: bool = True
    client: AdminClientDetail
    links: list[LinkResponse]
    activity_logs: list[ActivityResponse]

class DeletedClient(BaseModel):
    client_id: str
    unique_client_id: str
    company_name: str
    email: str
    user_id: str

class DeleteClientResponse(BaseModel):
    success: bool = True
    message: str
    deleted: DeletedClient

class NotificationResponse(BaseModel):
    notification_id: UUID
    channel: NotificationChannel
    event_type: str
    destination: str
    status: NotificationStatus
    attempts: int
    response_code: Optional[int]
    last_error: Optional[str]
    created_at: datetime
    sent_at: Optional[datetime]

    class Config:
        from_attributes = True

class ResendWebhookResponse(BaseModel):
    success: bool = True
    delivered: bool
    message: str
    notification: NotificationResponse

class ChatStats(BaseModel):
    total_messages: int
    user_messages: int
    assistant_messages: int
    flagged_messages: int
    last_message_at: Optional[datetime]

class ClientChatSummary(BaseModel):
    client_id: UUID
    unique_client_id: str
    company_name: str
    email: Optional[str]
    chat_stats: ChatStats

class AdminChatListResponse(BaseModel):
    success: bool = True
    clients: list[ClientChatSummary]
    total_clients_with_chats: int
    total_messages: int

class AdminChatTranscriptResponse(BaseModel):
    success: bool = True
    client: ClientSummary
    messages: list[ChatMessageResponse]
    total_messages: int

class GiftRecommendationResponse(BaseModel):
    success: bool = True
    recommendation: GiftRecommendation
    email_queued: bool = True
