# portal/schemas/__init__.py
from portal.schemas.client import (
    OnboardingRequest, LinkResponse, ClientSummary,
    ClientMeResponse, OnboardingResponse
)
from portal.schemas.document import (
    DocumentGenerateRequest, DocumentMetadata, DocumentResponse,
    DocumentGenerateResponse, DocumentDetailResponse,
    DocumentListResponse, DocumentTypesResponse
)
from portal.schemas.chat import (
    ChatRequest, ChatFlagUpdate, ChatMessageResponse,
    ChatReplyResponse, ChatTranscriptResponse, ChatMessageUpdateResponse
)
from portal.schemas.agents import (
    AgentRequest,
    CampaignBriefRequest,
    ContentAssistantRequest,
    CompetitorAnalyzerRequest,
    QAComplianceRequest,
    SOPDrafterRequest,
    AdCreativeRequest,
    EmailSequenceRequest,
    PersonaBuilderRequest,
    ReportingInsightsRequest,
    QAEdit,
    QAReview
)
from portal.schemas.milestone import (
    MilestoneCreate, MilestoneUpdate, MilestoneSuggestRequest,
    MilestoneSuggestion, MilestoneResponse, MilestoneListResponse,
    MilestoneSuggestResponse, MilestoneDetailResponse
)
from portal.schemas.admin import (
    GiftRecommendationRequest, GiftRecommendation, GiftRecommendationResponse,
    AdminClientListItem, AdminClientListResponse,
    AdminClientDetail, AdminClientDetailResponse, ActivityResponse,
    DeleteClientResponse, NotificationResponse, ResendWebhookResponse,
    ChatStats, ClientChatSummary, AdminChatListResponse, AdminChatTranscriptResponse
)

__all__ = [
    # Client
    "OnboardingRequest", "LinkResponse", "ClientSummary",
    "ClientMeResponse", "OnboardingResponse",
    # Document
    "DocumentGenerateRequest", "DocumentMetadata", "DocumentResponse",
    "DocumentGenerateResponse", "DocumentDetailResponse",
    "DocumentListResponse", "DocumentTypesResponse",
    # Chat
    "ChatRequest", "ChatFlagUpdate", "ChatMessageResponse",
    "ChatReplyResponse", "ChatTranscriptResponse", "ChatMessageUpdateResponse",
    # Agents
    "AgentRequest", "CampaignBriefRequest", "ContentAssistantRequest",
    "CompetitorAnalyzerRequest", "QAComplianceRequest", "SOPDrafterRequest",
    "AdCreativeRequest", "EmailSequenceRequest", "PersonaBuilderRequest",
    "ReportingInsightsRequest", "QAEdit", "QAReview",
    # Milestone
    "MilestoneCreate", "MilestoneUpdate", "MilestoneSuggestRequest",
    "MilestoneSuggestion", "MilestoneResponse", "MilestoneListResponse",
    "MilestoneSuggestResponse", "MilestoneDetailResponse",
    # Admin
    "GiftRecommendationRequest", "GiftRecommendation", "GiftRecommendationResponse",
    "AdminClientListItem", "AdminClientListResponse",
    "AdminClientDetail", "AdminClientDetailResponse", "ActivityResponse",
    "DeleteClientResponse", "NotificationResponse", "ResendWebhookResponse",
    "ChatStats", "ClientChatSummary", "AdminChatListResponse", "AdminChatTranscriptResponse",
]
