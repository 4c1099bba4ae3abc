# portal/schemas/agents.py
from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional, Union


class AgentRequest(BaseModel):
    """
    Base for agent inputs.

    Every field is optional. Blank strings, nulls and empty lists are
    dropped before validation so the field default applies, and both
    camelCase and snake_case keys are accepted.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            key: value for key, value in data.items()
            if value is not None
            and not (isinstance(value, str) and not value.strip())
            and value != []
        }


# Request schemas
class CampaignBriefRequest(AgentRequest):
    campaign_type: str = "Not specified - recommend based on client goals"
    campaign_goal: str = "Align with client's primary goal"
    target_audience: str = "Use client's ICP"
    budget: str = "Use client's monthly budget range"
    timeline: str = "Recommend appropriate timeline"
    additional_notes: str = "None"

class ContentAssistantRequest(AgentRequest):
    content_type: Optional[str] = None
    topic: str = "Recommend based on client goals and challenges"
    target_audience: str = "Use client's ICP"
    tone: str = "Professional yet approachable"
    length: str = "Appropriate for content type"
    cta: str = "Relevant to client goals"
    keywords: str = "Industry-relevant"
    additional_guidelines: str = "None"

class CompetitorAnalyzerRequest(AgentRequest):
    competitors: Optional[Union[str, List[str]]] = None
    analysis_type: str = "Comprehensive analysis"
    focus_areas: Optional[Union[str, List[str]]] = None
    additional_context: str = "None"

class QAComplianceRequest(AgentRequest):
    # Required at the service level so a missing value maps to a 400 envelope
    content_to_review: Optional[str] = None
    review_type: str = "General content"
    platform: Optional[str] = None
    industry: Optional[str] = None
    additional_criteria: str = "Standard review"

class SOPDrafterRequest(AgentRequest):
    sop_type: str = "General operational SOP"
    process_name: str = "Not specified - recommend based on common needs"
    process_owner: str = "To be assigned"
    tools: str = "Use client's existing tools"
    frequency: str = "As needed"
    additional_context: str = "None"

class AdCreativeRequest(AgentRequest):
    platform: Optional[str] = None
    ad_type: str = "Image ad"
    objective: str = "Conversions"
    product_service: Optional[str] = None
    offer: str = "None specified"
    number_of_variations: int = Field(3, ge=1, le=10)
    additional_context: str = "None"

class EmailSequenceRequest(AgentRequest):
    sequence_type: Optional[str] = None
    number_of_emails: int = Field(5, ge=1, le=15)
    goal: Optional[str] = None
    tone: Optional[str] = None
    include_subject_variations: bool = True
    additional_context: str = "None"

class PersonaBuilderRequest(AgentRequest):
    number_of_personas: int = Field(3, ge=1, le=6)
    focus_segment: str = "Primary ICP from context"
    include_negative_persona: bool = False
    additional_context: str = "None"

class ReportingInsightsRequest(AgentRequest):
    report_type: Optional[str] = None
    time_period: Optional[str] = None
    metrics_data: Optional[str] = None
    include_recommendations: bool = True
    audience: Optional[str] = None
    additional_context: str = "None"


# Structured outputs
class QAEdit(BaseModel):
    model_config = ConfigDict(alias_generator=AliasGenerator(validation_alias=to_camel), populate_by_name=True)

    type: str = "suggestion"
    issue: str = ""
    before: str = ""
    after: str = ""
    rationale: str = ""

class QAReview(BaseModel):
    """QA review as returned by the model (camelCase) and by the API (snake_case)."""
    model_config = ConfigDict(alias_generator=AliasGenerator(validation_alias=to_camel), populate_by_name=True)

    overall_score: float = 0
    status: str = "fail"
    summary: str = ""
    critical_issues: List[Any] = []
    recommendations: List[Any] = []
    suggestions: List[Any] = []
    compliance: Dict[str, Any] = {}
    edits: List[QAEdit] = []
    error: Optional[str] = None

