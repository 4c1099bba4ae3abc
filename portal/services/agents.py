# portal/services/agents.py
"""
Marketing Agents

Nine single-shot generators that share one pipeline:

    request payload -> typed input (defaults applied)
                    -> agent context view of the client profile
                    -> system and user prompt templates
                    -> generation call
                    -> payload under the agent's response key

Each agent is described by an ``AgentSpec``; the per-agent code is only the
function that turns its typed input into template values.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from portal.errors import GenerationFailed, InvalidArgument, NotFoundError, StructuredOutputError
from portal.models.client import ClientProfile
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
    QAReview,
)
from portal.services.context import build_agent_context, render_list_field
from portal.services.generation import GenerationInvoker
from portal.services.prompts import load_prompt, render_prompt

logger = logging.getLogger(__name__)


# =============================================================================
# AGENT SPECS
# =============================================================================

@dataclass(frozen=True)
class AgentSpec:
    key: str
    response_key: str
    request_model: Type[AgentRequest]
    build_values: Callable[[Any, ClientProfile], Dict[str, Any]]
    temperature: float
    max_tokens: int
    failure_message: str
    fallback: Optional[str] = None
    structured: bool = False

    @property
    def system_template(self) -> str:
        return f"agents/{self.key}.system.md"

    @property
    def user_template(self) -> str:
        return f"agents/{self.key}.user.md"


def _campaign_brief_values(req: CampaignBriefRequest, profile: ClientProfile) -> Dict[str, Any]:
    return req.model_dump()


def _content_assistant_values(req: ContentAssistantRequest, profile: ClientProfile) -> Dict[str, Any]:
    values = req.model_dump()
    values["content_type"] = req.content_type or "General content"
    # The user prompt reads "Create <type> about:"
    values["content_type_label"] = req.content_type or "content"
    return values


def _competitor_analyzer_values(req: CompetitorAnalyzerRequest, profile: ClientProfile) -> Dict[str, Any]:
    competitors = req.competitors or profile.competitors
    rendered = render_list_field(competitors, placeholder="")
    focus_areas = render_list_field(req.focus_areas, placeholder="")
    return {
        "competitors": rendered or "Use competitors from client context",
        "analysis_type": req.analysis_type,
        "focus_areas": focus_areas or "All areas",
        "additional_context": req.additional_context,
    }


def _qa_compliance_values(req: QAComplianceRequest, profile: ClientProfile) -> Dict[str, Any]:
    if not req.content_to_review:
        raise InvalidArgument("Content to review is required")
    return {
        "content_to_review": req.content_to_review,
        "review_type": req.review_type,
        "platform": req.platform or "Multi-channel",
        "platform_policy": req.platform or "general",
        "industry": req.industry or profile.industry,
        "additional_criteria": req.additional_criteria,
    }


def _sop_drafter_values(req: SOPDrafterRequest, profile: ClientProfile) -> Dict[str, Any]:
    return req.model_dump()


AD_PLATFORM_SPECS = {
    "facebook": """**Facebook Ad Specs:**
- Primary Text: 125 characters (expanded shows more)
- Headline: 40 characters
- Description: 30 characters
- Image: 1080x1080 (1:1) or 1200x628 (1.91:1)
- Video: Up to 240 minutes""",
    "instagram": """**Instagram Ad Specs:**
- Caption: 2,200 characters (first 125 visible)
- Hashtags: Up to 30 (5-10 recommended)
- Image: 1080x1080 (feed) or 1080x1920 (stories)
- Video: Up to 60 seconds (feed) or 15 seconds (stories)""",
    "linkedin": """**LinkedIn Ad Specs:**
- Intro Text: 150 characters (600 max)
- Headline: 70 characters
- Description: 100 characters
- Image: 1200x627
- Sponsored InMail: 500 characters intro""",
    "google-search": """**Google Search Ad Specs:**
- Headlines: 3 (30 characters each)
- Descriptions: 2 (90 characters each)
- Display URL: 15 characters per path
- Responsive: Up to 15 headlines, 4 descriptions""",
    "google-display": """**Google Display Ad Specs:**
- Headlines: 5 (30 characters each)
- Long Headline: 90 characters
- Descriptions: 5 (90 characters each)
- Business Name: 25 characters
- Images: Multiple sizes (1200x628, 1200x1200)""",
    "tiktok": """**TikTok Ad Specs:**
- Ad Text: 100 characters
- Video: 9:16 (1080x1920), 5-60 seconds
- Thumbnail text: Minimal
- CTA: Platform options""",
}

DEFAULT_PLATFORM_SPECS = "Follow general best practices for character limits and formats."

SEARCH_AD_LAYOUT = """
**Headlines (30 chars each)**:
1. [Headline 1]
2. [Headline 2]
3. [Headline 3]
4. [Headline 4 - optional]
5. [Headline 5 - optional]

**Descriptions (90 chars each)**:
1. [Description 1]
2. [Description 2]

**Display Path**: /[path1]/[path2]
"""

SOCIAL_AD_LAYOUT = """
**Primary Text/Copy**:
```
[Full ad copy - respect platform limits]
```

**Headline**: [Headline within platform limits]

**Description/Link Description**: [If applicable]

**CTA**: [Call-to-action button text]
"""


def _ad_creative_values(req: AdCreativeRequest, profile: ClientProfile) -> Dict[str, Any]:
    platform = req.platform
    return {
        "platform_label": platform or "Multi-platform",
        "package_label": platform or "Multi-Platform",
        "platform_target": platform or "Facebook",
        "platform_specs": AD_PLATFORM_SPECS.get(platform or "", DEFAULT_PLATFORM_SPECS),
        "variation_layout": SEARCH_AD_LAYOUT if platform == "google-search" else SOCIAL_AD_LAYOUT,
        "number_of_variations": req.number_of_variations,
        "objective": req.objective,
        "product_service_label": req.product_service or "From client context",
        "product_service": req.product_service or "Use from client context",
        "ad_type": req.ad_type,
        "offer": req.offer,
        "additional_context": req.additional_context,
    }


def _email_sequence_values(req: EmailSequenceRequest, profile: ClientProfile) -> Dict[str, Any]:
    return {
        "sequence_type": req.sequence_type or "Nurture Sequence",
        "sequence_label": req.sequence_type or "nurture",
        "overview_goal": req.goal or "Convert leads to customers",
        "goal": req.goal or "Nurture leads through the funnel",
        "overview_tone": req.tone or "Professional yet approachable",
        "tone": req.tone or "Professional, helpful, not pushy",
        "number_of_emails": req.number_of_emails,
        "subject_variations": "Yes, 3 per email" if req.include_subject_variations else "No, just primary",
        "additional_context": req.additional_context,
    }


def _persona_builder_values(req: PersonaBuilderRequest, profile: ClientProfile) -> Dict[str, Any]:
    return {
        "number_of_personas": req.number_of_personas,
        "persona_noun": "personas" if req.number_of_personas > 1 else "persona",
        "negative_clause": " plus 1 negative persona (who NOT to target)" if req.include_negative_persona else "",
        "negative_suffix": " plus a negative persona" if req.include_negative_persona else "",
        "focus_segment": req.focus_segment,
        "additional_context": req.additional_context,
    }


def _reporting_insights_values(req: ReportingInsightsRequest, profile: ClientProfile) -> Dict[str, Any]:
    if req.metrics_data:
        metrics_block = f"Available Metrics Data:\n{req.metrics_data}"
    else:
        metrics_block = "Use placeholder metrics that align with client goals."

    return {
        "report_type": req.report_type or "marketing performance",
        "report_title": req.report_type or "Marketing Performance",
        "period_label": req.time_period or "Current Period",
        "time_period": req.time_period or "Last Month",
        "prepared_for": req.audience or "Leadership Team",
        "footer_audience": req.audience or "leadership review",
        "audience": req.audience or "Leadership/Executives",
        "include_recommendations": "Yes" if req.include_recommendations else "No",
        "recommendations_section": load_prompt("agents/reporting-insights.recommendations.md") if req.include_recommendations else "",
        "metrics_block": metrics_block,
        "additional_context": req.additional_context,
    }


AGENTS: Dict[str, AgentSpec] = {
    spec.key: spec for spec in (
        AgentSpec("campaign-brief", "brief", CampaignBriefRequest, _campaign_brief_values,
                  0.7, 3000, "Failed to generate campaign brief",
                  fallback="Failed to generate campaign brief."),
        AgentSpec("content-assistant", "content", ContentAssistantRequest, _content_assistant_values,
                  0.8, 2500, "Failed to generate content",
                  fallback="Failed to generate content."),
        AgentSpec("competitor-analyzer", "analysis", CompetitorAnalyzerRequest, _competitor_analyzer_values,
                  0.7, 3500, "Failed to generate competitor analysis",
                  fallback="Failed to generate competitor analysis."),
        AgentSpec("qa-compliance", "review", QAComplianceRequest, _qa_compliance_values,
                  0.3, 2500, "Failed to perform QA review",
                  structured=True),
        AgentSpec("sop-drafter", "sop", SOPDrafterRequest, _sop_drafter_values,
                  0.7, 3500, "Failed to generate SOP",
                  fallback="Failed to generate SOP."),
        AgentSpec("ad-creative", "ad_creative", AdCreativeRequest, _ad_creative_values,
                  0.8, 3500, "Failed to generate ad creative",
                  fallback="Failed to generate ad creative."),
        AgentSpec("email-sequence", "sequence", EmailSequenceRequest, _email_sequence_values,
                  0.8, 4000, "Failed to generate email sequence",
                  fallback="Failed to generate email sequence."),
        AgentSpec("persona-builder", "personas", PersonaBuilderRequest, _persona_builder_values,
                  0.8, 4000, "Failed to generate personas",
                  fallback="Failed to generate personas."),
        AgentSpec("reporting-insights", "report", ReportingInsightsRequest, _reporting_insights_values,
                  0.6, 3500, "Failed to generate report",
                  fallback="Failed to generate report."),
    )
}


def get_agent(key: str) -> AgentSpec:
    """
    Raises:
        NotFoundError: If no agent is registered under ``key``
    """
    spec = AGENTS.get(key)
    if not spec:
        raise NotFoundError(f"Unknown agent: {key}")
    return spec


# =============================================================================
# RUNNER
# =============================================================================

class AgentRunner:
    """Runs one agent for one client."""

    def __init__(self, db: Session, generator: GenerationInvoker):
        self.db = db
        self.generator = generator

    def parse_request(self, spec: AgentSpec, payload: Optional[Dict[str, Any]]) -> AgentRequest:
        """
        Raises:
            InvalidArgument: If the payload does not fit the agent's input
        """
        try:
            return spec.request_model.model_validate(payload or {})
        except ValidationError as e:
            logger.warning(f"Invalid {spec.key} request: {e.errors()}")
            raise InvalidArgument("Invalid request")

    def build_prompts(self, spec: AgentSpec, request: AgentRequest, profile: ClientProfile) -> Dict[str, str]:
        values = spec.build_values(request, profile)
        values["client_context"] = build_agent_context(spec.key, profile)
        return {
            "system": render_prompt(spec.system_template, **values),
            "user": render_prompt(spec.user_template, **values),
        }

    async def run(self, key: str, profile: ClientProfile, payload: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Run agent ``key`` for ``profile``.

        Returns:
            ``{response_key: payload}``

        Raises:
            NotFoundError: Unknown agent
            InvalidArgument: Invalid input
            GenerationFailed: The generation call failed; the message is
                the agent's public failure message
        """
        spec = get_agent(key)
        request = self.parse_request(spec, payload)
        rendered = self.build_prompts(spec, request, profile)

        logger.info(f"🤖 Running agent {spec.key} for client {profile.client_id}")

        if spec.structured:
            return {spec.response_key: await self._run_structured(spec, rendered)}

        try:
            text = await self.generator.generate_text(
                system_prompt=rendered["system"],
                messages=[{"role": "user", "content": rendered["user"]}],
                temperature=spec.temperature,
                max_tokens=spec.max_tokens,
                fallback=spec.fallback,
            )
        except GenerationFailed as e:
            raise GenerationFailed(spec.failure_message) from e

        logger.info(f"✅ Agent {spec.key} completed for client {profile.client_id}")
        return {spec.response_key: text}

    async def _run_structured(self, spec: AgentSpec, rendered: Dict[str, str]) -> Dict[str, Any]:
        """Structured agents degrade to an error review instead of failing on unparseable output."""
        try:
            raw = await self.generator.generate_structured(
                system_prompt=rendered["system"],
                user_prompt=rendered["user"],
                schema_hint="",
                temperature=spec.temperature,
                max_tokens=spec.max_tokens,
            )
            review = QAReview.model_validate(raw)
        except StructuredOutputError as e:
            logger.warning(f"⚠️  Agent {spec.key} returned unparseable output")
            return self._degraded_review(e.raw)
        except ValidationError as e:
            logger.warning(f"⚠️  Agent {spec.key} returned an unexpected shape: {e.errors()}")
            return self._degraded_review(str(raw))
        except GenerationFailed as e:
            raise GenerationFailed(spec.failure_message) from e

        return review.model_dump()

    @staticmethod
    def _degraded_review(raw: str) -> Dict[str, Any]:
        return QAReview(
            overall_score=0,
            status="error",
            summary="Failed to parse QA review",
            error=raw,
        ).model_dump()
