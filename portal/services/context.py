# portal/services/context.py
"""
Context Builder

Turns a client profile into the plain-text context block that prefixes every
generation prompt. Rendering is pure: the same profile always yields the
same bytes, so cached documents and fresh ones are built from identical
context.

Each consumer (strategy documents, the support chat, every agent) has its
own view. A view is data: an ordered list of sections, each an ordered list
of fields, so the layout can be read at a glance and tested without a model.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Tuple, Union

# Field kinds
TEXT = "text"
LIST = "list"
YES_NO = "yes_no"

LIST_PLACEHOLDER = "Not specified"


# =============================================================================
# FIELD RENDERING
# =============================================================================

def render_list_field(value: Any, placeholder: str = LIST_PLACEHOLDER) -> str:
    """
    Render a list-valued profile field as a comma separated string.

    Profiles written by the survey hold native lists. Older rows may hold a
    JSON-encoded string or plain free text, so decoding falls back to the raw
    value instead of failing.

    Args:
        value: Native list, JSON string, free text or None
        placeholder: Text used when the field is unset

    Returns:
        Rendered field. A JSON-encoded empty array renders as an empty
        string, not the placeholder.
    """
    if value is None or value == "":
        return placeholder

    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return value
        if isinstance(parsed, list):
            return ", ".join(str(item) for item in parsed)
        return value

    return str(value)


def render_text_field(value: Any, placeholder: str) -> str:
    if value is None or value == "":
        return placeholder
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def render_yes_no(value: Any) -> str:
    return "Yes" if value else "No"


# =============================================================================
# VIEW DECLARATIONS
# =============================================================================

@dataclass(frozen=True)
class ContextField:
    """
    One line of a context section.

    ``source`` is a profile attribute name or a callable taking
    ``(profile, placeholder)``. A field without a label renders its value
    on a line of its own.
    """
    label: Optional[str]
    source: Union[str, Callable[[Any, str], str]]
    kind: str = TEXT
    placeholder: Optional[str] = None


@dataclass(frozen=True)
class ContextSection:
    title: str
    fields: Tuple[ContextField, ...]


@dataclass(frozen=True)
class ContextView:
    name: str
    sections: Tuple[ContextSection, ...]
    placeholder: str = "Not specified"
    header: Optional[str] = None


def _field_value(field: ContextField, profile: Any, default_placeholder: str) -> str:
    placeholder = field.placeholder or default_placeholder

    if callable(field.source):
        return field.source(profile, placeholder)

    value = getattr(profile, field.source, None)

    if field.kind == LIST:
        return render_list_field(value, field.placeholder or LIST_PLACEHOLDER)
    if field.kind == YES_NO:
        return render_yes_no(value)
    return render_text_field(value, placeholder)


def render_view(view: ContextView, profile: Any) -> str:
    """Render ``profile`` through ``view``."""
    blocks = []
    if view.header:
        blocks.append(view.header)

    for section in view.sections:
        lines = [f"{section.title}:"]
        for field in section.fields:
            value = _field_value(field, profile, view.placeholder)
            if field.label is None:
                lines.append(value)
            else:
                lines.append(f"- {field.label}: {value}")
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks).strip()


# Composite fields

def _demographics(profile: Any, placeholder: str) -> str:
    age = render_text_field(profile.age_range, placeholder)
    gender = render_text_field(profile.gender_targeting, "All")
    return f"{age}, {gender}"


def _marketing_contact(profile: Any, placeholder: str) -> str:
    name = render_text_field(profile.marketing_contact_name, placeholder)
    email = render_text_field(profile.marketing_contact_email, "No email")
    return f"{name} ({email})"


def _analytics_tools(profile: Any, placeholder: str) -> str:
    tools = []
    if profile.has_google_analytics:
        tools.append("Google Analytics")
    if profile.has_facebook_pixel:
        tools.append("Facebook Pixel")
    return ", ".join(tools) if tools else placeholder


def _f(label, source, kind=TEXT, placeholder=None) -> ContextField:
    return ContextField(label, source, kind, placeholder)


# =============================================================================
# STRATEGY DOCUMENTS
# =============================================================================

STRATEGY_VIEW = ContextView(
    name="strategy",
    placeholder="Not provided",
    sections=(
        ContextSection("Company Information", (
            _f("Company Name", "company_name"),
            _f("Industry", "industry"),
            _f("Website", "website_url"),
            _f("Employee Count", "employee_count"),
            _f("Business Model", "business_model"),
            _f("Company Description", "company_description"),
        )),
        ContextSection("Marketing State", (
            _f("Worked with Agency Before", "worked_with_agency", YES_NO),
            _f("Current Marketing Channels", "current_channels", LIST),
            _f("Primary Challenges", "primary_challenges", LIST),
            _f("Marketing Feedback", "marketing_feedback"),
        )),
        ContextSection("Analytics & Tracking", (
            _f("Google Analytics", "has_google_analytics"),
            _f("Facebook Pixel", "has_facebook_pixel"),
            _f("Tracking Tools", "tracking_tools", LIST),
            _f("Analytics Notes", "analytics_notes"),
        )),
        ContextSection("Social Media", (
            _f("Social Platforms", "social_platforms", LIST),
            _f("FB Business Manager", "has_fb_business_manager"),
            _f("Google Ads", "has_google_ads"),
        )),
        ContextSection("Goals & Objectives", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
            _f("Key Metrics", "key_metrics", LIST),
            _f("Revenue Target", "revenue_target"),
            _f("Target CPA", "target_cpa"),
            _f("Target ROAS", "target_roas"),
        )),
        ContextSection("Target Audience", (
            _f("Ideal Customer Profile", "ideal_customer_profile"),
            _f("Geographic Targeting", "geographic_targeting"),
            _f("Age Range", "age_range"),
            _f("Gender Targeting", "gender_targeting"),
            _f("Competitors", "competitors", LIST),
            _f("Competitor Strengths", "competitor_strengths"),
        )),
        ContextSection("Budget & Resources", (
            _f("Monthly Budget Range", "monthly_budget_range"),
            _f("Has Creative Assets", "has_creative_assets", YES_NO),
            _f("Has Marketing Contact", "has_marketing_contact", YES_NO),
        )),
    ),
)


# =============================================================================
# SUPPORT CHAT
# =============================================================================

CHAT_VIEW = ContextView(
    name="chat",
    header="=== CLIENT BUSINESS PROFILE ===",
    sections=(
        ContextSection("COMPANY INFORMATION", (
            _f("Company Name", "company_name"),
            _f("Industry", "industry"),
            _f("Website", "website_url", placeholder="Not provided"),
            _f("Description", "company_description", placeholder="Not provided"),
            _f("Employee Count", "employee_count"),
            _f("Business Model", "business_model"),
        )),
        ContextSection("CURRENT MARKETING STATE", (
            _f("Previously Worked with Agency", "worked_with_agency", YES_NO),
            _f("Current Marketing Channels", "current_channels", LIST),
            _f("Marketing Feedback", "marketing_feedback", placeholder="Not provided"),
            _f("Primary Challenges", "primary_challenges", LIST),
        )),
        ContextSection("ANALYTICS & TRACKING", (
            _f("Google Analytics", "has_google_analytics"),
            _f("Facebook Pixel", "has_facebook_pixel"),
            _f("Tracking Tools", "tracking_tools", LIST),
            _f("Analytics Access", "can_provide_analytics_access"),
            _f("Analytics Notes", "analytics_notes", placeholder="Not provided"),
        )),
        ContextSection("SOCIAL MEDIA & PLATFORMS", (
            _f("Social Platforms", "social_platforms", LIST),
            _f("Facebook Business Manager", "has_fb_business_manager"),
            _f("Google Ads", "has_google_ads"),
        )),
        ContextSection("BUSINESS GOALS & OBJECTIVES", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
            _f("Key Metrics", "key_metrics", LIST),
            _f("Revenue Target", "revenue_target"),
            _f("Target CPA", "target_cpa"),
            _f("Target ROAS", "target_roas"),
        )),
        ContextSection("TARGET AUDIENCE", (
            _f("Ideal Customer Profile", "ideal_customer_profile"),
            _f("Geographic Targeting", "geographic_targeting"),
            _f("Age Range", "age_range"),
            _f("Gender Targeting", "gender_targeting"),
        )),
        ContextSection("COMPETITORS", (
            _f("Main Competitors", "competitors", LIST),
            _f("Competitor Strengths", "competitor_strengths"),
        )),
        ContextSection("BUDGET & RESOURCES", (
            _f("Monthly Budget Range", "monthly_budget_range"),
            _f("Has Creative Assets", "has_creative_assets", YES_NO),
            _f("Has Marketing Contact", "has_marketing_contact", YES_NO),
            _f("Marketing Contact", _marketing_contact),
        )),
        ContextSection("CLIENT STATUS", (
            _f("Onboarding Completed", "onboarding_completed", YES_NO),
            _f("Status", "status"),
            _f("Member Since", "created_at"),
        )),
    ),
)


# =============================================================================
# AGENTS
# =============================================================================

AGENT_VIEWS: Dict[str, ContextView] = {
    "campaign-brief": ContextView("campaign-brief", (
        ContextSection("COMPANY PROFILE", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
            _f("Business Model", "business_model"),
            _f("Employee Count", "employee_count"),
        )),
        ContextSection("TARGET MARKET", (
            _f("ICP", "ideal_customer_profile"),
            _f("Geographic", "geographic_targeting"),
            _f("Demographics", _demographics),
        )),
        ContextSection("BUSINESS GOALS", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
            _f("Revenue Target", "revenue_target"),
            _f("Target CPA", "target_cpa"),
            _f("Target ROAS", "target_roas"),
        )),
        ContextSection("MARKETING STATE", (
            _f("Current Channels", "current_channels", LIST),
            _f("Primary Challenges", "primary_challenges", LIST),
            _f("Monthly Budget", "monthly_budget_range"),
        )),
        ContextSection("COMPETITORS", (
            _f(None, "competitors", LIST),
        )),
        ContextSection("ANALYTICS SETUP", (
            _f("Google Analytics", "has_google_analytics"),
            _f("Facebook Pixel", "has_facebook_pixel"),
            _f("Tracking Tools", "tracking_tools", LIST),
        )),
    )),
    "content-assistant": ContextView("content-assistant", (
        ContextSection("BRAND IDENTITY", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
            _f("Business Model", "business_model"),
            _f("Company Description", "company_description"),
        )),
        ContextSection("VALUE PROPOSITION", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
        )),
        ContextSection("TARGET AUDIENCE", (
            _f("ICP", "ideal_customer_profile"),
            _f("Geographic", "geographic_targeting"),
            _f("Demographics", _demographics),
        )),
        ContextSection("COMPETITIVE LANDSCAPE", (
            _f("Competitors", "competitors", LIST),
            _f("Competitor Strengths", "competitor_strengths"),
        )),
        ContextSection("MARKETING CONTEXT", (
            _f("Current Channels", "current_channels", LIST),
            _f("Primary Challenges", "primary_challenges", LIST),
            _f("Marketing Feedback", "marketing_feedback"),
        )),
    )),
    "competitor-analyzer": ContextView("competitor-analyzer", (
        ContextSection("YOUR COMPANY", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
            _f("Business Model", "business_model"),
            _f("Value Proposition", "company_description"),
        )),
        ContextSection("TARGET MARKET", (
            _f("ICP", "ideal_customer_profile"),
            _f("Geographic", "geographic_targeting"),
        )),
        ContextSection("CURRENT POSITIONING", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
            _f("Key Differentiators", "competitor_strengths"),
        )),
        ContextSection("KNOWN COMPETITORS", (
            _f(None, "competitors", LIST),
        )),
        ContextSection("MARKETING CONTEXT", (
            _f("Monthly Budget", "monthly_budget_range"),
            _f("Current Channels", "current_channels", LIST),
        )),
    )),
    "qa-compliance": ContextView("qa-compliance", (
        ContextSection("BRAND STANDARDS", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
            _f("Target Audience", "ideal_customer_profile"),
        )),
        ContextSection("BRAND VOICE & MESSAGING", (
            _f("Primary Goal", "primary_goal"),
            _f("Value Proposition", "success_definition"),
            _f("Key Differentiators", "competitor_strengths"),
        )),
        ContextSection("COMPLIANCE CONTEXT", (
            _f("Industry", "industry"),
            _f("Geographic Markets", "geographic_targeting"),
            _f("Current Channels", "current_channels", LIST),
        )),
    )),
    "sop-drafter": ContextView("sop-drafter", (
        ContextSection("COMPANY PROFILE", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
            _f("Business Model", "business_model"),
            _f("Team Size", "employee_count"),
        )),
        ContextSection("CURRENT TOOLS & SYSTEMS", (
            _f("Analytics", _analytics_tools),
            _f("Tracking Tools", "tracking_tools", LIST),
            _f("Marketing Channels", "current_channels", LIST),
            _f("Social Platforms", "social_platforms", LIST),
        )),
        ContextSection("BUSINESS GOALS", (
            _f("Primary Goal", "primary_goal"),
            _f("Key Metrics", "key_metrics", LIST),
        )),
        ContextSection("CHALLENGES", (
            _f(None, "primary_challenges", LIST),
        )),
    )),
    "ad-creative": ContextView("ad-creative", (
        ContextSection("BRAND", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
            _f("Description", "company_description"),
            _f("Website", "website_url"),
        )),
        ContextSection("VALUE PROPOSITION", (
            _f("Primary Goal", "primary_goal"),
            _f("Key Differentiators", "competitor_strengths"),
        )),
        ContextSection("TARGET AUDIENCE", (
            _f("ICP", "ideal_customer_profile"),
            _f("Demographics", _demographics),
            _f("Geographic", "geographic_targeting"),
        )),
        ContextSection("COMPETITIVE CONTEXT", (
            _f("Competitors", "competitors", LIST),
        )),
        ContextSection("MARKETING CONTEXT", (
            _f("Budget", "monthly_budget_range"),
            _f("Current Channels", "current_channels", LIST),
            _f("Challenges", "primary_challenges", LIST),
        )),
    )),
    "email-sequence": ContextView("email-sequence", (
        ContextSection("BRAND IDENTITY", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
            _f("Description", "company_description"),
        )),
        ContextSection("VALUE PROPOSITION", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
        )),
        ContextSection("TARGET AUDIENCE", (
            _f("ICP", "ideal_customer_profile"),
            _f("Demographics", _demographics),
            _f("Geographic", "geographic_targeting"),
        )),
        ContextSection("COMPETITIVE CONTEXT", (
            _f("Competitors", "competitors", LIST),
            _f("Key Differentiators", "competitor_strengths"),
        )),
        ContextSection("MARKETING CHALLENGES", (
            _f(None, "primary_challenges", LIST),
        )),
    )),
    "persona-builder": ContextView("persona-builder", (
        ContextSection("COMPANY", (
            _f("Name", "company_name"),
            _f("Industry", "industry"),
            _f("Business Model", "business_model"),
            _f("Description", "company_description"),
        )),
        ContextSection("CURRENT ICP DEFINITION", (
            _f(None, "ideal_customer_profile"),
        )),
        ContextSection("TARGET DEMOGRAPHICS", (
            _f("Age Range", "age_range"),
            _f("Gender", "gender_targeting", placeholder="All"),
            _f("Geographic", "geographic_targeting"),
        )),
        ContextSection("PRODUCT/SERVICE VALUE", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
        )),
        ContextSection("COMPETITIVE LANDSCAPE", (
            _f("Competitors", "competitors", LIST),
        )),
        ContextSection("CURRENT MARKETING", (
            _f("Channels", "current_channels", LIST),
            _f("Challenges", "primary_challenges", LIST),
        )),
    )),
    "reporting-insights": ContextView("reporting-insights", (
        ContextSection("CLIENT", (
            _f("Company", "company_name"),
            _f("Industry", "industry"),
        )),
        ContextSection("GOALS & KPIs", (
            _f("Primary Goal", "primary_goal"),
            _f("Success Definition", "success_definition"),
            _f("Key Metrics", "key_metrics", LIST),
            _f("Revenue Target", "revenue_target"),
            _f("Target CPA", "target_cpa"),
            _f("Target ROAS", "target_roas"),
        )),
        ContextSection("MARKETING CONTEXT", (
            _f("Budget", "monthly_budget_range"),
            _f("Channels", "current_channels", LIST),
            _f("Challenges", "primary_challenges", LIST),
        )),
        ContextSection("ANALYTICS SETUP", (
            _f("Google Analytics", "has_google_analytics"),
            _f("Facebook Pixel", "has_facebook_pixel"),
            _f("Tools", "tracking_tools", LIST),
        )),
    )),
}


# =============================================================================
# PUBLIC API
# =============================================================================

def build_strategy_context(profile: Any) -> str:
    return render_view(STRATEGY_VIEW, profile)


def build_chat_context(profile: Any) -> str:
    return render_view(CHAT_VIEW, profile)


def build_agent_context(agent_key: str, profile: Any) -> str:
    """Render the context block for one agent. Raises KeyError for unknown agents."""
    return render_view(AGENT_VIEWS[agent_key], profile)
