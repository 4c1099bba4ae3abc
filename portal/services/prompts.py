# portal/services/prompts.py
"""
Prompt Template Registry

Prompt text lives in markdown files under ``portal/prompts`` and is
rendered with ``string.Template`` (``$name`` placeholders, ``$$`` for a
literal dollar). The fifteen strategy document types are fixed; their
templates are plain instructions with no placeholders.
"""

from functools import lru_cache
from pathlib import Path
from string import Template
from typing import Dict
import logging

from portal.models.document import DocumentType

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent.parent / "prompts"


DOCUMENT_TITLES: Dict[DocumentType, str] = {
    DocumentType.GTM_STRATEGY: "Go-To-Market Strategy",
    DocumentType.POSITIONING: "Offer & Positioning Framework",
    DocumentType.MESSAGING: "Messaging & Value Proposition",
    DocumentType.FUNNEL_STRATEGY: "Funnel & Conversion Strategy",
    DocumentType.CONTENT_STRATEGY: "Content Strategy",
    DocumentType.PAID_ADS: "Paid Ads Strategy",
    DocumentType.SEO_STRATEGY: "SEO / Organic Growth Plan",
    DocumentType.CRM_DESIGN: "CRM & RevOps Design",
    DocumentType.CLIENT_SUCCESS: "Client Success & Retention Plan",
    DocumentType.KPI_FRAMEWORK: "Reporting & KPI Framework",
    DocumentType.RISK_MITIGATION: "Risk Mitigation & Constraints Map",
    DocumentType.TOOL_OPTIMIZATION: "Tool Stack Optimization Plan",
    DocumentType.AUTOMATION_MAP: "Automation Opportunities Map",
    DocumentType.QUICK_WINS: "Short-Term Quick Wins (30–90 days)",
    DocumentType.SCALE_STRATEGY: "Long-Term Scale Strategy",
}


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Read a prompt file relative to the prompts directory."""
    path = PROMPTS_DIR / name
    logger.debug(f"Loading prompt template {path}")
    return path.read_text(encoding="utf-8").strip()


def render_prompt(name: str, **values) -> str:
    """
    Render a prompt template.

    Raises:
        KeyError: If the template references a value that was not supplied
    """
    return Template(load_prompt(name)).substitute(values)


def parse_document_type(value: str) -> DocumentType:
    """
    Resolve a registry key to its ``DocumentType``.

    Raises:
        ValueError: If ``value`` is not one of the fifteen keys
    """
    return DocumentType(value)


def document_title(document_type: DocumentType) -> str:
    return DOCUMENT_TITLES[document_type]


def document_template(document_type: DocumentType) -> str:
    return load_prompt(f"documents/{document_type.value}.md")


def document_system_prompt(document_type: DocumentType, client_context: str) -> str:
    """System prompt for a strategy document: wrapper, client context, then the type's template."""
    return render_prompt(
        "document_system.md",
        client_context=client_context,
        title=document_title(document_type),
        template=document_template(document_type),
    )


def document_user_prompt(document_type: DocumentType) -> str:
    return f"Generate the {document_title(document_type)} document based on the client context provided."
