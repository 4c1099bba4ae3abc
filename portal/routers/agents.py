# portal/routers/agents.py
"""
AI Agent Endpoints

One POST endpoint per agent. Each agent combines the caller's profile
with the request's optional inputs and returns a single generation.
"""

from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session
import logging

from portal.database import get_db
from portal.dependencies import get_current_profile, get_generator
from portal.models.client import ClientProfile
from portal.services.agents import AGENTS, AgentRunner

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
async def list_agents() -> Dict[str, Any]:
    """Agent keys and the response field each one returns."""
    return {
        "success": True,
        "agents": {key: spec.response_key for key, spec in AGENTS.items()}
    }


@router.post("/{agent_key}")
async def run_agent(
    agent_key: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    db: Session = Depends(get_db),
    profile: ClientProfile = Depends(get_current_profile),
    generator = Depends(get_generator)
) -> Dict[str, Any]:
    """
    Run one agent for the caller.

    Every input field is optional and accepts camelCase or snake_case keys.

    Raises:
        404: Unknown agent
        400: Invalid input
        500: Generation failed
    """
    result = await AgentRunner(db, generator).run(agent_key, profile, payload)
    return {"success": True, **result}
