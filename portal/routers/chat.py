# portal/routers/chat.py
"""
Support Chat Endpoints

The signed-in client's conversation with the agency's support persona.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from portal.database import get_db
from portal.dependencies import get_current_profile, get_generator, get_settings
from portal.config import Settings
from portal.errors import GenerationFailed
from portal.models.client import ClientProfile
from portal.schemas.chat import ChatRequest, ChatReplyResponse, ChatTranscriptResponse
from portal.services.chat import ChatSession

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=ChatReplyResponse)
async def post_chat_message(
    request: ChatRequest,
    db: Session = Depends(get_db),
    profile: ClientProfile = Depends(get_current_profile),
    generator = Depends(get_generator),
    settings: Settings = Depends(get_settings)
):
    """
    Send a message and receive the assistant's reply.

    The user's message is stored even when the reply cannot be generated.
    """
    session = ChatSession(db, generator, history_limit=settings.CHAT_HISTORY_LIMIT)
    try:
        reply = await session.post_message(profile.client_id, request.message)
    except GenerationFailed as e:
        logger.error(f"❌ Chat reply failed for client {profile.client_id}: {e.message}")
        raise GenerationFailed("Failed to process chat message") from e

    return ChatReplyResponse(message=reply.content, reply=reply)


@router.get("", response_model=ChatTranscriptResponse)
async def get_chat_history(
    db: Session = Depends(get_db),
    profile: ClientProfile = Depends(get_current_profile),
    generator = Depends(get_generator)
):
    """The caller's full transcript, oldest first."""
    messages = ChatSession(db, generator).transcript(profile.client_id)
    return ChatTranscriptResponse(messages=messages, total_messages=len(messages))
