# portal/services/chat.py
"""
Support Chat Session

Every message is persisted. The user's message is committed before the
model is called, so a failed generation still leaves it in the
transcript, with no assistant reply after it.
"""

from typing import List
from uuid import UUID
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from portal.errors import InvalidArgument
from portal.models.chat import ChatMessage
from portal.services.context import build_chat_context
from portal.services.generation import GenerationInvoker
from portal.services.profiles import ProfileStore
from portal.services.prompts import render_prompt

logger = logging.getLogger(__name__)

CHAT_TEMPERATURE = 0.8
CHAT_MAX_TOKENS = 400
MAX_MESSAGE_LENGTH = 4000
FALLBACK_REPLY = "Sorry, I had a moment there! Could you ask that again?"


class ChatSession:
    """Stateful support chat for one client, backed by ``chat_messages``."""

    def __init__(self, db: Session, generator: GenerationInvoker, history_limit: int = 10):
        self.db = db
        self.generator = generator
        self.history_limit = history_limit
        self.profiles = ProfileStore(db)

    def recent_history(self, client_id: UUID) -> List[ChatMessage]:
        """The last ``history_limit`` messages, oldest first."""
        newest_first = self.db.query(ChatMessage)\
                              .filter(ChatMessage.client_id == client_id)\
                              .order_by(ChatMessage.sequence.desc(), ChatMessage.created_at.desc())\
                              .limit(self.history_limit)\
                              .all()
        return list(reversed(newest_first))

    def transcript(self, client_id: UUID) -> List[ChatMessage]:
        """Full transcript, oldest first."""
        return self.db.query(ChatMessage)\
                      .filter(ChatMessage.client_id == client_id)\
                      .order_by(ChatMessage.sequence.asc(), ChatMessage.created_at.asc())\
                      .all()

    def _next_sequence(self, client_id: UUID) -> int:
        last = self.db.query(func.max(ChatMessage.sequence))\
                      .filter(ChatMessage.client_id == client_id)\
                      .scalar()
        return (last or 0) + 1

    def _append(self, client_id: UUID, role: str, content: str) -> ChatMessage:
        message = ChatMessage(
            client_id=client_id,
            role=role,
            content=content,
            sequence=self._next_sequence(client_id)
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    async def post_message(self, client_id: UUID, text: str) -> ChatMessage:
        """
        Store the user's message, generate a reply, store and return it.

        Raises:
            InvalidArgument: Empty message or longer than 4000 characters
            NotFoundError: No profile for ``client_id``
            GenerationFailed: The model call failed (the user message stays stored)
        """
        text = (text or "").strip()
        if not text:
            raise InvalidArgument("Message is required")
        if len(text) > MAX_MESSAGE_LENGTH:
            raise InvalidArgument(f"Message must be at most {MAX_MESSAGE_LENGTH} characters")

        profile = self.profiles.require(client_id)

        # History is read before the new message is stored
        history = self.recent_history(client_id)
        self._append(client_id, "user", text)

        system_prompt = render_prompt(
            "chat_persona.md",
            company_name=profile.company_name,
            client_context=build_chat_context(profile),
        )
        messages = [{"role": m.role, "content": m.content} for m in history]
        messages.append({"role": "user", "content": text})

        logger.info(f"💬 Chat message from client {client_id} ({len(history)} messages of history)")

        reply = await self.generator.generate_text(
            system_prompt=system_prompt,
            messages=messages,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
            fallback=FALLBACK_REPLY,
        )

        return self._append(client_id, "assistant", reply)
