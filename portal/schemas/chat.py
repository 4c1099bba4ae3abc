# portal/schemas/chat.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from uuid import UUID

# Request schemas
class ChatRequest(BaseModel):
    # Length and emptiness are checked by the chat session
    message: Optional[str] = None

class ChatFlagUpdate(BaseModel):
    flagged: bool

# Response schemas
class ChatMessageResponse(BaseModel):
    message_id: UUID
    role: str
    content: str
    flagged: bool
    sequence: int
    created_at: datetime

    class Config:
        from_attributes = True

class ChatReplyResponse(BaseModel):
    success: bool = True
    message: str
    reply: ChatMessageResponse

class ChatTranscriptResponse(BaseModel):
    success: bool = True
    messages: list[ChatMessageResponse]
    total_messages: int

class ChatMessageUpdateResponse(BaseModel):
    success: bool = True
    message: ChatMessageResponse
