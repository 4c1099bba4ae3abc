# portal/schemas/milestone.py
from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from uuid import UUID

# Request schemas
class MilestoneCreate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_id: UUID
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    ai_suggested: bool = False

class MilestoneUpdate(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None

class MilestoneSuggestRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_id: UUID
    apply: bool = False

# Model output
class MilestoneSuggestion(BaseModel):
    model_config = ConfigDict(alias_generator=AliasGenerator(validation_alias=to_camel), populate_by_name=True)

    title: str
    description: str = ""
    estimated_days: int = Field(7, ge=0)
    due_date: Optional[datetime] = None

# Response schemas
class MilestoneResponse(BaseModel):
    milestone_id: UUID
    client_id: UUID
    title: str
    description: Optional[str]
    due_date: Optional[datetime]
    completed: bool
    completed_at: Optional[datetime]
    ai_suggested: bool
    display_order: int
    created_at: datetime

    class Config:
        from_attributes = True

class MilestoneListResponse(BaseModel):
    success: bool = True
    milestones: list[MilestoneResponse]

class MilestoneSuggestResponse(BaseModel):
    success: bool = True
    suggestions: list[MilestoneSuggestion]
    milestones: list[MilestoneResponse] = []

class MilestoneDetailResponse(BaseModel):
    success: bool = True
    milestone: MilestoneResponse
