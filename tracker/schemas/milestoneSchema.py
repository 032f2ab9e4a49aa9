from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from tracker.constants.constants import MilestoneState
from tracker.schemas.scopeSchema import Scope


class MilestoneCreateRequest(BaseModel):
    """Request schema for creating a milestone in a project or group."""
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    start_date: date
    due_date: date
    scope: Scope

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "title": "v1",
            "description": "First public release",
            "start_date": "2024-01-01",
            "due_date": "2024-01-31",
            "scope": {"type": "project", "id": 1},
        }
    })


class MilestoneUpdateRequest(BaseModel):
    """Request schema for editing an active milestone."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    start_date: Optional[date] = None
    due_date: Optional[date] = None


class MilestoneResponse(BaseModel):
    milestone_id: str
    title: str
    description: Optional[str]
    start_date: date
    due_date: date
    state: MilestoneState
    closed_at: Optional[datetime]
    closed_by: Optional[str]
    scope: Scope
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
