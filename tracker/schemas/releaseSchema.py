from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ReleaseCreateRequest(BaseModel):
    """Request schema for creating a release in a project."""
    tag: str = Field(..., min_length=1, max_length=255)
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=10000)
    project_id: int = Field(..., gt=0)
    released_at: Optional[datetime] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {"tag": "v1.0.0", "name": "1.0.0", "project_id": 1}
    })


class AssociateMilestoneRequest(BaseModel):
    milestone_id: str = Field(..., min_length=1)


class AssociationResponse(BaseModel):
    release_id: str
    milestone_id: str
    associated: bool = True


class ReleaseResponse(BaseModel):
    release_id: str
    tag: str
    name: Optional[str]
    description: Optional[str]
    project_id: int
    milestone_id: Optional[str]
    released_at: Optional[datetime]
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
