from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from tracker.constants.constants import ReleaseStatus


class ReleaseProgress(BaseModel):
    release_id: str
    tag: str
    status: ReleaseStatus


class ProgressSnapshot(BaseModel):
    """Derived completion metrics for a milestone. Never persisted."""
    milestone_id: str
    completed_issues: int = Field(..., ge=0)
    total_issues: int = Field(..., ge=0)
    progress_percent: float = Field(..., ge=0, le=100)
    weighted_progress: Optional[float] = Field(None, ge=0, le=100)
    days_elapsed: int = Field(..., ge=0)
    total_days: int = Field(..., ge=0)
    releases: List[ReleaseProgress] = Field(default_factory=list)
    computed_at: datetime
