from dataclasses import dataclass
from datetime import date
from typing import List, Optional
from pydantic import BaseModel, Field

from tracker.constants.constants import MilestoneState
from tracker.schemas.milestoneSchema import MilestoneResponse


@dataclass(frozen=True)
class SearchFilters:
    """Milestone filters, combined with logical AND."""
    text: Optional[str] = None
    state: Optional[MilestoneState] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    scope: str = "personal"
    scope_id: Optional[int] = None


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    size: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


@dataclass(frozen=True)
class SortSpec:
    field: str = "due_date"
    direction: str = "asc"


class SearchResponse(BaseModel):
    """Response model for milestone search"""
    items: List[MilestoneResponse] = Field(..., description="Milestones on the requested page")
    total: int = Field(..., description="Total number of milestones matching the filters")
    page: int
    size: int
