"""Milestone router: create, read, edit, close, progress and search."""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, status

from tracker.api.v1.dependencies import (
    get_milestone_manager,
    get_progress_calculator,
    get_release_manager,
    get_search_index,
)
from tracker.constants.constants import MilestoneState
from tracker.core.config import settings
from tracker.core.exceptions import InvalidSearchInput
from tracker.core.security import get_current_actor
from tracker.schemas.actorSchema import Actor
from tracker.schemas.milestoneSchema import MilestoneCreateRequest, MilestoneResponse, MilestoneUpdateRequest
from tracker.schemas.progressSchema import ProgressSnapshot
from tracker.schemas.releaseSchema import ReleaseResponse
from tracker.schemas.searchSchemas import Pagination, SearchFilters, SearchResponse, SortSpec
from tracker.services.MilestoneManager import MilestoneManager
from tracker.services.ProgressCalculator import ProgressCalculator
from tracker.services.ReleaseManager import ReleaseManager
from tracker.services.SearchIndex import SearchIndex

router = APIRouter(prefix="/milestones", tags=["milestones"])


@router.post("", response_model=MilestoneResponse, status_code=status.HTTP_201_CREATED)
async def create_milestone(
    milestone_data: MilestoneCreateRequest,
    current_actor: Actor = Depends(get_current_actor),
    manager: MilestoneManager = Depends(get_milestone_manager),
):
    """
    Create a milestone in a project or group.
    The title must be unique within the scope and start_date must not be after due_date.
    """
    milestone = await manager.create(
        title=milestone_data.title,
        description=milestone_data.description,
        start_date=milestone_data.start_date,
        due_date=milestone_data.due_date,
        scope=milestone_data.scope,
        actor=current_actor,
    )
    return MilestoneResponse.model_validate(milestone)


@router.get("/search", response_model=SearchResponse)
async def search_milestones(
    text: Optional[str] = None,
    state: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    scope: str = "personal",
    scope_id: Optional[int] = None,
    page: int = 1,
    size: int = settings.DEFAULT_PAGE_SIZE,
    sort: str = "due_date",
    order: str = "asc",
    current_actor: Actor = Depends(get_current_actor),
    search_index: SearchIndex = Depends(get_search_index),
):
    """
    Search milestones the caller can see.

    Filters are combined with AND:
    - text: case-insensitive match on title or description
    - state: active or closed
    - date_from / date_to: milestones whose [start_date, due_date] overlaps the window
    - scope: project or group (with scope_id), or personal for every accessible scope
    """
    try:
        state_filter = MilestoneState(state) if state else None
    except ValueError:
        raise InvalidSearchInput(f"Unsupported state '{state}', expected active or closed")

    return await search_index.search(
        SearchFilters(
            text=text,
            state=state_filter,
            date_from=date_from,
            date_to=date_to,
            scope=scope,
            scope_id=scope_id,
        ),
        Pagination(page=page, size=size),
        SortSpec(field=sort, direction=order),
        current_actor,
    )


@router.get("/{milestone_id}", response_model=MilestoneResponse)
async def get_milestone(
    milestone_id: str,
    current_actor: Actor = Depends(get_current_actor),
    manager: MilestoneManager = Depends(get_milestone_manager),
):
    milestone = await manager.get(milestone_id, current_actor)
    return MilestoneResponse.model_validate(milestone)


@router.patch("/{milestone_id}", response_model=MilestoneResponse)
async def update_milestone(
    milestone_id: str,
    update_data: MilestoneUpdateRequest,
    current_actor: Actor = Depends(get_current_actor),
    manager: MilestoneManager = Depends(get_milestone_manager),
):
    """Edit an active milestone. Closed milestones are read-only."""
    milestone = await manager.update(
        milestone_id,
        current_actor,
        title=update_data.title,
        description=update_data.description,
        start_date=update_data.start_date,
        due_date=update_data.due_date,
    )
    return MilestoneResponse.model_validate(milestone)


@router.post("/{milestone_id}/close", response_model=MilestoneResponse)
async def close_milestone(
    milestone_id: str,
    current_actor: Actor = Depends(get_current_actor),
    manager: MilestoneManager = Depends(get_milestone_manager),
):
    """Close a milestone. Closing twice returns 409 AlreadyClosed."""
    milestone = await manager.close(milestone_id, current_actor)
    return MilestoneResponse.model_validate(milestone)


@router.get("/{milestone_id}/progress", response_model=ProgressSnapshot)
async def get_milestone_progress(
    milestone_id: str,
    current_actor: Actor = Depends(get_current_actor),
    calculator: ProgressCalculator = Depends(get_progress_calculator),
):
    """Issue completion, elapsed days and associated releases. May be served from cache."""
    return await calculator.get_snapshot(milestone_id, current_actor)


@router.get("/{milestone_id}/releases", response_model=List[ReleaseResponse])
async def get_milestone_releases(
    milestone_id: str,
    current_actor: Actor = Depends(get_current_actor),
    manager: MilestoneManager = Depends(get_milestone_manager),
    releases: ReleaseManager = Depends(get_release_manager),
):
    milestone = await manager.get(milestone_id, current_actor)
    return [
        ReleaseResponse.model_validate(r)
        for r in await releases.list_for_milestone(milestone.milestone_id)
    ]
