"""Release router: create, read and associate with a milestone."""

from fastapi import APIRouter, Depends, status

from tracker.api.v1.dependencies import get_association_manager, get_release_manager
from tracker.core.security import get_current_actor
from tracker.schemas.actorSchema import Actor
from tracker.schemas.releaseSchema import (
    AssociateMilestoneRequest,
    AssociationResponse,
    ReleaseCreateRequest,
    ReleaseResponse,
)
from tracker.services.AssociationManager import AssociationManager
from tracker.services.ReleaseManager import ReleaseManager

router = APIRouter(prefix="/releases", tags=["releases"])


@router.post("", response_model=ReleaseResponse, status_code=status.HTTP_201_CREATED)
async def create_release(
    release_data: ReleaseCreateRequest,
    current_actor: Actor = Depends(get_current_actor),
    manager: ReleaseManager = Depends(get_release_manager),
):
    """Create a release. Tags are unique per project; association is a separate call."""
    release = await manager.create(
        tag=release_data.tag,
        project_id=release_data.project_id,
        actor=current_actor,
        name=release_data.name,
        description=release_data.description,
        released_at=release_data.released_at,
    )
    return ReleaseResponse.model_validate(release)


@router.get("/{release_id}", response_model=ReleaseResponse)
async def get_release(
    release_id: str,
    current_actor: Actor = Depends(get_current_actor),
    manager: ReleaseManager = Depends(get_release_manager),
):
    release = await manager.get(release_id, current_actor)
    return ReleaseResponse.model_validate(release)


@router.post("/{release_id}/associate-milestone", response_model=AssociationResponse)
async def associate_milestone(
    release_id: str,
    association: AssociateMilestoneRequest,
    current_actor: Actor = Depends(get_current_actor),
    manager: AssociationManager = Depends(get_association_manager),
):
    """
    Bind the release to a milestone.
    A release references at most one milestone; a second association returns 409 AlreadyAssociated.
    """
    release = await manager.associate(release_id, association.milestone_id, current_actor)
    return AssociationResponse(release_id=release.release_id, milestone_id=release.milestone_id)
