"""Binds a release to at most one milestone."""

import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.constants.constants import EVENT_RELEASE_ASSOCIATED
from tracker.core.exceptions import AlreadyAssociated, MilestoneNotFound, ReleaseNotFound, ScopeMismatch
from tracker.models.releases import Release
from tracker.schemas.actorSchema import Actor
from tracker.schemas.scopeSchema import ProjectScope
from tracker.services.MilestoneManager import invalidate_milestone
from tracker.services.NotificationDispatcher import NotificationDispatcher
from tracker.services.ResultCache import ResultCache
from tracker.stores.MilestoneStore import MilestoneStore
from tracker.stores.ReleaseStore import ReleaseStore
from tracker.utils.check_scope_access import ensure_access

logger = logging.getLogger(__name__)


class AssociationManager:
    """
    Links releases to milestones.

    The conditional update in ``ReleaseStore.associate_if_unset`` is what
    serializes concurrent requests for the same release: only the request
    that finds the reference still empty writes it. The read of the current
    reference below only produces the error early.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache: ResultCache,
        notifier: NotificationDispatcher,
        timeout: Optional[float] = None,
    ):
        self.releases = ReleaseStore(db, timeout=timeout)
        self.milestones = MilestoneStore(db, timeout=timeout)
        self.cache = cache
        self.notifier = notifier

    async def associate(self, release_id: str, milestone_id: str, actor: Actor) -> Release:
        """
        Raises:
            ReleaseNotFound / MilestoneNotFound: unknown ids.
            PermissionDenied: actor cannot access the release's project or the milestone's scope.
            ScopeMismatch: a project milestone and a release of another project.
            AlreadyAssociated: the release already references a milestone, same or different.
        """
        release = await self.releases.get(release_id)
        if release is None:
            raise ReleaseNotFound(f"Release {release_id} not found")
        milestone = await self.milestones.get(milestone_id)
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found")

        ensure_access(actor, ProjectScope(id=release.project_id))
        ensure_access(actor, milestone.scope)

        if release.milestone_id is not None:
            raise AlreadyAssociated(
                f"Release {release_id} is already associated with milestone {release.milestone_id}"
            )

        # Group membership of projects is owned elsewhere, so only project milestones are cross-checked
        if isinstance(milestone.scope, ProjectScope) and milestone.scope.id != release.project_id:
            raise ScopeMismatch(
                f"Release {release_id} belongs to project {release.project_id}, "
                f"milestone {milestone_id} to project {milestone.scope.id}"
            )

        bound = await self.releases.associate_if_unset(release_id, milestone_id)
        if bound == 0:
            raise AlreadyAssociated(f"Release {release_id} was associated concurrently")
        await self.releases.commit()
        await self.releases.refresh(release)

        logger.info(f"🔗 Release {release_id} associated with milestone {milestone_id} by {actor.actor_id}")
        invalidate_milestone(self.cache, milestone)
        self.notifier.dispatch(EVENT_RELEASE_ASSOCIATED, {
            "release_id": release_id,
            "tag": release.tag,
            "milestone_id": milestone_id,
        })
        return release
