"""Release creation and lookup. Association lives in AssociationManager."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.constants.constants import EVENT_RELEASE_CREATED
from tracker.core.exceptions import DuplicateTag, ReleaseNotFound
from tracker.models.releases import Release
from tracker.schemas.actorSchema import Actor
from tracker.schemas.scopeSchema import ProjectScope
from tracker.services.NotificationDispatcher import NotificationDispatcher
from tracker.stores.ReleaseStore import ReleaseStore
from tracker.utils.check_scope_access import ensure_access
from tracker.utils.time import to_naive_utc
from tracker.utils.validation_rules import validate_tag

logger = logging.getLogger(__name__)


class ReleaseManager:

    def __init__(self, db: AsyncSession, notifier: NotificationDispatcher, timeout: Optional[float] = None):
        self.store = ReleaseStore(db, timeout=timeout)
        self.notifier = notifier

    async def get(self, release_id: str, actor: Actor) -> Release:
        release = await self.store.get(release_id)
        if release is None:
            raise ReleaseNotFound(f"Release {release_id} not found")
        ensure_access(actor, ProjectScope(id=release.project_id))
        return release

    async def list_for_milestone(self, milestone_id: str) -> List[Release]:
        return await self.store.list_for_milestone(milestone_id)

    async def create(
        self,
        tag: str,
        project_id: int,
        actor: Actor,
        name: Optional[str] = None,
        description: Optional[str] = None,
        released_at: Optional[datetime] = None,
    ) -> Release:
        """Create an unassociated release; tags are unique per project."""
        ensure_access(actor, ProjectScope(id=project_id))
        tag = validate_tag(tag)

        if await self.store.find_by_tag(project_id, tag) is not None:
            raise DuplicateTag(f"Release '{tag}' already exists in project {project_id}")

        if released_at is not None:
            released_at = to_naive_utc(released_at)

        release = Release(
            release_id=str(uuid.uuid4()),
            tag=tag,
            name=name,
            description=description,
            project_id=project_id,
            milestone_id=None,
            released_at=released_at,
            created_by=actor.actor_id,
        )
        await self.store.insert(release)
        await self.store.commit()
        await self.store.refresh(release)

        logger.info(f"✅ Release {release.release_id} '{tag}' created in project {project_id} by {actor.actor_id}")
        self.notifier.dispatch(EVENT_RELEASE_CREATED, {
            "release_id": release.release_id,
            "tag": release.tag,
            "project_id": release.project_id,
        })
        return release

