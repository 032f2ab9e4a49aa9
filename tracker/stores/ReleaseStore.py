"""Persistence for releases and their milestone association."""

import logging
from typing import List, Optional
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from tracker.core.exceptions import ConflictError, DuplicateTag
from tracker.models.releases import Release
from tracker.stores.BaseStore import BaseStore, is_unique_violation
from tracker.utils.time import utcnow

logger = logging.getLogger(__name__)


class ReleaseStore(BaseStore):

    async def get(self, release_id: str) -> Optional[Release]:
        result = await self.execute(
            select(Release).where(Release.release_id == release_id)
        )
        return result.scalar_one_or_none()

    async def find_by_tag(self, project_id: int, tag: str) -> Optional[Release]:
        result = await self.execute(
            select(Release).where(Release.project_id == project_id, Release.tag == tag)
        )
        return result.scalar_one_or_none()

    async def insert(self, release: Release) -> Release:
        self.db.add(release)
        try:
            await self.flush()
        except IntegrityError as e:
            await self.rollback()
            if is_unique_violation(e):
                raise DuplicateTag(f"Release '{release.tag}' already exists in project {release.project_id}")
            raise ConflictError(f"Release violates a store constraint: {e.orig}")
        return release

    async def list_for_milestone(self, milestone_id: str) -> List[Release]:
        result = await self.execute(
            select(Release)
            .where(Release.milestone_id == milestone_id)
            .order_by(Release.created_at, Release.release_id)
        )
        return list(result.scalars().all())

    async def associate_if_unset(self, release_id: str, milestone_id: str) -> int:
        """Conditional write: only binds a release whose milestone reference is still empty."""
        result = await self.execute(
            update(Release)
            .where(
                Release.release_id == release_id,
                Release.milestone_id.is_(None),
            )
            .values(milestone_id=milestone_id, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def refresh(self, release: Release) -> Release:
        await self._run(self.db.refresh(release))
        return release
