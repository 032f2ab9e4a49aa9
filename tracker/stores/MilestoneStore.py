"""Persistence for milestones: CRUD plus the scope-qualified uniqueness lookup."""

import logging
from datetime import datetime
from typing import Optional, Union
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from tracker.constants.constants import MilestoneState
from tracker.core.exceptions import ConflictError, DuplicateTitle
from tracker.models.milestones import Milestone
from tracker.schemas.scopeSchema import GroupScope, ProjectScope
from tracker.stores.BaseStore import BaseStore, is_unique_violation
from tracker.utils.time import utcnow

logger = logging.getLogger(__name__)


class MilestoneStore(BaseStore):

    async def get(self, milestone_id: str) -> Optional[Milestone]:
        result = await self.execute(
            select(Milestone).where(Milestone.milestone_id == milestone_id)
        )
        return result.scalar_one_or_none()

    async def find_by_title(self, scope: Union[ProjectScope, GroupScope], title: str) -> Optional[Milestone]:
        """Fast-path uniqueness lookup; the unique constraints remain authoritative."""
        scope_column = Milestone.project_id if isinstance(scope, ProjectScope) else Milestone.group_id
        result = await self.execute(
            select(Milestone).where(scope_column == scope.id, Milestone.title == title)
        )
        return result.scalar_one_or_none()

    async def insert(self, milestone: Milestone) -> Milestone:
        self.db.add(milestone)
        try:
            await self.flush()
        except IntegrityError as e:
            await self.rollback()
            if is_unique_violation(e):
                raise DuplicateTitle(f"Milestone '{milestone.title}' already exists in this scope")
            raise ConflictError(f"Milestone violates a store constraint: {e.orig}")
        return milestone

    async def update_fields(self, milestone_id: str, **fields) -> int:
        """Update an active milestone in place; returns the affected row count."""
        fields["updated_at"] = utcnow()
        try:
            result = await self.execute(
                update(Milestone)
                .where(
                    Milestone.milestone_id == milestone_id,
                    Milestone.state == MilestoneState.active,
                )
                .values(**fields)
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as e:
            await self.rollback()
            if is_unique_violation(e):
                raise DuplicateTitle(f"Milestone '{fields.get('title')}' already exists in this scope")
            raise ConflictError(f"Milestone violates a store constraint: {e.orig}")
        return result.rowcount

    async def close_if_active(self, milestone_id: str, actor_id: str, closed_at: datetime) -> int:
        """Conditional state transition; zero rows means unknown or already closed."""
        result = await self.execute(
            update(Milestone)
            .where(
                Milestone.milestone_id == milestone_id,
                Milestone.state == MilestoneState.active,
            )
            .values(
                state=MilestoneState.closed,
                closed_at=closed_at,
                closed_by=actor_id,
                updated_at=closed_at,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def refresh(self, milestone: Milestone) -> Milestone:
        await self._run(self.db.refresh(milestone))
        return milestone
