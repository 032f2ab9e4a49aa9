"""Milestone creation, editing and the active -> closed transition."""

import logging
import uuid
from datetime import date
from typing import Optional, Union
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.constants.constants import (
    EVENT_MILESTONE_CLOSED,
    EVENT_MILESTONE_CREATED,
    EVENT_MILESTONE_UPDATED,
    MilestoneState,
)
from tracker.core.exceptions import AlreadyClosed, DuplicateTitle, MilestoneNotFound, NotFoundError
from tracker.models.milestones import Milestone
from tracker.schemas.actorSchema import Actor
from tracker.schemas.scopeSchema import GroupScope, ProjectScope, scope_to_columns
from tracker.services.NotificationDispatcher import NotificationDispatcher
from tracker.services.ResultCache import ResultCache
from tracker.stores.MilestoneStore import MilestoneStore
from tracker.utils.check_scope_access import ensure_access
from tracker.utils.time import utcnow
from tracker.utils.validation_rules import validate_date_range, validate_title

logger = logging.getLogger(__name__)


def progress_cache_tag(milestone_id: str) -> str:
    return f"milestone:{milestone_id}"


def invalidate_milestone(cache: ResultCache, milestone: Milestone) -> None:
    """Drop the milestone's progress snapshot and every search entry covering its scope."""
    cache.invalidate_tags([progress_cache_tag(milestone.milestone_id), milestone.scope.tag])


class MilestoneManager:
    """
    Orchestrates milestone mutations.

    Uniqueness of titles within a scope and the close transition are both
    guarded by the store (unique constraints, conditional update); the
    lookups done here only produce faster, friendlier errors.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache: ResultCache,
        notifier: NotificationDispatcher,
        timeout: Optional[float] = None,
    ):
        self.store = MilestoneStore(db, timeout=timeout)
        self.cache = cache
        self.notifier = notifier

    async def get(self, milestone_id: str, actor: Actor) -> Milestone:
        milestone = await self.store.get(milestone_id)
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found")
        ensure_access(actor, milestone.scope)
        return milestone

    async def create(
        self,
        title: str,
        description: Optional[str],
        start_date: date,
        due_date: date,
        scope: Union[ProjectScope, GroupScope],
        actor: Actor,
    ) -> Milestone:
        """
        Create a milestone in ``active`` state.

        Raises:
            PermissionDenied: actor is not a member of the scope.
            InvalidTitle / InvalidDateRange: bad input.
            DuplicateTitle: the title is taken within the scope.
        """
        ensure_access(actor, scope)
        title = validate_title(title)
        validate_date_range(start_date, due_date)

        if await self.store.find_by_title(scope, title) is not None:
            raise DuplicateTitle(f"Milestone '{title}' already exists in {scope.type} {scope.id}")

        milestone = Milestone(
            milestone_id=str(uuid.uuid4()),
            title=title,
            description=description,
            start_date=start_date,
            due_date=due_date,
            state=MilestoneState.active,
            closed_at=None,
            created_by=actor.actor_id,
            **scope_to_columns(scope),
        )
        await self.store.insert(milestone)
        await self.store.commit()
        await self.store.refresh(milestone)

        logger.info(f"✅ Milestone {milestone.milestone_id} '{title}' created in {scope.tag} by {actor.actor_id}")
        invalidate_milestone(self.cache, milestone)
        self.notifier.dispatch(EVENT_MILESTONE_CREATED, _event_payload(milestone))
        return milestone

    async def update(
        self,
        milestone_id: str,
        actor: Actor,
        title: Optional[str] = None,
        description: Optional[str] = None,
        start_date: Optional[date] = None,
        due_date: Optional[date] = None,
    ) -> Milestone:
        """Edit an active milestone. Closed milestones are read-only."""
        milestone = await self.get(milestone_id, actor)
        if milestone.state == MilestoneState.closed:
            raise AlreadyClosed(f"Milestone {milestone_id} is closed and cannot be edited")

        changes = {}
        if title is not None:
            title = validate_title(title)
            if title != milestone.title:
                if await self.store.find_by_title(milestone.scope, title) is not None:
                    raise DuplicateTitle(f"Milestone '{title}' already exists in this scope")
                changes["title"] = title
        if description is not None:
            changes["description"] = description
        if start_date is not None:
            changes["start_date"] = start_date
        if due_date is not None:
            changes["due_date"] = due_date

        validate_date_range(
            changes.get("start_date", milestone.start_date),
            changes.get("due_date", milestone.due_date),
        )
        if not changes:
            return milestone

        updated = await self.store.update_fields(milestone_id, **changes)
        if updated == 0:
            raise AlreadyClosed(f"Milestone {milestone_id} was closed concurrently")
        await self.store.commit()
        await self.store.refresh(milestone)

        logger.info(f"✏️ Milestone {milestone_id} updated by {actor.actor_id}: {sorted(changes)}")
        invalidate_milestone(self.cache, milestone)
        self.notifier.dispatch(EVENT_MILESTONE_UPDATED, _event_payload(milestone))
        return milestone

    async def close(self, milestone_id: str, actor: Actor) -> Milestone:
        """
        Close an active milestone. Closing is a one-time action: a second call
        fails with ``AlreadyClosed`` and the original ``closed_at`` is kept.
        """
        milestone = await self.store.get(milestone_id)
        if milestone is None:
            raise NotFoundError(f"Milestone {milestone_id} not found")
        ensure_access(actor, milestone.scope)

        closed = await self.store.close_if_active(milestone_id, actor.actor_id, utcnow())
        if closed == 0:
            raise AlreadyClosed(f"Milestone {milestone_id} is already closed")
        await self.store.commit()
        await self.store.refresh(milestone)

        logger.info(f"🔒 Milestone {milestone_id} closed by {actor.actor_id}")
        invalidate_milestone(self.cache, milestone)
        self.notifier.dispatch(EVENT_MILESTONE_CLOSED, _event_payload(milestone))
        return milestone


def _event_payload(milestone: Milestone) -> dict:
    return {
        "milestone_id": milestone.milestone_id,
        "title": milestone.title,
        "state": milestone.state.value,
        "scope": milestone.scope.model_dump(),
    }
