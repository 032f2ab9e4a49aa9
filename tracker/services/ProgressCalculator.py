"""Completion metrics for a milestone, served through the result cache."""

import logging
from datetime import date
from typing import Callable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.core.config import settings
from tracker.core.exceptions import MilestoneNotFound
from tracker.models.milestones import Milestone
from tracker.schemas.actorSchema import Actor
from tracker.schemas.progressSchema import ProgressSnapshot, ReleaseProgress
from tracker.services.MilestoneManager import progress_cache_tag
from tracker.services.ResultCache import ResultCache
from tracker.stores.IssueStore import IssueRecord, IssueStore
from tracker.stores.MilestoneStore import MilestoneStore
from tracker.stores.ReleaseStore import ReleaseStore
from tracker.utils.check_scope_access import ensure_access
from tracker.utils.time import utcnow, utctoday

logger = logging.getLogger(__name__)


def percent(part: float, whole: float) -> float:
    """Share of ``whole`` as a percentage; 0 rather than NaN for an empty whole."""
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


def issue_progress(issues: List[IssueRecord]):
    """Return (completed, total, progress_percent, weighted_progress or None)."""
    total = len(issues)
    completed = sum(1 for issue in issues if issue.completed)

    # negative weights are not meaningful and would push the ratio outside [0, 100]
    weighted = [issue for issue in issues if issue.weight is not None and issue.weight >= 0]
    weighted_progress = None
    if weighted:
        total_weight = sum(issue.weight for issue in weighted)
        completed_weight = sum(issue.weight for issue in weighted if issue.completed)
        weighted_progress = percent(completed_weight, total_weight)

    return completed, total, percent(completed, total), weighted_progress


def day_counts(start_date: date, due_date: date, today: date):
    """Return (days_elapsed, total_days); elapsed is clamped into [0, total]."""
    total_days = max((due_date - start_date).days, 0)
    elapsed = (today - start_date).days
    return min(max(elapsed, 0), total_days), total_days


class ProgressCalculator:

    def __init__(
        self,
        db: AsyncSession,
        cache: ResultCache,
        timeout: Optional[float] = None,
        today: Callable[[], date] = utctoday,
    ):
        self.milestones = MilestoneStore(db, timeout=timeout)
        self.releases = ReleaseStore(db, timeout=timeout)
        self.issues = IssueStore(db, timeout=timeout)
        self.cache = cache
        self.today = today

    async def compute(self, milestone_id: str, actor: Actor) -> ProgressSnapshot:
        """Derive a fresh snapshot. Reads only; nothing is written back."""
        milestone = await self.milestones.get(milestone_id)
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found")
        ensure_access(actor, milestone.scope)
        return await self._compute(milestone)

    async def get_snapshot(self, milestone_id: str, actor: Actor) -> ProgressSnapshot:
        """Cached snapshot if one is live, otherwise compute and cache it."""
        milestone = await self.milestones.get(milestone_id)
        if milestone is None:
            raise MilestoneNotFound(f"Milestone {milestone_id} not found")
        ensure_access(actor, milestone.scope)

        key = f"progress:{milestone_id}"
        try:
            hit, snapshot = self.cache.get(key)
        except Exception as e:
            logger.warning(f"⚠️ Progress cache unavailable, computing uncached: {str(e)}")
            return await self._compute(milestone)
        if hit:
            return snapshot

        tags = [progress_cache_tag(milestone_id), milestone.scope.tag]
        generations = self.cache.generations(tags)
        snapshot = await self._compute(milestone)
        self.cache.put(
            key,
            snapshot,
            ttl=settings.PROGRESS_CACHE_TTL,
            tags=tags,
            generations=generations,
        )
        return snapshot

    async def _compute(self, milestone: Milestone) -> ProgressSnapshot:
        issues = await self.issues.list_for_milestone(milestone.milestone_id)
        releases = await self.releases.list_for_milestone(milestone.milestone_id)

        completed, total, progress_percent, weighted_progress = issue_progress(issues)
        days_elapsed, total_days = day_counts(milestone.start_date, milestone.due_date, self.today())

        return ProgressSnapshot(
            milestone_id=milestone.milestone_id,
            completed_issues=completed,
            total_issues=total,
            progress_percent=progress_percent,
            weighted_progress=weighted_progress,
            days_elapsed=days_elapsed,
            total_days=total_days,
            releases=[
                ReleaseProgress(release_id=r.release_id, tag=r.tag, status=r.status)
                for r in releases
            ],
            computed_at=utcnow(),
        )
