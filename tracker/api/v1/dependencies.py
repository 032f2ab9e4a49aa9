"""FastAPI dependencies wiring request-scoped managers to the session, cache and notifier."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.core.database import aget_db
from tracker.services.AssociationManager import AssociationManager
from tracker.services.MilestoneManager import MilestoneManager
from tracker.services.NotificationDispatcher import NotificationDispatcher, get_notification_dispatcher
from tracker.services.ProgressCalculator import ProgressCalculator
from tracker.services.ReleaseManager import ReleaseManager
from tracker.services.ResultCache import ResultCache, get_result_cache
from tracker.services.SearchIndex import SearchIndex


def get_milestone_manager(
    db: AsyncSession = Depends(aget_db),
    cache: ResultCache = Depends(get_result_cache),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> MilestoneManager:
    return MilestoneManager(db, cache, notifier)


def get_release_manager(
    db: AsyncSession = Depends(aget_db),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> ReleaseManager:
    return ReleaseManager(db, notifier)


def get_association_manager(
    db: AsyncSession = Depends(aget_db),
    cache: ResultCache = Depends(get_result_cache),
    notifier: NotificationDispatcher = Depends(get_notification_dispatcher),
) -> AssociationManager:
    return AssociationManager(db, cache, notifier)


def get_progress_calculator(
    db: AsyncSession = Depends(aget_db),
    cache: ResultCache = Depends(get_result_cache),
) -> ProgressCalculator:
    return ProgressCalculator(db, cache)


def get_search_index(
    db: AsyncSession = Depends(aget_db),
    cache: ResultCache = Depends(get_result_cache),
) -> SearchIndex:
    return SearchIndex(db, cache)
