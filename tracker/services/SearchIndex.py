"""Filtered, paginated milestone search with deterministic ordering."""

import logging
from typing import List, Optional, Union
from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.constants.constants import SearchScope, SortDirection
from tracker.core.config import settings
from tracker.core.exceptions import InvalidSearchInput
from tracker.models.milestones import Milestone
from tracker.schemas.actorSchema import Actor
from tracker.schemas.milestoneSchema import MilestoneResponse
from tracker.schemas.scopeSchema import GroupScope, ProjectScope
from tracker.schemas.searchSchemas import Pagination, SearchFilters, SearchResponse, SortSpec
from tracker.services.ResultCache import ResultCache, make_cache_key
from tracker.stores.BaseStore import BaseStore
from tracker.utils.check_scope_access import accessible_scopes, ensure_access
from tracker.utils.validation_rules import validate_pagination, validate_search_window, validate_sort

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SearchIndex:
    """
    Answers milestone queries.

    Results are ordered by the requested field and then by ``milestone_id``
    so identical queries always page through the same sequence. Cached
    pages are tagged with every scope the query covers; any write in one of
    those scopes drops them.
    """

    def __init__(self, db: AsyncSession, cache: ResultCache, timeout: Optional[float] = None):
        self.store = BaseStore(db, timeout=timeout)
        self.cache = cache

    def resolve_scopes(self, filters: SearchFilters, actor: Actor) -> List[Union[ProjectScope, GroupScope]]:
        try:
            scope_kind = SearchScope(filters.scope)
        except ValueError:
            raise InvalidSearchInput(f"Unsupported scope '{filters.scope}', expected project, group or personal")

        if scope_kind == SearchScope.personal:
            if filters.scope_id is not None:
                raise InvalidSearchInput("scope_id is not accepted with the personal scope")
            return accessible_scopes(actor)

        if filters.scope_id is None:
            raise InvalidSearchInput(f"scope_id is required with the {scope_kind.value} scope")
        if filters.scope_id <= 0:
            raise InvalidSearchInput("scope_id must be positive")
        scope = ProjectScope(id=filters.scope_id) if scope_kind == SearchScope.project else GroupScope(id=filters.scope_id)
        ensure_access(actor, scope)
        return [scope]

    def validate(self, filters: SearchFilters, pagination: Pagination, sort: SortSpec) -> None:
        validate_search_window(filters.date_from, filters.date_to)
        validate_pagination(pagination.page, pagination.size, settings.MAX_PAGE_SIZE)
        validate_sort(sort.field, sort.direction)

    async def search(
        self,
        filters: SearchFilters,
        pagination: Pagination,
        sort: SortSpec,
        actor: Actor,
    ) -> SearchResponse:
        """
        Raises:
            InvalidSearchInput: inverted date window, bad pagination, unsupported sort or scope.
            PermissionDenied: explicit project/group scope outside the actor's memberships.
        """
        self.validate(filters, pagination, sort)
        scopes = self.resolve_scopes(filters, actor)

        key = make_cache_key("search", {
            "text": filters.text,
            "state": filters.state,
            "date_from": filters.date_from,
            "date_to": filters.date_to,
            "scopes": [scope.tag for scope in scopes],
            "page": pagination.page,
            "size": pagination.size,
            "sort": [sort.field, sort.direction],
        })
        hit, cached = self.cache.get(key)
        if hit:
            return cached

        tags = [scope.tag for scope in scopes]
        generations = self.cache.generations(tags)
        response = await self._query(filters, pagination, sort, scopes)
        self.cache.put(
            key,
            response,
            ttl=settings.SEARCH_CACHE_TTL,
            tags=tags,
            generations=generations,
        )
        return response

    async def _query(self, filters, pagination, sort, scopes) -> SearchResponse:
        conditions = self._conditions(filters, scopes)
        if conditions is None:
            return SearchResponse(items=[], total=0, page=pagination.page, size=pagination.size)

        total = (await self.store.execute(
            select(func.count()).select_from(Milestone).where(conditions)
        )).scalar_one()

        sort_column = getattr(Milestone, sort.field)
        primary = sort_column.desc() if sort.direction == SortDirection.desc.value else sort_column.asc()
        result = await self.store.execute(
            select(Milestone)
            .where(conditions)
            .order_by(primary, Milestone.milestone_id.asc())
            .offset(pagination.offset)
            .limit(pagination.size)
        )
        items = [MilestoneResponse.model_validate(m) for m in result.scalars().all()]

        logger.info(f"🔍 Milestone search matched {total}, returning page {pagination.page} ({len(items)} items)")
        return SearchResponse(items=items, total=total, page=pagination.page, size=pagination.size)

    def _conditions(self, filters: SearchFilters, scopes):
        project_ids = [s.id for s in scopes if isinstance(s, ProjectScope)]
        group_ids = [s.id for s in scopes if isinstance(s, GroupScope)]
        if not project_ids and not group_ids:
            return None

        scope_clauses = []
        if project_ids:
            scope_clauses.append(Milestone.project_id.in_(project_ids))
        if group_ids:
            scope_clauses.append(Milestone.group_id.in_(group_ids))
        clauses = [or_(*scope_clauses)]

        text = (filters.text or "").strip()
        if text:
            pattern = f"%{_escape_like(text.lower())}%"
            clauses.append(or_(
                func.lower(Milestone.title).like(pattern, escape="\\"),
                func.lower(func.coalesce(Milestone.description, "")).like(pattern, escape="\\"),
            ))
        if filters.state is not None:
            clauses.append(Milestone.state == filters.state)
        # overlap between [start_date, due_date] and [date_from, date_to]
        if filters.date_to is not None:
            clauses.append(Milestone.start_date <= filters.date_to)
        if filters.date_from is not None:
            clauses.append(Milestone.due_date >= filters.date_from)

        return and_(*clauses)
