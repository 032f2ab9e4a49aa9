"""Read-only view of the issues planned into a milestone."""

from dataclasses import dataclass
from typing import List, Optional
from sqlalchemy import select
from tracker.constants.constants import IssueState
from tracker.models.issues import Issue
from tracker.stores.BaseStore import BaseStore


@dataclass(frozen=True)
class IssueRecord:
    completed: bool
    weight: Optional[int] = None


class IssueStore(BaseStore):

    async def list_for_milestone(self, milestone_id: str) -> List[IssueRecord]:
        result = await self.execute(
            select(Issue.state, Issue.weight).where(Issue.milestone_id == milestone_id)
        )
        return [
            IssueRecord(completed=state == IssueState.closed, weight=weight)
            for state, weight in result.all()
        ]
