"""Milestone model: a dated goal owned by a project or a group."""

from sqlalchemy import CheckConstraint, Column, String, Text, Date, DateTime, Enum as SQLEnum, Integer, UniqueConstraint
from tracker.constants.constants import MilestoneState
from tracker.models.base import Base, TimestampMixin
from tracker.schemas.scopeSchema import scope_from_columns


class Milestone(Base, TimestampMixin):
    """Model representing project or group milestones."""

    __tablename__ = "milestones"
    __table_args__ = (
        UniqueConstraint("project_id", "title", name="uq_milestone_project_title"),
        UniqueConstraint("group_id", "title", name="uq_milestone_group_title"),
        CheckConstraint(
            "(project_id IS NULL) <> (group_id IS NULL)",
            name="ck_milestone_single_scope",
        ),
        CheckConstraint("start_date <= due_date", name="ck_milestone_date_order"),
    )

    milestone_id = Column(String, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    state = Column(SQLEnum(MilestoneState), default=MilestoneState.active, nullable=False, index=True)
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(String, nullable=True)
    project_id = Column(Integer, nullable=True, index=True)
    group_id = Column(Integer, nullable=True, index=True)
    created_by = Column(String, nullable=False)

    @property
    def scope(self):
        return scope_from_columns(self.project_id, self.group_id)
