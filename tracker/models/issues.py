"""Issues attached to milestones, read for progress reporting."""

from sqlalchemy import CheckConstraint, Column, String, Text, Enum as SQLEnum, ForeignKey, Integer
from tracker.constants.constants import IssueState
from tracker.models.base import Base, TimestampMixin


class Issue(Base, TimestampMixin):
    """Model representing issues planned into a milestone."""

    __tablename__ = "issues"
    __table_args__ = (
        CheckConstraint("weight IS NULL OR weight >= 0", name="ck_issue_weight_non_negative"),
    )

    issue_id = Column(String, primary_key=True, index=True)
    milestone_id = Column(String, ForeignKey("milestones.milestone_id"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    state = Column(SQLEnum(IssueState), default=IssueState.opened, nullable=False)
    weight = Column(Integer, nullable=True)
