"""Release model: a tagged project release, optionally bound to one milestone."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, UniqueConstraint
from tracker.constants.constants import ReleaseStatus
from tracker.models.base import Base, TimestampMixin
from tracker.utils.time import utcnow


class Release(Base, TimestampMixin):
    """Model representing project releases."""

    __tablename__ = "releases"
    __table_args__ = (
        UniqueConstraint("project_id", "tag", name="uq_release_project_tag"),
    )

    release_id = Column(String, primary_key=True, index=True)
    tag = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    project_id = Column(Integer, nullable=False, index=True)
    milestone_id = Column(String, ForeignKey("milestones.milestone_id"), nullable=True, index=True)
    released_at = Column(DateTime, nullable=True)
    created_by = Column(String, nullable=False)

    @property
    def status(self) -> ReleaseStatus:
        if self.released_at is not None and self.released_at <= utcnow():
            return ReleaseStatus.released
        return ReleaseStatus.upcoming
