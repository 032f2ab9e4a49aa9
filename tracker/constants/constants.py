"""Constants for milestone states, issue states, release statuses, search sorting and cache tags."""

from enum import Enum


class MilestoneState(str, Enum):
    """Enumeration of milestone states. ``closed`` is terminal."""

    active = "active"
    closed = "closed"


class IssueState(str, Enum):
    """Enumeration of issue states."""

    opened = "opened"
    closed = "closed"


class ReleaseStatus(str, Enum):
    """Derived release status shown in progress snapshots."""

    upcoming = "upcoming"
    released = "released"


class SearchScope(str, Enum):
    """Scope filter accepted by milestone search."""

    project = "project"
    group = "group"
    personal = "personal"


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


SORTABLE_FIELDS = ("title", "start_date", "due_date", "created_at")

# Notification events
EVENT_MILESTONE_CREATED = "milestone.created"
EVENT_MILESTONE_UPDATED = "milestone.updated"
EVENT_MILESTONE_CLOSED = "milestone.closed"
EVENT_RELEASE_CREATED = "release.created"
EVENT_RELEASE_ASSOCIATED = "release.associated"
