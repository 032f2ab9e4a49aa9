"""AssociationManager: one milestone per release, enforced by a conditional write."""
from __future__ import annotations

from datetime import date

import pytest

from tracker.constants.constants import EVENT_RELEASE_ASSOCIATED
from tracker.core.exceptions import (
    AlreadyAssociated,
    DuplicateTag,
    MilestoneNotFound,
    PermissionDenied,
    ReleaseNotFound,
    ScopeMismatch,
)
from tracker.models.releases import Release
from tracker.schemas.scopeSchema import GroupScope, ProjectScope
from tracker.services.AssociationManager import AssociationManager
from tracker.services.MilestoneManager import MilestoneManager
from tracker.services.ReleaseManager import ReleaseManager

JAN_1 = date(2024, 1, 1)
JAN_31 = date(2024, 1, 31)


@pytest.fixture
def milestones(db, cache, notifier) -> MilestoneManager:
    return MilestoneManager(db, cache, notifier)


@pytest.fixture
def releases(db, notifier) -> ReleaseManager:
    return ReleaseManager(db, notifier)


@pytest.fixture
def associations(db, cache, notifier) -> AssociationManager:
    return AssociationManager(db, cache, notifier)


async def test_associate_binds_release(milestones, releases, associations, actor, notifier) -> None:
    milestone = await milestones.create("v1", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    release = await releases.create("v1.0.0", 1, actor)

    bound = await associations.associate(release.release_id, milestone.milestone_id, actor)

    assert bound.milestone_id == milestone.milestone_id
    assert notifier.events[-1] == (EVENT_RELEASE_ASSOCIATED, {
        "release_id": release.release_id,
        "tag": "v1.0.0",
        "milestone_id": milestone.milestone_id,
    })


@pytest.mark.parametrize("target_name", ["A", "B", "C"])
async def test_second_association_rejected(milestones, releases, associations, actor, target_name) -> None:
    """A bound release is rejected for any target, including a milestone of another project."""
    first = await milestones.create("A", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    targets = {
        "A": first,
        "B": await milestones.create("B", None, JAN_1, JAN_31, ProjectScope(id=1), actor),
        "C": await milestones.create("C", None, JAN_1, JAN_31, ProjectScope(id=2), actor),
    }
    release = await releases.create("v1.0.0", 1, actor)
    await associations.associate(release.release_id, first.milestone_id, actor)

    target = targets[target_name]
    with pytest.raises(AlreadyAssociated):
        await associations.associate(release.release_id, target.milestone_id, actor)

    reloaded = await releases.get(release.release_id, actor)
    assert reloaded.milestone_id == first.milestone_id


async def test_conditional_write_is_authoritative(db, milestones, releases, associations, actor) -> None:
    """A request that read the release before another request bound it still loses."""
    first = await milestones.create("A", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    second = await milestones.create("B", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    release = await releases.create("v1.0.0", 1, actor)

    bound = await associations.releases.associate_if_unset(release.release_id, first.milestone_id)
    await db.commit()
    assert bound == 1

    assert await associations.releases.associate_if_unset(release.release_id, second.milestone_id) == 0


async def test_stale_read_loses_to_committed_association(db, milestones, releases, associations, actor) -> None:
    first = await milestones.create("A", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    second = await milestones.create("B", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    release = await releases.create("v1.0.0", 1, actor)
    release_id = release.release_id
    assert await associations.releases.associate_if_unset(release_id, first.milestone_id) == 1
    await db.commit()

    # the in-memory release still has no milestone, so only the conditional write catches it
    assert release.milestone_id is None
    with pytest.raises(AlreadyAssociated):
        await associations.associate(release_id, second.milestone_id, actor)

    await db.refresh(release)
    assert release.milestone_id == first.milestone_id


async def test_unknown_ids(milestones, releases, associations, actor) -> None:
    milestone = await milestones.create("v1", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    release = await releases.create("v1.0.0", 1, actor)

    with pytest.raises(ReleaseNotFound):
        await associations.associate("missing", milestone.milestone_id, actor)
    with pytest.raises(MilestoneNotFound):
        await associations.associate(release.release_id, "missing", actor)


async def test_project_milestone_rejects_release_of_other_project(milestones, releases, associations, actor) -> None:
    milestone = await milestones.create("v1", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    release = await releases.create("v1.0.0", 2, actor)
    with pytest.raises(ScopeMismatch):
        await associations.associate(release.release_id, milestone.milestone_id, actor)


async def test_group_milestone_accepts_project_release(milestones, releases, associations, actor) -> None:
    milestone = await milestones.create("Q1", None, JAN_1, JAN_31, GroupScope(id=10), actor)
    release = await releases.create("v1.0.0", 2, actor)
    bound = await associations.associate(release.release_id, milestone.milestone_id, actor)
    assert bound.milestone_id == milestone.milestone_id


async def test_actor_needs_access_to_both_sides(db, milestones, releases, associations, actor, outsider) -> None:
    milestone = await milestones.create("v1", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    release = await releases.create("v1.0.0", 1, actor)
    with pytest.raises(PermissionDenied):
        await associations.associate(release.release_id, milestone.milestone_id, outsider)
    row = await db.get(Release, release.release_id)
    assert row.milestone_id is None


async def test_association_invalidates_progress(milestones, releases, associations, actor, cache) -> None:
    milestone = await milestones.create("v1", None, JAN_1, JAN_31, ProjectScope(id=1), actor)
    release = await releases.create("v1.0.0", 1, actor)
    cache.put(f"progress:{milestone.milestone_id}", "stale", ttl=60, tags=[f"milestone:{milestone.milestone_id}"])

    await associations.associate(release.release_id, milestone.milestone_id, actor)

    assert cache.get(f"progress:{milestone.milestone_id}") == (False, None)


async def test_duplicate_tag_in_project_rejected(releases, actor) -> None:
    await releases.create("v1.0.0", 1, actor)
    with pytest.raises(DuplicateTag):
        await releases.create("v1.0.0", 1, actor)
    other = await releases.create("v1.0.0", 2, actor)
    assert other.project_id == 2
