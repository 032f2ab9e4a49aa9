from typing import List, Union
from tracker.core.exceptions import PermissionDenied
from tracker.schemas.actorSchema import Actor
from tracker.schemas.scopeSchema import GroupScope, ProjectScope


def can_access(actor: Actor, scope: Union[ProjectScope, GroupScope]) -> bool:
    """Check if the actor is a member of the scope's project or group."""
    if isinstance(scope, ProjectScope):
        return scope.id in actor.project_ids
    return scope.id in actor.group_ids


def ensure_access(actor: Actor, scope: Union[ProjectScope, GroupScope]) -> None:
    if not can_access(actor, scope):
        raise PermissionDenied(f"Actor {actor.actor_id} has no access to {scope.type} {scope.id}")


def accessible_scopes(actor: Actor) -> List[Union[ProjectScope, GroupScope]]:
    """All scopes the actor can see, in a stable order."""
    scopes: List[Union[ProjectScope, GroupScope]] = [ProjectScope(id=pid) for pid in sorted(actor.project_ids)]
    scopes.extend(GroupScope(id=gid) for gid in sorted(actor.group_ids))
    return scopes
