"""Scope variant: a milestone is owned by exactly one project or one group."""

from typing import Annotated, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class ProjectScope(BaseModel):
    """Scope owned by a project."""

    model_config = ConfigDict(frozen=True)

    type: Literal["project"] = "project"
    id: int = Field(..., gt=0)

    @property
    def tag(self) -> str:
        return f"project:{self.id}"


class GroupScope(BaseModel):
    """Scope owned by a group."""

    model_config = ConfigDict(frozen=True)

    type: Literal["group"] = "group"
    id: int = Field(..., gt=0)

    @property
    def tag(self) -> str:
        return f"group:{self.id}"


Scope = Annotated[Union[ProjectScope, GroupScope], Field(discriminator="type")]


def scope_from_columns(project_id: Optional[int], group_id: Optional[int]) -> Union[ProjectScope, GroupScope]:
    """Rebuild the scope variant from the two storage columns."""
    if (project_id is None) == (group_id is None):
        raise ValueError("exactly one of project_id or group_id must be set")
    if project_id is not None:
        return ProjectScope(id=project_id)
    return GroupScope(id=group_id)


def scope_to_columns(scope: Union[ProjectScope, GroupScope]) -> dict:
    """Storage columns for a scope variant."""
    if isinstance(scope, ProjectScope):
        return {"project_id": scope.id, "group_id": None}
    return {"project_id": None, "group_id": scope.id}
