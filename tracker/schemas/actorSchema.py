from typing import FrozenSet
from pydantic import BaseModel, ConfigDict, Field


class Actor(BaseModel):
    """The authenticated caller and the scopes it may act on."""

    model_config = ConfigDict(frozen=True)

    actor_id: str
    project_ids: FrozenSet[int] = Field(default_factory=frozenset)
    group_ids: FrozenSet[int] = Field(default_factory=frozenset)
