"""Actions and Goals — static descriptions of capabilities and objectives."""

from typing import Dict, Set

from pydantic import BaseModel, ConfigDict, Field

from goap_kernel.models.condition import ConditionDetermination, WorldState


class Action(BaseModel):
    """A named capability with preconditions and effects over conditions."""

    model_config = ConfigDict(frozen=True)

    name: str
    preconditions: Dict[str, ConditionDetermination] = {}
    effects: Dict[str, ConditionDetermination] = {}
    cost: float = Field(ge=0, default=1.0)   # Step cost used by search
    value: float = 0.0                       # Contribution to plan net value

    def is_applicable(self, state: WorldState) -> bool:
        """Check if the action can be taken in the given state."""
        return state.satisfies(self.preconditions)

    def conditions(self) -> Set[str]:
        """Every condition this action references, as precondition or effect."""
        return set(self.preconditions) | set(self.effects)

    def __hash__(self):
        # Mappings are unhashable; equal actions always share a name.
        return hash(("action", self.name))

    def __str__(self):
        return self.name


class Goal(BaseModel):
    """A named target: satisfied when all its preconditions hold."""

    model_config = ConfigDict(frozen=True)

    name: str
    preconditions: Dict[str, ConditionDetermination] = {}
    value: float = 0.0

    def is_satisfied_by(self, state: WorldState) -> bool:
        return state.satisfies(self.preconditions)

    def __hash__(self):
        return hash(("goal", self.name))

    def __str__(self):
        return self.name
