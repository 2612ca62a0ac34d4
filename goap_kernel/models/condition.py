"""Conditions and World State — what the planner knows about the world."""

from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Set, Tuple

from pydantic import BaseModel, ConfigDict


class ConditionDetermination(str, Enum):
    """Tri-state knowledge of a condition. UNKNOWN means not yet resolved."""

    TRUE = "TRUE"
    FALSE = "FALSE"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_bool(cls, value: bool) -> "ConditionDetermination":
        return cls.TRUE if value else cls.FALSE


class WorldState(BaseModel):
    """
    Snapshot of condition determinations.

    Never changed in place: every transformation returns a new WorldState.
    Conditions absent from the mapping are treated as UNKNOWN.
    """

    model_config = ConfigDict(frozen=True)

    state: Dict[str, ConditionDetermination] = {}

    def determination(self, condition: str) -> ConditionDetermination:
        return self.state.get(condition, ConditionDetermination.UNKNOWN)

    def unknown_conditions(self) -> Set[str]:
        """Conditions currently mapped to UNKNOWN."""
        return {
            condition
            for condition, determination in self.state.items()
            if determination == ConditionDetermination.UNKNOWN
        }

    def variants(self, condition: str) -> List["WorldState"]:
        """
        The two "what if" branches for a condition: one with it forced TRUE,
        one with it forced FALSE. Nothing is resolved to produce them.
        """
        return [
            self.with_condition(condition, ConditionDetermination.TRUE),
            self.with_condition(condition, ConditionDetermination.FALSE),
        ]

    def with_condition(
        self, condition: str, determination: ConditionDetermination
    ) -> "WorldState":
        """New state with a single condition's determination replaced."""
        return WorldState(state={**self.state, condition: determination})

    def __add__(self, other: Tuple[str, ConditionDetermination]) -> "WorldState":
        condition, determination = other
        return self.with_condition(condition, determination)

    def apply(self, effects: Mapping[str, ConditionDetermination]) -> "WorldState":
        """New state with all the given effects applied."""
        return WorldState(state={**self.state, **effects})

    def satisfies(self, preconditions: Mapping[str, ConditionDetermination]) -> bool:
        """
        True if every precondition matches this state.
        A precondition requiring UNKNOWN matches anything.
        """
        for condition, required in preconditions.items():
            if required == ConditionDetermination.UNKNOWN:
                continue
            if self.determination(condition) != required:
                return False
        return True

    def key(self) -> FrozenSet[Tuple[str, ConditionDetermination]]:
        """Hashable identity, for closed sets during search."""
        return frozenset(self.state.items())

    def info_string(self) -> str:
        if not self.state:
            return "{}"
        pairs = ", ".join(
            f"{condition}={determination.value}"
            for condition, determination in sorted(self.state.items())
        )
        return "{" + pairs + "}"
