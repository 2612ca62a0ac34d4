"""Plans and Planning Systems — what the planner produces and prunes."""

from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from goap_kernel.models.action import Action, Goal


class Plan(BaseModel):
    """An ordered sequence of actions achieving a goal."""

    model_config = ConfigDict(frozen=True)

    actions: List[Action]
    goal: Goal

    @property
    def cost(self) -> float:
        return sum(a.cost for a in self.actions)

    @property
    def net_value(self) -> float:
        """Goal value plus action values, less the cost of getting there."""
        return self.goal.value + sum(a.value for a in self.actions) - self.cost

    def action_names(self) -> List[str]:
        return [a.name for a in self.actions]

    def is_complete(self) -> bool:
        """True when the goal is already satisfied and nothing needs doing."""
        return not self.actions

    def shape(self) -> Tuple[str, ...]:
        """Ordered action names. Plans with equal shapes count as the same plan."""
        return tuple(self.action_names())

    def info_string(self, verbose: bool = False, indent: int = 0) -> str:
        """Human-readable plan summary for logs."""
        pad = "\t" * indent
        header = (
            f"{pad}{self.goal.name}: [{', '.join(self.action_names())}] "
            f"cost={self.cost:.2f} net_value={self.net_value:.2f}"
        )
        if not verbose or not self.actions:
            return header
        steps = [
            f"{pad}\t{i+1}. {a.name}" for i, a in enumerate(self.actions)
        ]
        return "\n".join([header] + steps)


class PlanningSystem(BaseModel):
    """
    The actions and goals under consideration for one pruning pass.

    Recreated, never mutated, whenever the action set is narrowed.
    Action names must be unique: plans are compared by action name, so two
    different actions sharing a name would make plans indistinguishable.
    """

    model_config = ConfigDict(frozen=True)

    actions: Tuple[Action, ...] = ()
    goals: Tuple[Goal, ...] = ()

    @field_validator("actions")
    @classmethod
    def _unique_action_names(cls, actions: Tuple[Action, ...]) -> Tuple[Action, ...]:
        seen = {}
        unique = []
        for action in actions:
            existing = seen.get(action.name)
            if existing is None:
                seen[action.name] = action
                unique.append(action)
            elif existing != action:
                raise ValueError(
                    f"Conflicting definitions for action '{action.name}'"
                )
        return tuple(unique)

    @field_validator("goals")
    @classmethod
    def _unique_goals(cls, goals: Tuple[Goal, ...]) -> Tuple[Goal, ...]:
        return tuple(dict.fromkeys(goals))

    def with_actions(self, actions: Iterable[Action]) -> "PlanningSystem":
        """New system with the same goals and the given actions."""
        return PlanningSystem(actions=tuple(actions), goals=self.goals)

    def action_names(self) -> List[str]:
        return sorted(a.name for a in self.actions)
