"""GOAP Kernel data models."""

from goap_kernel.models.action import Action, Goal
from goap_kernel.models.condition import ConditionDetermination, WorldState
from goap_kernel.models.plan import Plan, PlanningSystem
from goap_kernel.models.planner import PlannerConfig

__all__ = [
    "Action",
    "ConditionDetermination",
    "Goal",
    "Plan",
    "PlannerConfig",
    "PlanningSystem",
    "WorldState",
]
