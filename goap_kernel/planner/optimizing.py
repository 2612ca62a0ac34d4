"""
Optimizing Planner — the planning core of the GOAP kernel.

Wraps a core search with two optimizations:
  - Lazy resolution: an UNKNOWN condition is only resolved (expensively)
    when its value would change the plan.
  - Pruning: relevance by backward chaining, then multi-path validation.

Every call is stateless given its inputs. Failures from the determiner or
the search propagate to the caller untouched; "no plan" is None.
"""

from typing import Collection, List, Optional, Set

from goap_kernel.logging_config import get_logger
from goap_kernel.models.action import Action, Goal
from goap_kernel.models.condition import WorldState
from goap_kernel.models.plan import Plan, PlanningSystem
from goap_kernel.models.planner import PlannerConfig
from goap_kernel.planner.pruning import (
    apply_multi_path_pruning,
    find_actions_relevant_to_goals,
)
from goap_kernel.search.astar import AStarSearch, Search
from goap_kernel.world_model.determiner import WorldStateDeterminer

logger = get_logger(__name__)


class MultipleUnknownConditionsError(Exception):
    """Raised when the start state has more than one UNKNOWN condition."""

    def __init__(self, conditions: Set[str]):
        self.conditions = sorted(conditions)
        super().__init__(
            "Unsupported: multiple unknown conditions in start state: "
            f"{', '.join(self.conditions)}"
        )


class OptimizingPlanner:
    """
    Planner façade.

    plan_to_goal() composes lazy resolution with the core search;
    prune() composes relevance pruning with multi-path pruning.
    """

    def __init__(
        self,
        world_state_determiner: WorldStateDeterminer,
        search: Optional[Search] = None,
        config: Optional[PlannerConfig] = None,
    ):
        self.config = config or PlannerConfig()
        self.world_state_determiner = world_state_determiner
        self.search = search or AStarSearch(self.config)

    def world_state(self) -> WorldState:
        """The cheap snapshot; may contain UNKNOWN conditions."""
        return self.world_state_determiner.determine_world_state()

    def plan_to_goal(self, actions: Collection[Action], goal: Goal) -> Optional[Plan]:
        """
        Plan to a goal, resolving an UNKNOWN condition only if it matters.

        If the plans for both values of the unknown condition and the plan
        from the unresolved state all share one shape, the condition is
        immaterial and the direct plan is returned. Otherwise the condition
        is resolved once and the plan from the resolved state is returned.
        """
        start_state = self.world_state()
        direct_plan = self.search.search(start_state, actions, goal)

        unknown_conditions = start_state.unknown_conditions()
        if not unknown_conditions:
            return direct_plan
        if len(unknown_conditions) > 1:
            raise MultipleUnknownConditionsError(unknown_conditions)

        condition = next(iter(unknown_conditions))
        variants = start_state.variants(condition)
        candidate_plans = [self.search.search(v, actions, goal) for v in variants]
        candidate_plans.append(direct_plan)

        branches = [v.info_string() for v in variants] + [start_state.info_string()]
        for branch, plan in zip(branches, candidate_plans):
            logger.debug(
                f"Goal {goal.name} from {branch}: "
                f"{plan.info_string() if plan is not None else 'no plan'}"
            )

        shapes = {p.shape() for p in candidate_plans if p is not None}
        logger.debug(
            f"Goal {goal.name}: {len(shapes)} distinct plan shape(s) "
            f"across values of unknown condition {condition}"
        )
        if len(shapes) <= 1:
            return direct_plan

        logger.info(
            f"Unknown condition {condition} affects plan for goal {goal.name}: resolving"
        )
        resolved = self.world_state_determiner.determine_condition(condition)
        fully_evaluated_state = start_state + (condition, resolved)
        return self.search.search(fully_evaluated_state, actions, goal)

    def plans_to_goals(self, planning_system: PlanningSystem) -> List[Plan]:
        """Plans to every goal that has one, best net value first."""
        plans = []
        for goal in planning_system.goals:
            plan = self.plan_to_goal(planning_system.actions, goal)
            if plan is not None:
                plans.append(plan)
        return sorted(plans, key=lambda p: p.net_value, reverse=True)

    def best_value_plan_to_any_goal(
        self, planning_system: PlanningSystem
    ) -> Optional[Plan]:
        plans = self.plans_to_goals(planning_system)
        return plans[0] if plans else None

    def prune(self, planning_system: PlanningSystem) -> PlanningSystem:
        """
        Reduce the system's actions to those needed for correct, re-routable
        planning. The result is always a subset of the input actions.
        """
        relevant = find_actions_relevant_to_goals(planning_system)
        relevant_system = planning_system.with_actions(
            a for a in planning_system.actions if a in relevant
        )

        pruned = apply_multi_path_pruning(
            relevant_system,
            world_state=self.world_state(),
            search=self.search,
            plans_to_goals=self.plans_to_goals,
            log_considered_plans=self.config.log_considered_plans,
        )

        logger.info(
            f"Hybrid pruning: started with {len(planning_system.actions)} actions, "
            f"backward chaining reduced to {len(relevant_system.actions)}, "
            f"final count after multi-path pruning: {len(pruned.actions)}"
        )
        return pruned
