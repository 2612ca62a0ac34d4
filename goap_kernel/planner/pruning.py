"""
Action pruning — shrink an action catalogue to what planning actually needs.

Two stages, always applied in this order:
  1. Relevance: backward chaining from goal preconditions to the actions
     that can produce them, widened by a rerouting heuristic.
  2. Multi-path: keep only actions that appear in some plan, either from
     the current world state or from a state with one condition flipped.
"""

from collections import deque
from typing import Callable, Iterable, List, Set

from goap_kernel.logging_config import get_logger
from goap_kernel.models.action import Action, Goal
from goap_kernel.models.condition import ConditionDetermination, WorldState
from goap_kernel.models.plan import Plan, PlanningSystem
from goap_kernel.search.astar import Search

logger = get_logger(__name__)

PlansToGoals = Callable[[PlanningSystem], List[Plan]]


# --- Stage 1: relevance ---

def find_actions_relevant_to_goals(planning_system: PlanningSystem) -> Set[Action]:
    """Union of the actions relevant to each goal, computed independently."""
    relevant: Set[Action] = set()
    for goal in planning_system.goals:
        relevant |= find_actions_relevant_to_single_goal(planning_system, goal)
    return relevant


def find_actions_relevant_to_single_goal(
    planning_system: PlanningSystem, goal: Goal
) -> Set[Action]:
    """
    Backward chain from the goal's preconditions to a fixed point, then add
    rerouting actions.

    Only actions producing a condition as TRUE are chained through.
    """
    relevant: Set[Action] = set()
    pending = deque(goal.preconditions)
    processed: Set[str] = set()

    while pending:
        condition = pending.popleft()
        if condition in processed:
            continue
        processed.add(condition)

        for action in planning_system.actions:
            if action.effects.get(condition) != ConditionDetermination.TRUE:
                continue
            relevant.add(action)
            pending.extend(
                precondition
                for precondition in action.preconditions
                if precondition not in processed
            )

    relevant |= find_potential_rerouting_actions(planning_system, relevant)
    return relevant


def find_potential_rerouting_actions(
    planning_system: PlanningSystem, relevant: Set[Action]
) -> Set[Action]:
    """
    Actions not chained to the goal but kept because they may open an
    alternate route. Deliberately over-inclusive; stage 2 weeds them out.
    """
    relevant_conditions: Set[str] = set()
    for action in relevant:
        relevant_conditions |= action.conditions()

    produced_by_relevant: Set[str] = set()
    for action in relevant:
        produced_by_relevant |= set(action.effects)

    rerouting: Set[Action] = set()
    for action in planning_system.actions:
        if action in relevant:
            continue
        touches_relevant_effect = any(c in relevant_conditions for c in action.effects)
        needs_relevant_condition = any(
            c in relevant_conditions for c in action.preconditions
        )
        unique_side_effect = any(c not in produced_by_relevant for c in action.effects)
        if touches_relevant_effect or needs_relevant_condition or unique_side_effect:
            rerouting.add(action)
    return rerouting


# --- Stage 2: multi-path ---

def generate_alternative_plans(
    planning_system: PlanningSystem,
    world_state: WorldState,
    search: Search,
) -> List[Plan]:
    """
    Plans to each goal from every single-condition perturbation of the
    world state, for conditions the actions reference and the state knows.
    """
    conditions: Set[str] = set()
    for action in planning_system.actions:
        conditions |= action.conditions()

    plans: List[Plan] = []
    for condition in sorted(conditions):
        if condition not in world_state.state:
            continue
        for variant in world_state.variants(condition):
            for goal in planning_system.goals:
                plan = search.search(variant, planning_system.actions, goal)
                if plan is not None:
                    plans.append(plan)
    return plans


def apply_multi_path_pruning(
    planning_system: PlanningSystem,
    world_state: WorldState,
    search: Search,
    plans_to_goals: PlansToGoals,
    log_considered_plans: bool = True,
) -> PlanningSystem:
    """Keep only actions that take part in at least one considered plan."""
    combined_plans = list(plans_to_goals(planning_system))
    combined_plans.extend(
        generate_alternative_plans(planning_system, world_state, search)
    )

    detail = ""
    if log_considered_plans and combined_plans:
        detail = ":\n" + "\n".join(p.info_string(verbose=True, indent=1) for p in combined_plans)
    logger.info(f"{len(combined_plans)} plan(s) to consider in multi-path pruning{detail}")

    return planning_system.with_actions(
        _actions_in_plans(planning_system.actions, combined_plans)
    )


def _actions_in_plans(actions: Iterable[Action], plans: List[Plan]) -> List[Action]:
    return [a for a in actions if any(a in plan.actions for plan in plans)]
