"""
Core Search — turns a concrete world state, an action set and a goal into a plan.

The planner only needs something satisfying the Search protocol; AStarSearch
is the default: forward A* over world states, step cost = action cost,
heuristic = unsatisfied goal preconditions priced at the cheapest action.
"""

import heapq
import itertools
import math
from dataclasses import dataclass, field
from typing import Collection, Dict, List, Optional, Protocol

from goap_kernel.logging_config import get_logger
from goap_kernel.models.action import Action, Goal
from goap_kernel.models.condition import WorldState
from goap_kernel.models.plan import Plan
from goap_kernel.models.planner import PlannerConfig

logger = get_logger(__name__)


class Search(Protocol):
    """Protocol for core search — pluggable backend."""

    def search(
        self,
        state: WorldState,
        actions: Collection[Action],
        goal: Goal,
    ) -> Optional[Plan]: ...


@dataclass(order=True)
class SearchNode:
    """
    Node in the A* search tree.

    Ordered by f_score, then by insertion sequence so ties pop first-in.
    """

    f_score: float
    sequence: int
    state: WorldState = field(compare=False)
    g_score: float = field(compare=False)
    parent: Optional["SearchNode"] = field(default=None, compare=False)
    action: Optional[Action] = field(default=None, compare=False)

    def reconstruct_plan(self) -> List[Action]:
        """Action sequence from the root to this node."""
        actions = []
        node = self
        while node.parent is not None:
            actions.append(node.action)
            node = node.parent
        return list(reversed(actions))


def unsatisfied_goal_conditions(state: WorldState, goal: Goal) -> float:
    """Count goal preconditions the state does not yet meet."""
    return float(
        sum(
            1
            for condition, required in goal.preconditions.items()
            if not state.satisfies({condition: required})
        )
    )


class GoalDistanceHeuristic:
    """
    Admissible estimate of the remaining cost to a goal.

    One action settles at most `conditions_per_step` goal conditions and
    costs at least `min_cost`, so the unsatisfied count is scaled down and
    priced at the cheapest action. Each step lowers the estimate by at most
    the cost of that step, which keeps A* with a closed set optimal.
    """

    def __init__(self, actions: Collection[Action], goal: Goal):
        self.goal = goal
        self.min_cost = min((a.cost for a in actions), default=0.0)
        self.conditions_per_step = max(
            (
                sum(
                    1
                    for condition, required in goal.preconditions.items()
                    if a.effects.get(condition) == required
                )
                for a in actions
            ),
            default=0,
        )

    def estimate(self, state: WorldState) -> float:
        unsatisfied = unsatisfied_goal_conditions(state, self.goal)
        if not unsatisfied or not self.conditions_per_step:
            return 0.0
        return math.ceil(unsatisfied / self.conditions_per_step) * self.min_cost


class AStarSearch:
    """Forward A* planner over WorldState."""

    def __init__(self, config: Optional[PlannerConfig] = None):
        self.config = config or PlannerConfig()
        # Stats of the most recently finished search, for diagnostics only.
        self.stats = {"expansions": 0, "generated": 0, "plan_length": 0}

    def search(
        self,
        state: WorldState,
        actions: Collection[Action],
        goal: Goal,
    ) -> Optional[Plan]:
        """
        Find the cheapest plan from state to goal.

        Returns None if the goal is unreachable or the expansion budget runs out.
        All search bookkeeping is local, so one instance may serve concurrent calls.
        """
        ordered_actions = sorted(actions, key=lambda a: a.name)
        heuristic = GoalDistanceHeuristic(ordered_actions, goal)
        counter = itertools.count()
        expansions = 0
        generated = 0

        open_list = [
            SearchNode(
                f_score=heuristic.estimate(state),
                sequence=next(counter),
                state=state,
                g_score=0.0,
            )
        ]
        closed_set = set()
        g_scores: Dict[frozenset, float] = {state.key(): 0.0}

        while open_list and expansions < self.config.max_expansions:
            current = heapq.heappop(open_list)
            current_key = current.state.key()
            if current_key in closed_set:
                continue

            if goal.is_satisfied_by(current.state):
                plan_actions = current.reconstruct_plan()
                self.stats = {
                    "expansions": expansions,
                    "generated": generated,
                    "plan_length": len(plan_actions),
                }
                logger.debug(
                    f"Plan found for goal {goal.name}: "
                    f"length {len(plan_actions)}, expansions {expansions}"
                )
                return Plan(actions=plan_actions, goal=goal)

            closed_set.add(current_key)
            expansions += 1

            for action in ordered_actions:
                if not action.is_applicable(current.state):
                    continue
                successor = current.state.apply(action.effects)
                successor_key = successor.key()
                if successor_key in closed_set:
                    continue

                tentative_g = current.g_score + action.cost
                if successor_key in g_scores and tentative_g >= g_scores[successor_key]:
                    continue

                g_scores[successor_key] = tentative_g
                heapq.heappush(
                    open_list,
                    SearchNode(
                        f_score=tentative_g + heuristic.estimate(successor),
                        sequence=next(counter),
                        state=successor,
                        g_score=tentative_g,
                        parent=current,
                        action=action,
                    ),
                )
                generated += 1

        self.stats = {"expansions": expansions, "generated": generated, "plan_length": 0}
        if open_list:
            logger.warning(
                f"No plan found for goal {goal.name} after "
                f"{expansions} expansions (budget exhausted)"
            )
        else:
            logger.debug(f"No plan exists for goal {goal.name} from {state.info_string()}")
        return None
