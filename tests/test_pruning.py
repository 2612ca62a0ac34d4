"""Tests for action pruning: relevance (backward chaining) and multi-path."""

import logging

from goap_kernel.models import (
    Action,
    ConditionDetermination,
    Goal,
    PlannerConfig,
    PlanningSystem,
    WorldState,
)
from goap_kernel.planner.optimizing import OptimizingPlanner
from goap_kernel.planner.pruning import (
    apply_multi_path_pruning,
    find_actions_relevant_to_goals,
    find_actions_relevant_to_single_goal,
    find_potential_rerouting_actions,
    generate_alternative_plans,
)
from goap_kernel.search.astar import AStarSearch
from goap_kernel.world_model.determiner import InMemoryWorldStateDeterminer

TRUE = ConditionDetermination.TRUE
FALSE = ConditionDetermination.FALSE
UNKNOWN = ConditionDetermination.UNKNOWN


def _must_not_resolve():
    raise AssertionError("expensive resolver must not be called")


def _names(actions) -> list:
    return sorted(a.name for a in actions)


def _make_door_system() -> PlanningSystem:
    """
    Open needs the door unlocked. Unlock needs a key. Dance is unrelated but
    has a side effect nobody else produces. Wave has no effects at all.
    """
    return PlanningSystem(
        actions=(
            Action(name="Open", preconditions={"locked": FALSE}, effects={"doorOpen": TRUE}),
            Action(
                name="Unlock",
                preconditions={"locked": TRUE, "hasKey": TRUE},
                effects={"locked": FALSE},
            ),
            Action(name="GetKey", effects={"hasKey": TRUE}),
            Action(name="Dance", effects={"dancing": TRUE}),
            Action(name="Wave", preconditions={"waving": TRUE}),
        ),
        goals=(Goal(name="enter", preconditions={"doorOpen": TRUE}),),
    )


def _make_door_planner() -> OptimizingPlanner:
    determiner = InMemoryWorldStateDeterminer(
        known={"locked": False, "hasKey": False, "doorOpen": False, "dancing": False}
    )
    return OptimizingPlanner(determiner)


class TestRelevancePruning:
    def test_backward_chain_finds_whole_chain(self):
        system = PlanningSystem(
            actions=(
                Action(name="A", effects={"a": TRUE}),
                Action(name="B", preconditions={"a": TRUE}, effects={"b": TRUE}),
                Action(name="C", preconditions={"b": TRUE}, effects={"done": TRUE}),
            ),
            goals=(Goal(name="finish", preconditions={"done": TRUE}),),
        )
        assert _names(find_actions_relevant_to_goals(system)) == ["A", "B", "C"]

    def test_sole_producers_survive_large_catalogue(self):
        noise = tuple(
            Action(name=f"Noise{i}", preconditions={f"n{i}": TRUE}) for i in range(20)
        )
        chain = (
            Action(name="Mine", effects={"ore": TRUE}),
            Action(name="Smelt", preconditions={"ore": TRUE}, effects={"ingot": TRUE}),
            Action(name="Forge", preconditions={"ingot": TRUE}, effects={"sword": TRUE}),
        )
        system = PlanningSystem(
            actions=noise + chain,
            goals=(Goal(name="arm", preconditions={"sword": TRUE}),),
        )
        relevant = find_actions_relevant_to_goals(system)
        assert _names(relevant) == ["Forge", "Mine", "Smelt"]

    def test_action_without_effects_or_shared_conditions_excluded(self):
        relevant = find_actions_relevant_to_goals(_make_door_system())
        assert "Wave" not in _names(relevant)

    def test_unrelated_unique_producer_kept_as_rerouting_action(self):
        relevant = find_actions_relevant_to_goals(_make_door_system())
        assert _names(relevant) == ["Dance", "GetKey", "Open", "Unlock"]

    def test_rerouting_by_shared_effect(self):
        system = PlanningSystem(
            actions=(
                Action(name="Open", effects={"doorOpen": TRUE}),
                Action(name="Close", effects={"doorOpen": FALSE}),
            ),
            goals=(Goal(name="enter", preconditions={"doorOpen": TRUE}),),
        )
        open_action = system.actions[0]
        rerouting = find_potential_rerouting_actions(system, {open_action})
        assert _names(rerouting) == ["Close"]

    def test_rerouting_by_shared_precondition(self):
        system = PlanningSystem(
            actions=(
                Action(name="Open", preconditions={"awake": TRUE}, effects={"doorOpen": TRUE}),
                Action(name="Knock", preconditions={"awake": TRUE}),
            ),
            goals=(Goal(name="enter", preconditions={"doorOpen": TRUE}),),
        )
        relevant = find_actions_relevant_to_single_goal(system, system.goals[0])
        assert _names(relevant) == ["Knock", "Open"]

    def test_multiple_goals_union(self):
        system = PlanningSystem(
            actions=(
                Action(name="Open", effects={"doorOpen": TRUE}),
                Action(name="Light", effects={"lit": TRUE}),
            ),
            goals=(
                Goal(name="enter", preconditions={"doorOpen": TRUE}),
                Goal(name="see", preconditions={"lit": TRUE}),
            ),
        )
        assert _names(find_actions_relevant_to_goals(system)) == ["Light", "Open"]

    def test_no_goals_means_no_relevant_actions(self):
        system = PlanningSystem(actions=(Action(name="Open", effects={"doorOpen": TRUE}),))
        assert find_actions_relevant_to_goals(system) == set()


class TestMultiPathPruning:
    def test_alternative_plans_from_flipped_conditions(self):
        system = _make_door_system()
        state = WorldState(state={"locked": FALSE, "hasKey": FALSE, "doorOpen": FALSE})
        plans = generate_alternative_plans(system, state, AStarSearch())
        shapes = {tuple(p.action_names()) for p in plans}
        assert ("GetKey", "Unlock", "Open") in shapes
        assert ("Open",) in shapes
        assert () in shapes

    def test_conditions_absent_from_state_are_not_flipped(self):
        system = _make_door_system()
        plans = generate_alternative_plans(system, WorldState(), AStarSearch())
        assert plans == []

    def test_unknown_condition_is_flipped_both_ways(self):
        system = PlanningSystem(
            actions=(Action(name="Open", effects={"doorOpen": TRUE}),),
            goals=(Goal(name="enter", preconditions={"doorOpen": TRUE}),),
        )
        state = WorldState(state={"doorOpen": UNKNOWN})
        plans = generate_alternative_plans(system, state, AStarSearch())
        assert {tuple(p.action_names()) for p in plans} == {(), ("Open",)}

    def test_keeps_only_actions_in_plans(self):
        system = _make_door_system()
        state = WorldState(state={"locked": FALSE, "hasKey": FALSE, "doorOpen": FALSE})
        search = AStarSearch()

        pruned = apply_multi_path_pruning(
            system,
            world_state=state,
            search=search,
            plans_to_goals=lambda s: [],
        )

        assert pruned.action_names() == ["GetKey", "Open", "Unlock"]
        assert pruned.goals == system.goals

    def test_logs_plan_count(self, caplog):
        system = _make_door_system()
        state = WorldState(state={"locked": FALSE, "hasKey": FALSE, "doorOpen": FALSE})
        with caplog.at_level(logging.INFO, logger="goap_kernel"):
            apply_multi_path_pruning(
                system, state, AStarSearch(), plans_to_goals=lambda s: []
            )
        assert "6 plan(s) to consider in multi-path pruning" in caplog.text


class TestPrune:
    def test_keeps_alternate_route(self):
        pruned = _make_door_planner().prune(_make_door_system())
        assert pruned.action_names() == ["GetKey", "Open", "Unlock"]

    def test_unrelated_producer_excluded_after_prune(self):
        system = PlanningSystem(
            actions=(
                Action(name="A1", effects={"conditionX": TRUE}),
                Action(name="A2", effects={"conditionY": TRUE}),
            ),
            goals=(Goal(name="x", preconditions={"conditionX": TRUE}),),
        )
        planner = OptimizingPlanner(
            InMemoryWorldStateDeterminer(known={"conditionX": False, "conditionY": False})
        )
        assert planner.prune(system).action_names() == ["A1"]

    def test_result_is_subset_of_relevant_actions(self):
        system = _make_door_system()
        relevant = find_actions_relevant_to_goals(system)
        pruned = _make_door_planner().prune(system)
        assert set(pruned.actions) <= relevant

    def test_idempotent(self):
        planner = _make_door_planner()
        once = planner.prune(_make_door_system())
        twice = planner.prune(once)
        assert twice.action_names() == once.action_names()

    def test_unreachable_goal_prunes_everything(self):
        system = PlanningSystem(
            actions=(Action(name="Open", effects={"doorOpen": TRUE}),),
            goals=(Goal(name="fly", preconditions={"flying": TRUE}),),
        )
        planner = OptimizingPlanner(InMemoryWorldStateDeterminer(known={"doorOpen": False}))
        assert planner.prune(system).actions == ()

    def test_does_not_resolve_when_state_is_known(self):
        determiner = InMemoryWorldStateDeterminer(
            known={"locked": False, "hasKey": False, "doorOpen": False, "dancing": False}
        )
        OptimizingPlanner(determiner).prune(_make_door_system())
        assert sum(determiner.resolution_counts.values()) == 0

    def test_unknown_condition_in_snapshot_keeps_alternate_route(self):
        determiner = InMemoryWorldStateDeterminer(
            known={"locked": False, "doorOpen": False, "dancing": False},
            resolvers={"hasKey": _must_not_resolve},
        )
        pruned = OptimizingPlanner(determiner).prune(_make_door_system())
        assert pruned.action_names() == ["GetKey", "Open", "Unlock"]
        assert sum(determiner.resolution_counts.values()) == 0

    def test_logs_summary(self, caplog):
        with caplog.at_level(logging.INFO, logger="goap_kernel"):
            _make_door_planner().prune(_make_door_system())
        assert (
            "Hybrid pruning: started with 5 actions, backward chaining reduced to 4, "
            "final count after multi-path pruning: 3"
        ) in caplog.text

    def test_plan_detail_logging_can_be_disabled(self, caplog):
        determiner = InMemoryWorldStateDeterminer(
            known={"locked": False, "hasKey": False, "doorOpen": False}
        )
        planner = OptimizingPlanner(determiner, config=PlannerConfig(log_considered_plans=False))
        with caplog.at_level(logging.INFO, logger="goap_kernel"):
            planner.prune(_make_door_system())
        assert "to consider in multi-path pruning" in caplog.text
        assert "enter: [" not in caplog.text
