"""
World State Determiner — where the planner's knowledge of the world comes from.

Two ways of knowing a condition:
  - Cheap: the snapshot returned by determine_world_state(). Conditions
    that would need an expensive lookup are reported as UNKNOWN.
  - Expensive: determine_condition(), which resolves exactly one condition
    authoritatively (e.g. a network or LLM call).
"""

from collections import Counter
from typing import Callable, Dict, Mapping, Optional, Protocol, Union

from goap_kernel.logging_config import get_logger
from goap_kernel.models.condition import ConditionDetermination, WorldState

logger = get_logger(__name__)

ConditionResolver = Callable[[], Union[bool, ConditionDetermination]]


class WorldStateDeterminer(Protocol):
    """Protocol for world state determination — pluggable backend."""

    def determine_world_state(self) -> WorldState: ...

    def determine_condition(self, condition: str) -> ConditionDetermination: ...


class InMemoryWorldStateDeterminer:
    """
    Determiner backed by known determinations plus per-condition resolvers.

    A condition with a resolver and no known value appears as UNKNOWN in the
    cheap snapshot; only determine_condition() calls the resolver.
    Resolver failures propagate to the caller.
    """

    def __init__(
        self,
        known: Optional[Mapping[str, Union[bool, ConditionDetermination]]] = None,
        resolvers: Optional[Mapping[str, ConditionResolver]] = None,
    ):
        self._known: Dict[str, ConditionDetermination] = {
            condition: _as_determination(value)
            for condition, value in (known or {}).items()
        }
        self._resolvers: Dict[str, ConditionResolver] = dict(resolvers or {})
        self.resolution_counts: Counter = Counter()

    def set_condition(
        self, condition: str, determination: Union[bool, ConditionDetermination]
    ) -> None:
        """Record a known determination for a condition."""
        self._known[condition] = _as_determination(determination)

    def register_resolver(self, condition: str, resolver: ConditionResolver) -> None:
        """Register an expensive resolver for a condition."""
        self._resolvers[condition] = resolver

    def determine_world_state(self) -> WorldState:
        state = {condition: ConditionDetermination.UNKNOWN for condition in self._resolvers}
        state.update(self._known)
        return WorldState(state=state)

    def determine_condition(self, condition: str) -> ConditionDetermination:
        known = self._known.get(condition)
        if known is not None and known != ConditionDetermination.UNKNOWN:
            return known

        resolver = self._resolvers.get(condition)
        if resolver is None:
            raise KeyError(f"No determination or resolver for condition '{condition}'")

        self.resolution_counts[condition] += 1
        determination = _as_determination(resolver())
        logger.debug(
            "Resolved condition",
            extra={"condition": condition, "determination": determination.value},
        )
        return determination


def _as_determination(
    value: Union[bool, ConditionDetermination],
) -> ConditionDetermination:
    if isinstance(value, ConditionDetermination):
        return value
    if isinstance(value, bool):
        return ConditionDetermination.from_bool(value)
    return ConditionDetermination(value)
