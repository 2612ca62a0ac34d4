"""Planner configuration."""

from pydantic import BaseModel, Field


class PlannerConfig(BaseModel):
    """Configuration for the Optimizing Planner and its default search."""

    max_expansions: int = Field(ge=1, default=10000)   # A* node budget
    log_considered_plans: bool = True                   # Plan detail in pruning logs
