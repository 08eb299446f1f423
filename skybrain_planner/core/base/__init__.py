"""
Base 基礎類別模組
"""

from .constraint_base import (
    ZoneType,
    AvoidanceZone,
    WeatherLimits,
    FlightConstraints,
    MapBounds
)

from .planner_base import (
    BasePlanner,
    PlannerConfig,
    PlannerFactory,
    PlannerType,
    PlannerStatus,
    PathPlanningResult,
    OptimizationFlags
)

__all__ = [
    # Constraints
    'ZoneType',
    'AvoidanceZone',
    'WeatherLimits',
    'FlightConstraints',
    'MapBounds',

    # Planner
    'BasePlanner',
    'PlannerConfig',
    'PlannerFactory',
    'PlannerType',
    'PlannerStatus',
    'PathPlanningResult',
    'OptimizationFlags'
]
