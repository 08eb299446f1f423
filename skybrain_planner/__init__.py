"""
SkyBrain Planner
================

無人機三維航線規劃系統

主要功能：
- 環境風險網格建立
- 風險加權 A* 規劃（途經點、備選路徑、路徑平滑）
- RRT* 連續空間規劃
- 軌跡合成
- 動態重規劃
- 多機協同衝突消解

使用方式：
    from skybrain_planner import (
        PathPlanningEngine, MapBounds, FlightConstraints,
        Waypoint, WaypointType
    )
"""

__version__ = "1.0.0"
__author__ = "SkyBrain Planner Team"

# 核心模組導出
from .mission.waypoint import (
    Waypoint,
    WaypointType
)

from .core.exceptions import (
    PlanningError,
    ConstraintError,
    MapConfigurationError
)

from .core.base.constraint_base import (
    ZoneType,
    AvoidanceZone,
    WeatherLimits,
    FlightConstraints,
    MapBounds
)

from .core.base.planner_base import (
    PlannerFactory,
    PlannerType,
    PlannerStatus,
    PathPlanningResult,
    OptimizationFlags
)

from .core.global_planner.grid_generator import (
    EnvironmentGrid,
    EnvironmentGridBuilder
)

from .core.global_planner.astar import (
    RiskAwareAStarPlanner,
    AStarConfig
)

from .core.global_planner.rrt import (
    RRTStarPlanner,
    RRTStarConfig
)

from .core.trajectory import (
    PathSmoother,
    PathMetrics,
    calculate_path_metrics,
    TrajectoryPoint,
    TrajectorySynthesizer
)

from .core.local_planner.replanner import (
    DynamicReplanner
)

from .mission.swarm_coordinator import (
    SwarmAgent,
    SwarmCoordinator,
    CooperativePlanResult,
    create_detector,
    create_resolver
)

from .planning_engine import (
    PathPlanningEngine
)

__all__ = [
    # Data model
    'Waypoint',
    'WaypointType',
    'ZoneType',
    'AvoidanceZone',
    'WeatherLimits',
    'FlightConstraints',
    'MapBounds',

    # Errors
    'PlanningError',
    'ConstraintError',
    'MapConfigurationError',

    # Base
    'PlannerFactory',
    'PlannerType',
    'PlannerStatus',
    'PathPlanningResult',
    'OptimizationFlags',

    # Environment Grid
    'EnvironmentGrid',
    'EnvironmentGridBuilder',

    # Planners
    'RiskAwareAStarPlanner',
    'AStarConfig',
    'RRTStarPlanner',
    'RRTStarConfig',

    # Trajectory
    'PathSmoother',
    'PathMetrics',
    'calculate_path_metrics',
    'TrajectoryPoint',
    'TrajectorySynthesizer',

    # Replanning / Swarm
    'DynamicReplanner',
    'SwarmAgent',
    'SwarmCoordinator',
    'CooperativePlanResult',
    'create_detector',
    'create_resolver',

    # Engine
    'PathPlanningEngine',
]
