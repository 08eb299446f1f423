"""
Global Planner 全局規劃器模組
"""

from .grid_generator import (
    EnvironmentGrid,
    EnvironmentGridBuilder
)

from .astar import (
    RiskAwareAStarPlanner,
    AStarConfig,
    AStarNode,
    ALTERNATIVE_PROFILES
)

from .rrt import (
    RRTStarPlanner,
    RRTStarConfig,
    RRTNode,
    RRTTree
)

__all__ = [
    # Environment Grid
    'EnvironmentGrid',
    'EnvironmentGridBuilder',

    # A*
    'RiskAwareAStarPlanner',
    'AStarConfig',
    'AStarNode',
    'ALTERNATIVE_PROFILES',

    # RRT*
    'RRTStarPlanner',
    'RRTStarConfig',
    'RRTNode',
    'RRTTree'
]
