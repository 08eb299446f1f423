"""
Mission 任務模組

群體協調器位於 mission.swarm_coordinator，需直接從該模組導入。
"""

from .waypoint import (
    Waypoint,
    WaypointType,
    Path,
    PathTuple,
    path_positions,
    path_length,
    make_waypoint
)

__all__ = [
    'Waypoint',
    'WaypointType',
    'Path',
    'PathTuple',
    'path_positions',
    'path_length',
    'make_waypoint'
]
