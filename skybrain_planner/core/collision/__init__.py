"""
碰撞檢測模組
提供碰撞檢測、障礙物佔用格、迴避區域管理等功能
"""

from .collision_checker import (
    CollisionChecker,
    check_point_collision,
    check_path_collision
)

from .obstacle_manager import (
    ObstacleManager,
    ObstacleMap
)

__all__ = [
    # Collision Checker
    'CollisionChecker',
    'check_point_collision',
    'check_path_collision',

    # Obstacle Manager
    'ObstacleManager',
    'ObstacleMap'
]
