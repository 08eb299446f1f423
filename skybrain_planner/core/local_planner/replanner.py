"""
動態重規劃器

當新的障礙物出現時：
1. 重新檢查既有路徑的每一段
2. 以目前位置找到路徑上最近的航點
3. 從該處往前找第一段失效的線段
4. 保留之前的部分，只重新規劃失效之後的剩餘路徑
"""

from typing import Iterable, List, Optional, Sequence, Union

from ..base.constraint_base import AvoidanceZone, FlightConstraints
from ..base.planner_base import BasePlanner
from ..collision import CollisionChecker
from ...mission.waypoint import Waypoint
from ...utils.logger import get_logger
from ...utils.math_utils import euclidean_distance_3d


logger = get_logger('SkyBrainPlanner.replanner')

PositionLike = Union[Waypoint, Sequence[float]]


class DynamicReplanner:
    """
    動態重規劃器

    使用方式:
        replanner = DynamicReplanner(RRTStarPlanner(bounds, seed=1))
        new_path = replanner.adjust_path(path, live_position, zones, constraints)
    """

    def __init__(self, planner: BasePlanner,
                 collision_checker: Optional[CollisionChecker] = None):
        """
        參數:
            planner: 剩餘路徑使用的規劃器（A* 或 RRT*）
            collision_checker: 碰撞檢測器
        """
        self.planner = planner
        self.collision_checker = collision_checker or CollisionChecker()

    def is_path_valid(self, path: Sequence[Waypoint],
                      obstacles: Iterable[AvoidanceZone],
                      constraints: FlightConstraints) -> bool:
        """以新障礙物集合重新檢查所有線段（含高度限制）"""
        check = constraints.with_zones(obstacles)
        for i in range(len(path) - 1):
            if not self.collision_checker.is_segment_valid(
                    path[i].position, path[i + 1].position, check):
                return False
        return True

    def find_replan_index(self, path: Sequence[Waypoint],
                          current_position: PositionLike,
                          obstacles: Iterable[AvoidanceZone]) -> int:
        """
        找出需要重新規劃的起始索引

        參數:
            path: 既有路徑
            current_position: 即時位置
            obstacles: 新障礙物

        返回:
            第一段失效線段的起點索引；目前位置之後全部有效時返回 -1
        """
        if not path:
            return -1
        position = getattr(current_position, 'position', current_position)
        obstacles = list(obstacles)

        # 找到目前位置在路徑中的索引
        distances = [euclidean_distance_3d(position, wp.position) for wp in path]
        current_index = distances.index(min(distances))

        # 從目前位置開始檢查路徑有效性
        for i in range(current_index, len(path) - 1):
            if self.collision_checker.check_segment(path[i].position,
                                                    path[i + 1].position,
                                                    obstacles):
                return i
        return -1

    def adjust_path(self, current_path: Sequence[Waypoint],
                    current_position: PositionLike,
                    new_obstacles: Iterable[AvoidanceZone],
                    constraints: FlightConstraints) -> List[Waypoint]:
        """
        依新障礙物調整路徑

        參數:
            current_path: 既有路徑
            current_position: 即時位置（航點或座標）
            new_obstacles: 新出現的迴避區域
            constraints: 飛行約束

        返回:
            調整後路徑；索引 i 之前與原路徑完全相同
        """
        constraints.validate()
        new_obstacles = list(new_obstacles)
        path = list(current_path)

        # 檢查目前路徑是否仍然有效
        if self.is_path_valid(path, new_obstacles, constraints):
            return path

        replan_index = self.find_replan_index(path, current_position, new_obstacles)
        if replan_index == -1:
            logger.debug("目前位置之後的路徑仍然有效")
            return path

        # 保留有效部分，重新規劃剩餘部分
        valid_prefix = path[:replan_index]
        goal = path[-1]
        updated = constraints.with_additional_zones(new_obstacles)
        logger.info(
            f"路徑於索引 {replan_index} 失效，使用 {self.planner.planner_type.name} 重新規劃"
        )

        new_segment = self.planner.plan(path[replan_index], goal, updated)
        if not new_segment:
            logger.error(f"從索引 {replan_index} 重新規劃失敗，僅返回有效前段")
            return valid_prefix

        return valid_prefix + list(new_segment)
