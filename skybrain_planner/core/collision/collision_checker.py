"""
碰撞檢測器模組
提供點、線段、路徑在三維空間中的碰撞檢測功能
"""

from typing import Iterable, List, Optional, Sequence

from ..base.constraint_base import AvoidanceZone, FlightConstraints
from .obstacle_manager import ObstacleMap
from ...utils.math_utils import altitude_of


# ==========================================
# 碰撞檢測器
# ==========================================
class CollisionChecker:
    """
    碰撞檢測器

    只有禁飛區（NO_FLY）會阻擋連續線段，限制區與臨時區僅影響網格風險。
    """

    def __init__(self, zones: Iterable[AvoidanceZone] = (),
                 obstacle_map: Optional[ObstacleMap] = None):
        """
        初始化碰撞檢測器

        參數:
            zones: 常駐迴避區域
            obstacle_map: 靜態障礙物佔用格
        """
        self.zones: List[AvoidanceZone] = list(zones)
        self.obstacle_map = obstacle_map

    def add_zone(self, zone: AvoidanceZone):
        """添加迴避區域"""
        self.zones.append(zone)

    def clear_zones(self):
        """清除所有迴避區域"""
        self.zones.clear()

    def _blocking(self, extra: Iterable[AvoidanceZone] = ()) -> List[AvoidanceZone]:
        return [z for z in list(self.zones) + list(extra) if z.zone_type.is_blocking]

    def check_point(self, point: Sequence[float],
                    zones: Iterable[AvoidanceZone] = ()) -> bool:
        """
        檢查點是否碰撞

        返回:
            True 表示發生碰撞
        """
        if any(z.contains_point(point) for z in self._blocking(zones)):
            return True
        return self.obstacle_map is not None and self.obstacle_map.is_occupied(point)

    def check_segment(self, p1: Sequence[float], p2: Sequence[float],
                      zones: Iterable[AvoidanceZone] = ()) -> bool:
        """
        檢查線段是否碰撞

        返回:
            True 表示發生碰撞
        """
        for zone in self._blocking(zones):
            if zone.intersects_segment(p1, p2):
                return True
        if self.obstacle_map is not None:
            return self.obstacle_map.intersects_segment(p1, p2)
        return False

    def is_segment_valid(self, p1: Sequence[float], p2: Sequence[float],
                         constraints: FlightConstraints) -> bool:
        """
        線段是否滿足約束：兩端高度在範圍內且不穿越任何禁飛區或障礙物

        參數:
            p1, p2: 線段端點
            constraints: 飛行約束
        """
        if not (constraints.altitude_in_range(altitude_of(p1)) and
                constraints.altitude_in_range(altitude_of(p2))):
            return False
        return not self.check_segment(p1, p2, constraints.avoidance_zones)

    def first_invalid_segment(self, points: Sequence[Sequence[float]],
                              constraints: FlightConstraints,
                              start_index: int = 0) -> int:
        """
        找出從 start_index 開始第一條無效線段

        返回:
            線段起點索引，全部有效時返回 -1
        """
        for i in range(max(0, start_index), len(points) - 1):
            if not self.is_segment_valid(points[i], points[i + 1], constraints):
                return i
        return -1

    def check_path(self, points: Sequence[Sequence[float]],
                   zones: Iterable[AvoidanceZone] = ()) -> bool:
        """
        檢查路徑是否碰撞

        返回:
            True 表示任一線段發生碰撞
        """
        zones = list(zones)
        for i in range(len(points) - 1):
            if self.check_segment(points[i], points[i + 1], zones):
                return True
        return False


# ==========================================
# 便捷函數
# ==========================================
def check_point_collision(point: Sequence[float],
                          zones: Iterable[AvoidanceZone]) -> bool:
    """檢查點是否落入任一禁飛區"""
    return CollisionChecker(zones).check_point(point)


def check_path_collision(points: Sequence[Sequence[float]],
                         zones: Iterable[AvoidanceZone]) -> bool:
    """檢查路徑是否穿越任一禁飛區"""
    return CollisionChecker(zones).check_path(points)
