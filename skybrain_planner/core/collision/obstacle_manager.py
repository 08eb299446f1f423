"""
障礙物管理器
提供靜態障礙物佔用格地圖，以及動態迴避區域的統一管理
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..base.constraint_base import AvoidanceZone, MapBounds
from ..exceptions import MapConfigurationError
from ...utils.logger import get_logger


logger = get_logger('SkyBrainPlanner.obstacles')


# ==========================================
# 靜態障礙物佔用格
# ==========================================
class ObstacleMap:
    """
    三維佔用格地圖

    以布林陣列記錄不可穿越的體素（建築物等靜態障礙物）。
    """

    def __init__(self, bounds: MapBounds, resolution: float = 1.0):
        """
        參數:
            bounds: 地圖邊界
            resolution: 體素邊長
        """
        bounds.validate()
        if not resolution > 0:
            raise MapConfigurationError(f"解析度必須為正: {resolution}")

        self.bounds = bounds
        self.resolution = resolution
        self.shape = (
            int(math.ceil((bounds.max_x - bounds.min_x) / resolution)),
            int(math.ceil((bounds.max_y - bounds.min_y) / resolution)),
            int(math.ceil((bounds.max_z - bounds.min_z) / resolution)),
        )
        self.occupancy = np.zeros(self.shape, dtype=bool)

    def world_to_grid(self, point: Sequence[float]) -> Tuple[int, int, int]:
        """世界座標轉網格索引"""
        return (
            int(math.floor((point[0] - self.bounds.min_x) / self.resolution)),
            int(math.floor((point[1] - self.bounds.min_y) / self.resolution)),
            int(math.floor((point[2] - self.bounds.min_z) / self.resolution)),
        )

    def _in_grid(self, index: Tuple[int, int, int]) -> bool:
        return all(0 <= i < n for i, n in zip(index, self.shape))

    def mark_box(self, min_corner: Sequence[float], max_corner: Sequence[float]):
        """
        將長方體範圍標記為障礙物（超出地圖部分自動裁切）

        參數:
            min_corner: 最小角點
            max_corner: 最大角點
        """
        lo = self.world_to_grid(min_corner)
        hi = self.world_to_grid(max_corner)
        slices = tuple(
            slice(max(0, l), min(n, h + 1))
            for l, h, n in zip(lo, hi, self.shape)
        )
        self.occupancy[slices] = True

    def is_occupied(self, point: Sequence[float]) -> bool:
        """點所在體素是否被佔用（地圖外視為空）"""
        index = self.world_to_grid(point)
        if self.bounds.contains(point):
            index = tuple(min(i, n - 1) for i, n in zip(index, self.shape))
        return self._in_grid(index) and bool(self.occupancy[index])

    def intersects_segment(self, p1: Sequence[float], p2: Sequence[float]) -> bool:
        """
        沿線段等距取樣，檢查是否穿越被佔用體素

        參數:
            p1, p2: 線段端點

        返回:
            是否碰撞
        """
        a = np.asarray(p1, dtype=float)
        b = np.asarray(p2, dtype=float)
        steps = int(math.ceil(float(np.linalg.norm(b - a)) / self.resolution))
        if steps == 0:
            return self.is_occupied(a)

        for i in range(steps + 1):
            if self.is_occupied(a + (b - a) * (i / steps)):
                return True
        return False

    def clear(self):
        """清除所有障礙物"""
        self.occupancy[:] = False


# ==========================================
# 動態迴避區域管理
# ==========================================
class ObstacleManager:
    """
    迴避區域管理器

    每次新增或移除區域都會遞增 version，供快取判斷資料是否過期。
    """

    def __init__(self, obstacle_map: Optional[ObstacleMap] = None):
        self.obstacle_map = obstacle_map
        self._zones: Dict[str, AvoidanceZone] = {}
        self._next_id = 1
        self.version = 0

    def add_zone(self, zone: AvoidanceZone) -> str:
        """
        添加迴避區域

        參數:
            zone: 迴避區域

        返回:
            區域 ID
        """
        zone.validate()
        zone_id = zone.zone_id or f"zone_{self._next_id}"
        self._next_id += 1
        self._zones[zone_id] = zone
        self.version += 1
        logger.debug(f"新增迴避區域 {zone_id} ({zone.zone_type.value}, r={zone.radius})")
        return zone_id

    def remove_zone(self, zone_id: str) -> bool:
        """移除迴避區域"""
        if zone_id not in self._zones:
            return False
        del self._zones[zone_id]
        self.version += 1
        logger.debug(f"移除迴避區域 {zone_id}")
        return True

    def clear_zones(self):
        """清除所有迴避區域"""
        if self._zones:
            self._zones.clear()
            self.version += 1

    def mark_static_obstacle(self, min_corner: Sequence[float],
                             max_corner: Sequence[float]):
        """在佔用格地圖中加入靜態障礙物"""
        if self.obstacle_map is None:
            raise ValueError("未設定佔用格地圖，無法加入靜態障礙物")
        self.obstacle_map.mark_box(min_corner, max_corner)
        self.version += 1

    def get_zones(self) -> List[AvoidanceZone]:
        """獲取所有迴避區域"""
        return list(self._zones.values())

    def __len__(self) -> int:
        return len(self._zones)
