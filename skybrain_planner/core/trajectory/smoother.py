"""
路徑後處理模組
提供航點路徑平滑與路徑指標計算
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import numpy as np

from ..base.constraint_base import FlightConstraints
from ...mission.waypoint import Waypoint, path_length


# 平均巡航速度佔最大速度比例
CRUISE_SPEED_RATIO = 0.7
# 每公里耗電百分比
ENERGY_PER_KM = 15.0


class PathSmoother:
    """
    二階差分鬆弛平滑器

    每個內部航點朝相鄰兩點的中點移動：
        p'[i] = p[i] + factor * (p[i-1] + p[i+1] - 2 * p[i])
    首尾航點保持不變。
    """

    def __init__(self, factor: float = 0.3):
        """
        參數:
            factor: 平滑係數
        """
        self.factor = factor

    def smooth(self, path: Sequence[Waypoint],
               passable: Optional[Callable[[Sequence[float]], bool]] = None) -> List[Waypoint]:
        """
        平滑路徑

        參數:
            path: 航點序列
            passable: 可通行判斷；平滑後落入不可通行處的航點保留原位置

        返回:
            平滑後的新航點列表（長度 <= 2 時原樣返回）
        """
        if len(path) <= 2:
            return list(path)

        points = np.array([wp.position for wp in path], dtype=float)
        interior = points[1:-1] + self.factor * (
            points[:-2] + points[2:] - 2.0 * points[1:-1]
        )

        smoothed = [path[0]]  # 保留起點
        for waypoint, position in zip(path[1:-1], interior):
            if passable is not None and not passable(position):
                smoothed.append(waypoint)
                continue
            smoothed.append(waypoint.with_position(position))
        smoothed.append(path[-1])  # 保留終點
        return smoothed


@dataclass(frozen=True)
class PathMetrics:
    """路徑指標"""
    distance: float = 0.0      # 總距離
    time: float = 0.0          # 預估飛行時間
    energy: float = 0.0        # 電池消耗百分比（上限 100）
    risk: float = 0.0          # 平均風險 [0, 1]


def calculate_path_metrics(path: Sequence[Waypoint],
                           constraints: FlightConstraints) -> PathMetrics:
    """
    計算路徑指標

    參數:
        path: 航點序列
        constraints: 飛行約束（使用 max_speed）

    返回:
        PathMetrics
    """
    distance = path_length(path)
    average_speed = constraints.max_speed * CRUISE_SPEED_RATIO
    estimated_time = distance / average_speed if average_speed > 0 else 0.0
    energy = min(100.0, (distance / 1000.0) * ENERGY_PER_KM)

    # 起點不計入風險，分母至少為 1
    risk = sum(wp.risk_level or 0.0 for wp in path[1:]) / max(1, len(path) - 1)

    return PathMetrics(distance=distance, time=estimated_time,
                       energy=energy, risk=risk)
