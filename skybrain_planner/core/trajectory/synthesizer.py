"""
軌跡合成模組
將航點路徑轉為固定時間步長的運動學取樣序列
"""

import math
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from ..base.constraint_base import FlightConstraints
from ...mission.waypoint import Waypoint
from ...utils.logger import get_logger
from ...utils.math_utils import EPSILON


logger = get_logger('SkyBrainPlanner.trajectory')


@dataclass
class TrajectoryPoint:
    """軌跡點"""
    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    acceleration: np.ndarray = field(default_factory=lambda: np.zeros(3))
    timestamp: float = 0.0
    risk: float = 0.0

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def __repr__(self):
        return f"TrajectoryPoint(pos={self.position}, t={self.timestamp:.2f})"


class TrajectorySynthesizer:
    """
    軌跡合成器

    每段以 max_speed 等速線性插值，段時長 = 段長 / max_speed。
    不考慮加速度限制，加速度恆為零。
    """

    def __init__(self, time_step: float = 0.1):
        if not time_step > 0:
            raise ValueError(f"時間步長必須為正: {time_step}")
        self.time_step = time_step

    def synthesize(self, path: Sequence[Waypoint],
                   constraints: FlightConstraints,
                   start_time: float = 0.0) -> List[TrajectoryPoint]:
        """
        合成軌跡

        參數:
            path: 航點序列
            constraints: 飛行約束（使用 max_speed）
            start_time: 起始時間戳

        返回:
            軌跡點列表，段與段的接合點只出現一次
        """
        constraints.validate()
        if not path:
            return []

        trajectory: List[TrajectoryPoint] = [TrajectoryPoint(
            position=np.array(path[0].position, dtype=float),
            timestamp=start_time,
            risk=path[0].risk_level or 0.0
        )]
        current_time = start_time

        for i in range(len(path) - 1):
            a = np.array(path[i].position, dtype=float)
            b = np.array(path[i + 1].position, dtype=float)
            length = float(np.linalg.norm(b - a))
            if length < EPSILON:
                continue

            duration = length / constraints.max_speed
            velocity = (b - a) / duration
            risk_a = path[i].risk_level or 0.0
            risk_b = path[i + 1].risk_level or 0.0
            steps = max(1, int(math.ceil(duration / self.time_step - EPSILON)))

            # 段起點已由前一段（或首點）加入
            for step in range(1, steps + 1):
                t = step / steps
                trajectory.append(TrajectoryPoint(
                    position=a + (b - a) * t,
                    velocity=velocity.copy(),
                    timestamp=current_time + duration * t,
                    risk=risk_a + (risk_b - risk_a) * t
                ))
            current_time += duration

        # 首點速度沿用第一段
        if len(trajectory) > 1:
            trajectory[0].velocity = trajectory[1].velocity.copy()

        logger.debug(
            f"軌跡合成完成: {len(trajectory)} 點, 總時長 {current_time - start_time:.2f} 秒"
        )
        return trajectory
