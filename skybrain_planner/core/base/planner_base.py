"""
路徑規劃器基類模組
定義規劃器的統一介面、規劃結果與工廠
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Dict, Tuple
import time

from .constraint_base import FlightConstraints, MapBounds
from ...mission.waypoint import PathTuple, Waypoint, path_length


class PlannerType(Enum):
    """規劃器類型枚舉"""
    ASTAR = auto()
    RRT_STAR = auto()


class PlannerStatus(Enum):
    """規劃結果狀態"""
    SUCCESS = auto()
    FALLBACK = auto()      # 搜索失敗，返回降級路徑
    NO_SOLUTION = auto()


@dataclass(frozen=True)
class OptimizationFlags:
    """路徑優化標記"""
    distance_optimized: bool = False
    time_optimized: bool = False
    energy_optimized: bool = False
    risk_minimized: bool = False

    @classmethod
    def all_set(cls) -> 'OptimizationFlags':
        return cls(True, True, True, True)


@dataclass(frozen=True)
class PathPlanningResult:
    """規劃結果資料類（不可變）"""
    path: PathTuple = ()
    total_distance: float = 0.0
    estimated_time: float = 0.0          # 預估飛行時間
    energy_consumption: float = 0.0      # 電池百分比
    risk_score: float = 0.0              # 0-1
    alternative_paths: Tuple[PathTuple, ...] = ()
    optimization_metrics: OptimizationFlags = field(default_factory=OptimizationFlags)
    status: PlannerStatus = PlannerStatus.SUCCESS
    planning_time: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.status == PlannerStatus.SUCCESS

    @property
    def path_length(self) -> float:
        """重新計算路徑總長度"""
        return path_length(self.path)


@dataclass(frozen=True)
class PlannerConfig:
    """規劃器配置基類"""
    timeout: Optional[float] = None      # 超時時間 (s)，None 表示不限制


class BasePlanner(ABC):
    """
    路徑規劃器抽象基類

    搜索狀態（開放集合、樹）僅存在於單次 plan 呼叫內，
    規劃器實例本身只保存唯讀配置。
    """

    def __init__(self, bounds: MapBounds):
        bounds.validate()
        self.bounds = bounds

    @property
    @abstractmethod
    def planner_type(self) -> PlannerType:
        """獲取規劃器類型"""
        pass

    @abstractmethod
    def plan(self, start: Waypoint, goal: Waypoint,
             constraints: FlightConstraints) -> List[Waypoint]:
        """
        執行路徑規劃

        Args:
            start: 起點航點
            goal: 目標航點
            constraints: 飛行約束

        Returns:
            航點列表（從 start 到 goal）
        """
        pass

    @staticmethod
    def _check_timeout(start_time: float, timeout: Optional[float]) -> bool:
        """檢查是否超時"""
        return timeout is not None and time.monotonic() - start_time > timeout


class PlannerFactory:
    """規劃器工廠類"""

    _registry: Dict[PlannerType, type] = {}

    @classmethod
    def register(cls, planner_type: PlannerType):
        """註冊規劃器類型"""
        def decorator(planner_class: type):
            cls._registry[planner_type] = planner_class
            return planner_class
        return decorator

    @classmethod
    def create(cls, planner_type: PlannerType, bounds: MapBounds,
               **kwargs) -> BasePlanner:
        """創建規劃器實例"""
        planner_class = cls._registry.get(planner_type)
        if planner_class is None:
            raise ValueError(f"未註冊的規劃器類型: {planner_type}")
        return planner_class(bounds, **kwargs)

    @classmethod
    def get_available_types(cls) -> List[PlannerType]:
        """獲取可用的規劃器類型"""
        return list(cls._registry.keys())
