"""
風險加權 A* 路徑規劃算法
在三維格點上結合實際代價、風險代價和啟發式估計，搜索避開高風險區域的路徑
"""

import math
import heapq
import time
from dataclasses import dataclass, field, replace
from typing import List, Tuple, Optional, Set, Dict, Sequence

from ..base.constraint_base import FlightConstraints, MapBounds
from ..base.planner_base import (
    BasePlanner, PlannerConfig, PlannerFactory, PlannerStatus, PlannerType
)
from ..exceptions import MapConfigurationError
from .grid_generator import EnvironmentGrid, EnvironmentGridBuilder
from ...mission.waypoint import Waypoint, WaypointType
from ...utils.logger import get_logger
from ...utils.math_utils import EPSILON, Vector3, altitude_of, euclidean_distance_3d


logger = get_logger('SkyBrainPlanner.astar')


# 18 連通：6 個軸向 + 12 個面對角線（不使用 8 個體對角線）
DIRECTIONS_18 = (
    (1, 0, 0), (-1, 0, 0), (0, 1, 0), (0, -1, 0), (0, 0, 1), (0, 0, -1),
    (1, 1, 0), (1, -1, 0), (-1, 1, 0), (-1, -1, 0),
    (1, 0, 1), (1, 0, -1), (-1, 0, 1), (-1, 0, -1),
    (0, 1, 1), (0, 1, -1), (0, -1, 1), (0, -1, -1)
)

# 備選路徑配置：(名稱, 風險權重, 能耗權重)
ALTERNATIVE_PROFILES = (
    ('shortest', 0.1, 0.1),     # 最短距離優先
    ('safest', 0.8, 0.2),       # 最安全路徑
    ('efficient', 0.2, 0.8),    # 最節能路徑
)

# 風險代價縮放係數
RISK_COST_SCALE = 10.0


@dataclass(frozen=True)
class AStarConfig(PlannerConfig):
    """A* 規劃器配置"""
    grid_size: float = 1.0            # 格點間距（公尺）
    heuristic_weight: float = 1.2     # 啟發式權重（>1 加速搜索，不保證最優）
    risk_weight: float = 0.3          # 風險權重
    energy_weight: float = 0.4        # 能耗權重
    time_weight: float = 0.3          # 時間權重
    goal_tolerance: float = 1.0       # 到達目標容差（公尺）
    max_expansions: int = 500000      # 最大展開節點數

    def validate(self):
        """驗證配置"""
        if not self.grid_size > 0:
            raise MapConfigurationError(f"格點間距必須為正: {self.grid_size}")
        if self.heuristic_weight < 1.0:
            raise ValueError(f"啟發式權重不可小於 1: {self.heuristic_weight}")
        if self.goal_tolerance < 0:
            raise ValueError(f"目標容差不可為負: {self.goal_tolerance}")
        if self.max_expansions <= 0:
            raise ValueError(f"最大展開節點數必須為正: {self.max_expansions}")

    @property
    def effective_goal_tolerance(self) -> float:
        """
        實際使用的目標容差

        格點以起點為原點展開，離目標最近的格點可能相距半個體對角線，
        因此容差不小於 grid_size * sqrt(3) / 2。
        """
        return max(self.goal_tolerance, self.grid_size * math.sqrt(3.0) / 2.0)


@dataclass
class AStarNode:
    """A* 節點（僅存在於單次搜索內）"""
    position: Vector3
    g_cost: float                     # 實際代價
    h_cost: float                     # 啟發式代價
    risk_cost: float = 0.0            # 目標格風險值 [0, 1]
    parent: Optional['AStarNode'] = field(default=None, repr=False)

    @property
    def f_cost(self) -> float:
        return self.g_cost + self.h_cost


def _position_key(position: Sequence[float]) -> Tuple[float, float, float]:
    """格點鍵值（消除浮點累加誤差）"""
    return (round(position[0], 6), round(position[1], 6), round(position[2], 6))


@PlannerFactory.register(PlannerType.ASTAR)
class RiskAwareAStarPlanner(BasePlanner):
    """
    風險加權 A* 規劃器

    特點:
    - 18 連通三維格點搜索
    - 邊代價 = 步長 + 目標格風險 × risk_weight × 10
    - 啟發式 = 歐幾里得距離 × heuristic_weight
    - 搜索失敗時降級為起點到終點的直線
    - 支援途經點與三種備選路徑
    """

    def __init__(self, bounds: MapBounds, config: Optional[AStarConfig] = None):
        """
        初始化 A* 規劃器

        參數:
            bounds: 地圖邊界
            config: 規劃器配置
        """
        super().__init__(bounds)
        self.config = config or AStarConfig()
        self.config.validate()

    @property
    def planner_type(self) -> PlannerType:
        return PlannerType.ASTAR

    def build_grid(self, constraints: FlightConstraints) -> EnvironmentGrid:
        """以配置的格點間距建立環境網格"""
        builder = EnvironmentGridBuilder(self.bounds, self.config.grid_size)
        return builder.build(constraints.avoidance_zones)

    # ==========================================
    # 公開介面
    # ==========================================
    def plan(self, start: Waypoint, goal: Waypoint,
             constraints: FlightConstraints,
             checkpoints: Sequence[Waypoint] = ()) -> List[Waypoint]:
        """
        執行路徑規劃（自行建立環境網格）

        參數:
            start: 起點航點
            goal: 目標航點
            constraints: 飛行約束
            checkpoints: 途經點

        返回:
            航點列表
        """
        constraints.validate()
        grid = self.build_grid(constraints)
        return self.plan_through(start, goal, checkpoints, grid, constraints)

    def plan_through(self, start: Waypoint, goal: Waypoint,
                     checkpoints: Sequence[Waypoint],
                     grid: EnvironmentGrid,
                     constraints: FlightConstraints,
                     config: Optional[AStarConfig] = None) -> List[Waypoint]:
        """
        依序經過途經點規劃完整路徑

        各段獨立搜索後串接，並移除重複的接合點。

        參數:
            start: 起點
            goal: 終點
            checkpoints: 有序途經點
            grid: 環境網格
            constraints: 飛行約束
            config: 本次呼叫使用的配置（預設為規劃器配置）

        返回:
            航點列表
        """
        path, _ = self.solve(start, goal, checkpoints, grid, constraints, config)
        return path

    def solve(self, start: Waypoint, goal: Waypoint,
              checkpoints: Sequence[Waypoint],
              grid: EnvironmentGrid,
              constraints: FlightConstraints,
              config: Optional[AStarConfig] = None) -> Tuple[List[Waypoint], PlannerStatus]:
        """
        同 plan_through，另返回規劃狀態

        返回:
            (航點列表, 任一段降級為直線時為 FALLBACK，否則為 SUCCESS)
        """
        constraints.validate()
        config = config or self.config

        points = [start] + list(checkpoints) + [goal]
        full_path: List[Waypoint] = []
        status = PlannerStatus.SUCCESS

        for i in range(len(points) - 1):
            segment, found = self._search(points[i], points[i + 1], grid, constraints, config)
            if not found:
                status = PlannerStatus.FALLBACK
            if i > 0:
                # 移除重複的起點
                segment = segment[1:]
            full_path.extend(segment)

        return full_path, status

    def search(self, start: Waypoint, goal: Waypoint,
               grid: EnvironmentGrid,
               constraints: FlightConstraints,
               config: Optional[AStarConfig] = None) -> List[Waypoint]:
        """
        單段 A* 搜索

        返回:
            從 start 到 goal 的航點列表；搜索失敗時為 [start, goal]
        """
        constraints.validate()
        path, _ = self._search(start, goal, grid, constraints, config or self.config)
        return path

    def generate_alternatives(self, start: Waypoint, goal: Waypoint,
                              checkpoints: Sequence[Waypoint],
                              grid: EnvironmentGrid,
                              constraints: FlightConstraints) -> List[List[Waypoint]]:
        """
        生成備選路徑

        每條備選路徑使用複製後的配置，規劃器本身的權重不會被修改。

        返回:
            3 條路徑（最短、最安全、最節能）
        """
        alternatives = []
        for name, risk_weight, energy_weight in ALTERNATIVE_PROFILES:
            profile = replace(self.config, risk_weight=risk_weight,
                              energy_weight=energy_weight)
            logger.debug(f"生成備選路徑 [{name}]: risk_weight={risk_weight}")
            alternatives.append(
                self.plan_through(start, goal, checkpoints, grid, constraints, profile)
            )
        return alternatives

    # ==========================================
    # 搜索核心
    # ==========================================
    def _search(self, start: Waypoint, goal: Waypoint,
                grid: EnvironmentGrid,
                constraints: FlightConstraints,
                config: AStarConfig) -> Tuple[List[Waypoint], bool]:
        """
        A* 搜索核心算法

        開放集合為二元堆積，鍵值 (f, 插入序號)，f 相同時先插入者優先。

        返回:
            (航點列表, 是否找到路徑)
        """
        start_time = time.monotonic()
        goal_pos = goal.position

        open_set: List[Tuple[float, int, AStarNode]] = []
        closed_set: Set[Tuple[float, float, float]] = set()
        g_scores: Dict[Tuple[float, float, float], float] = {}
        sequence = 0

        h_start = self._heuristic(start.position, goal_pos, config)
        start_node = AStarNode(start.position, 0.0, h_start)
        heapq.heappush(open_set, (start_node.f_cost, sequence, start_node))
        g_scores[_position_key(start.position)] = 0.0

        expansions = 0
        while open_set:
            _, _, current = heapq.heappop(open_set)
            current_key = _position_key(current.position)
            if current_key in closed_set:
                continue
            closed_set.add(current_key)

            # 檢查是否到達終點
            if (euclidean_distance_3d(current.position, goal_pos) <=
                    config.effective_goal_tolerance + EPSILON):
                path = self._reconstruct_path(current, start, goal)
                logger.debug(
                    f"A* 搜索完成: 展開 {expansions} 個節點, 路徑 {len(path)} 點"
                )
                return path, True

            expansions += 1
            if expansions >= config.max_expansions:
                logger.warning(f"A* 展開節點數達上限 {config.max_expansions}")
                break
            if self._check_timeout(start_time, config.timeout):
                logger.warning(f"A* 搜索超時 ({config.timeout} 秒)")
                break

            # 探索鄰居節點
            for direction in DIRECTIONS_18:
                neighbor_pos = (
                    current.position[0] + direction[0] * config.grid_size,
                    current.position[1] + direction[1] * config.grid_size,
                    current.position[2] + direction[2] * config.grid_size
                )
                neighbor_key = _position_key(neighbor_pos)
                if neighbor_key in closed_set:
                    continue
                if not self._is_valid_position(neighbor_pos, grid, constraints):
                    continue

                move_cost = math.sqrt(
                    direction[0] ** 2 + direction[1] ** 2 + direction[2] ** 2
                ) * config.grid_size
                cell_risk = grid.risk_at(neighbor_pos)
                tentative_g = (current.g_cost + move_cost +
                               cell_risk * config.risk_weight * RISK_COST_SCALE)

                if tentative_g >= g_scores.get(neighbor_key, math.inf):
                    continue
                g_scores[neighbor_key] = tentative_g

                neighbor = AStarNode(
                    position=neighbor_pos,
                    g_cost=tentative_g,
                    h_cost=self._heuristic(neighbor_pos, goal_pos, config),
                    risk_cost=cell_risk,
                    parent=current
                )
                sequence += 1
                heapq.heappush(open_set, (neighbor.f_cost, sequence, neighbor))

        # 如果沒有找到路徑，返回直線路徑
        logger.warning("未找到最優路徑，返回直線路徑")
        return [start, goal], False

    @staticmethod
    def _heuristic(position: Sequence[float], goal: Sequence[float],
                   config: AStarConfig) -> float:
        """加權歐幾里得啟發式"""
        return euclidean_distance_3d(position, goal) * config.heuristic_weight

    def _is_valid_position(self, position: Sequence[float],
                           grid: EnvironmentGrid,
                           constraints: FlightConstraints) -> bool:
        """
        檢查位置是否有效：地圖邊界內、高度範圍內、網格風險 < 1.0
        """
        if not self.bounds.contains(position):
            return False

        # 檢查高度限制
        if not constraints.altitude_in_range(altitude_of(position)):
            return False

        return grid.is_passable(position)

    @staticmethod
    def _reconstruct_path(end_node: AStarNode, start: Waypoint,
                          goal: Waypoint) -> List[Waypoint]:
        """
        重建路徑，並以請求的起點與終點替換首尾
        """
        path: List[Waypoint] = []
        node = end_node
        while node is not None:
            path.append(Waypoint(
                position=node.position,
                waypoint_type=WaypointType.CHECKPOINT,
                risk_level=node.risk_cost
            ))
            node = node.parent
        path.reverse()

        # 確保起點和終點正確
        if len(path) < 2:
            return [start, goal]
        path[0] = start
        path[-1] = goal
        return path
