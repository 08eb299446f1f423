"""
路徑規劃引擎
整合 A* 多目標規劃、RRT* 規劃、軌跡合成、動態重規劃與群飛協同
"""

import time
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .config.settings import GlobalSettings, get_settings
from .core.base.constraint_base import AvoidanceZone, FlightConstraints, MapBounds
from .core.base.planner_base import (
    BasePlanner, OptimizationFlags, PathPlanningResult, PlannerType
)
from .core.collision import CollisionChecker, ObstacleManager, ObstacleMap
from .core.global_planner.astar import AStarConfig, RiskAwareAStarPlanner
from .core.global_planner.rrt import RRTStarConfig, RRTStarPlanner
from .core.local_planner.replanner import DynamicReplanner
from .core.trajectory.smoother import PathSmoother, calculate_path_metrics
from .core.trajectory.synthesizer import TrajectoryPoint, TrajectorySynthesizer
from .mission.swarm_coordinator import (
    ConflictDetector, ConflictResolver, CooperativePlanResult,
    SwarmAgent, SwarmCoordinator
)
from .mission.waypoint import Waypoint
from .utils.logger import get_logger, log_execution_time


logger = get_logger('SkyBrainPlanner.engine')

AgentLike = Union[SwarmAgent, Dict[str, Any]]


class PathPlanningEngine:
    """
    路徑規劃引擎

    使用方式:
        engine = PathPlanningEngine(MapBounds(-10, 10, 0, 8, 0, 200))
        result = engine.plan_optimal_path(start, goal, FlightConstraints())
    """

    def __init__(self, bounds: MapBounds,
                 astar_config: Optional[AStarConfig] = None,
                 rrt_config: Optional[RRTStarConfig] = None,
                 seed: Optional[int] = None,
                 obstacle_manager: Optional[ObstacleManager] = None,
                 smoother: Optional[PathSmoother] = None,
                 synthesizer: Optional[TrajectorySynthesizer] = None,
                 detector: Optional[ConflictDetector] = None,
                 resolver: Optional[ConflictResolver] = None,
                 max_cooperation_rounds: int = 10,
                 enable_cache: bool = True,
                 max_cache_entries: int = 128):
        """
        初始化規劃引擎

        參數:
            bounds: 地圖邊界
            astar_config: A* 配置
            rrt_config: RRT* 配置
            seed: RRT* 隨機種子
            obstacle_manager: 迴避區域與靜態障礙物管理器
            smoother: 路徑平滑器
            synthesizer: 軌跡合成器
            detector: 群飛衝突偵測策略
            resolver: 群飛衝突消解策略
            max_cooperation_rounds: 群飛最大消解輪數
            enable_cache: 是否快取 RRT* 結果
            max_cache_entries: 快取上限
        """
        self.bounds = bounds
        self.obstacle_manager = obstacle_manager or ObstacleManager()
        self.collision_checker = CollisionChecker(
            obstacle_map=self.obstacle_manager.obstacle_map
        )

        self.astar = RiskAwareAStarPlanner(bounds, astar_config)
        self.rrt = RRTStarPlanner(bounds, rrt_config, self.collision_checker, seed)
        self.smoother = smoother or PathSmoother()
        self.synthesizer = synthesizer or TrajectorySynthesizer()
        self.coordinator = SwarmCoordinator(
            self.rrt, detector, resolver,
            max_rounds=max_cooperation_rounds,
            synthesizer=self.synthesizer
        )

        # RRT* 結果快取
        self.enable_cache = enable_cache
        self.max_cache_entries = max_cache_entries
        self._rrt_cache: 'OrderedDict[Tuple, List[Waypoint]]' = OrderedDict()
        self._cache_stamp: Optional[Tuple[FlightConstraints, int]] = None

    @classmethod
    def from_settings(cls, settings: Optional[GlobalSettings] = None) -> 'PathPlanningEngine':
        """
        依全局配置建立引擎

        參數:
            settings: 全局配置（預設使用 get_settings()）
        """
        settings = settings or get_settings()
        bounds = settings.map.to_bounds()

        obstacle_map = None
        if settings.map.obstacle_resolution is not None:
            obstacle_map = ObstacleMap(bounds, settings.map.obstacle_resolution)

        return cls(
            bounds,
            astar_config=settings.search.to_config(),
            rrt_config=settings.sampling.to_config(),
            seed=settings.sampling.seed,
            obstacle_manager=ObstacleManager(obstacle_map),
            smoother=PathSmoother(settings.trajectory.smoothing_factor),
            synthesizer=TrajectorySynthesizer(settings.trajectory.time_step),
            detector=settings.coordination.build_detector(),
            resolver=settings.coordination.build_resolver(),
            max_cooperation_rounds=settings.coordination.max_rounds,
            enable_cache=settings.cache.enable_rrt_cache,
            max_cache_entries=settings.cache.max_entries
        )

    # ==========================================
    # 障礙物管理
    # ==========================================
    def add_avoidance_zone(self, zone: AvoidanceZone) -> str:
        """登錄常駐迴避區域，返回區域 ID"""
        return self.obstacle_manager.add_zone(zone)

    def remove_avoidance_zone(self, zone_id: str) -> bool:
        """移除常駐迴避區域"""
        return self.obstacle_manager.remove_zone(zone_id)

    def add_static_obstacle(self, min_corner: Sequence[float],
                            max_corner: Sequence[float]):
        """在佔用格中加入長方體靜態障礙物"""
        self.obstacle_manager.mark_static_obstacle(min_corner, max_corner)

    def _effective_constraints(self, constraints: FlightConstraints) -> FlightConstraints:
        """請求約束加上已登錄的迴避區域，並驗證"""
        constraints.validate()
        zones = self.obstacle_manager.get_zones()
        if zones:
            constraints = constraints.with_additional_zones(zones)
        return constraints

    # ==========================================
    # A* 多目標規劃
    # ==========================================
    @log_execution_time(logger)
    def plan_optimal_path(self, start: Waypoint, end: Waypoint,
                          constraints: FlightConstraints,
                          checkpoints: Sequence[Waypoint] = ()) -> PathPlanningResult:
        """
        主要路徑規劃方法

        參數:
            start: 起點
            end: 終點
            constraints: 飛行約束
            checkpoints: 有序途經點

        返回:
            PathPlanningResult（平滑後主路徑、3 條備選路徑、路徑指標）
        """
        begin = time.monotonic()
        constraints = self._effective_constraints(constraints)
        logger.info(f"開始航線規劃: {start} -> {end}, 途經點 {len(checkpoints)} 個")

        # 1. 建立環境網格
        grid = self.astar.build_grid(constraints)

        # 2. 主路徑
        primary, status = self.astar.solve(start, end, checkpoints, grid, constraints)

        # 3. 備選路徑
        alternatives = self.astar.generate_alternatives(start, end, checkpoints,
                                                        grid, constraints)

        # 4. 平滑處理（不可移入禁飛格）
        optimized = self.smoother.smooth(primary, grid.is_passable)

        # 5. 路徑指標
        metrics = calculate_path_metrics(optimized, constraints)

        return PathPlanningResult(
            path=tuple(optimized),
            total_distance=metrics.distance,
            estimated_time=metrics.time,
            energy_consumption=metrics.energy,
            risk_score=metrics.risk,
            alternative_paths=tuple(tuple(p) for p in alternatives),
            optimization_metrics=OptimizationFlags.all_set(),
            status=status,
            planning_time=time.monotonic() - begin
        )

    # ==========================================
    # RRT* 規劃（含快取）
    # ==========================================
    def plan_path_rrt_star(self, start: Waypoint, goal: Waypoint,
                           constraints: FlightConstraints,
                           max_iterations: Optional[int] = None) -> List[Waypoint]:
        """
        RRT* 路徑規劃

        相同 (起點, 終點) 在約束與障礙物不變時直接返回快取結果。

        返回:
            航點列表，找不到路徑時為空列表
        """
        constraints = self._effective_constraints(constraints)
        self._refresh_cache(constraints)

        key = (start.position, goal.position, max_iterations)
        if self.enable_cache and key in self._rrt_cache:
            logger.debug("RRT* 命中快取")
            self._rrt_cache.move_to_end(key)
            return list(self._rrt_cache[key])

        path = self.rrt.plan(start, goal, constraints, max_iterations)

        # 只快取成功的結果
        if self.enable_cache and path:
            self._rrt_cache[key] = list(path)
            while len(self._rrt_cache) > self.max_cache_entries:
                self._rrt_cache.popitem(last=False)
        return path

    def _refresh_cache(self, constraints: FlightConstraints):
        """約束或障礙物版本改變時清空快取"""
        stamp = (constraints, self.obstacle_manager.version)
        if stamp != self._cache_stamp:
            if self._rrt_cache:
                logger.debug("約束或障礙物已變更，清除 RRT* 快取")
            self._rrt_cache.clear()
            self._cache_stamp = stamp

    def invalidate_cache(self):
        """清除 RRT* 快取"""
        self._rrt_cache.clear()
        self._cache_stamp = None

    @property
    def cache_size(self) -> int:
        return len(self._rrt_cache)

    # ==========================================
    # 軌跡、動態調整、群飛
    # ==========================================
    def optimize_trajectory(self, waypoints: Sequence[Waypoint],
                            constraints: FlightConstraints) -> List[TrajectoryPoint]:
        """將航點路徑轉為時間取樣軌跡"""
        return self.synthesizer.synthesize(waypoints, constraints)

    def adjust_path_dynamically(self, current_path: Sequence[Waypoint],
                                current_position: Union[Waypoint, Sequence[float]],
                                new_obstacles: Iterable[AvoidanceZone],
                                constraints: FlightConstraints,
                                method: PlannerType = PlannerType.RRT_STAR) -> List[Waypoint]:
        """
        動態路徑調整

        參數:
            current_path: 既有路徑
            current_position: 即時位置
            new_obstacles: 新出現的迴避區域
            constraints: 飛行約束
            method: 剩餘路徑使用的規劃器

        返回:
            調整後路徑
        """
        new_obstacles = list(new_obstacles)
        constraints = self._effective_constraints(constraints)
        if new_obstacles:
            self.invalidate_cache()

        planner: BasePlanner = self.rrt if method == PlannerType.RRT_STAR else self.astar
        replanner = DynamicReplanner(planner, self.collision_checker)
        return replanner.adjust_path(current_path, current_position,
                                     new_obstacles, constraints)

    def plan_cooperative_paths(self, agents: Sequence[AgentLike],
                               constraints: FlightConstraints,
                               cooperation_level: float = 0.8) -> CooperativePlanResult:
        """
        協同路徑規劃

        參數:
            agents: SwarmAgent 或 {'id', 'start', 'goal'} 字典
            constraints: 飛行約束
            cooperation_level: 協同強度 [0, 1]
        """
        constraints = self._effective_constraints(constraints)
        swarm = [a if isinstance(a, SwarmAgent) else SwarmAgent.from_dict(a) for a in agents]
        return self.coordinator.plan_cooperative_paths(swarm, constraints, cooperation_level)
