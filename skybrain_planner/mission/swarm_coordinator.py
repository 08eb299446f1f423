"""
群飛協調器模組
負責多無人機路徑的協同規劃：逐機規劃、衝突偵測、衝突消解
支持空間鄰近、時間窗口偵測，以及優先權讓行、速度調整等策略
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import List, Tuple, Optional, Dict, Any, Sequence
import itertools
import math

import numpy as np

from ..core.base.constraint_base import AvoidanceZone, FlightConstraints, ZoneType
from ..core.base.planner_base import BasePlanner
from ..core.geometry import segment_segment_distance
from ..core.trajectory.synthesizer import TrajectoryPoint, TrajectorySynthesizer
from ..utils.logger import get_logger
from ..utils.math_utils import Vector3, as_tuple, euclidean_distance_3d, lerp_point
from .waypoint import Waypoint


logger = get_logger('SkyBrainPlanner.swarm')


# ==========================================
# 資料類
# ==========================================
@dataclass(frozen=True)
class SwarmAgent:
    """參與協同規劃的無人機"""
    agent_id: str
    start: Waypoint
    goal: Waypoint
    priority: int = 0                  # 數值越大越優先

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SwarmAgent':
        """從 {'id', 'start', 'goal', 'priority'} 字典建立"""
        start = data['start']
        goal = data['goal']
        return cls(
            agent_id=str(data['id']),
            start=start if isinstance(start, Waypoint) else Waypoint.from_dict(start),
            goal=goal if isinstance(goal, Waypoint) else Waypoint.from_dict(goal),
            priority=int(data.get('priority', 0))
        )


@dataclass
class AgentSchedule:
    """單機時程調整"""
    departure_delay: float = 0.0       # 起飛延遲（秒）
    speed_scale: float = 1.0           # 相對 max_speed 的速度比例


@dataclass(frozen=True)
class PathConflict:
    """兩機之間的衝突"""
    agent_a: str
    agent_b: str
    position: Vector3
    distance: float
    time: Optional[float] = None       # 空間偵測不含時間


@dataclass
class CooperativePlanResult:
    """協同規劃結果"""
    paths: Dict[str, List[Waypoint]]
    schedules: Dict[str, AgentSchedule]
    rounds: int = 0                                        # 執行消解的輪數
    conflicts: List[PathConflict] = field(default_factory=list)   # 未消解的衝突
    resolved_count: int = 0
    trajectories: Dict[str, List[TrajectoryPoint]] = field(default_factory=dict)

    @property
    def is_conflict_free(self) -> bool:
        return not self.conflicts


# ==========================================
# 時間軸工具
# ==========================================
def compute_timeline(path: Sequence[Waypoint], schedule: AgentSchedule,
                     constraints: FlightConstraints) -> np.ndarray:
    """
    計算路徑上各航點的抵達時間

    參數:
        path: 航點序列
        schedule: 時程調整
        constraints: 飛行約束

    返回:
        與 path 等長的時間陣列
    """
    if not path:
        return np.zeros(0)
    points = np.array([wp.position for wp in path], dtype=float)
    lengths = np.linalg.norm(np.diff(points, axis=0), axis=1)
    speed = constraints.max_speed * schedule.speed_scale
    times = np.concatenate(([0.0], np.cumsum(lengths / speed)))
    return times + schedule.departure_delay


def positions_at(path: Sequence[Waypoint], timeline: np.ndarray,
                 times: np.ndarray) -> np.ndarray:
    """以線性插值取得指定時刻的位置，返回 (n, 3) 陣列"""
    points = np.array([wp.position for wp in path], dtype=float)
    return np.column_stack([
        np.interp(times, timeline, points[:, axis]) for axis in range(3)
    ])


# ==========================================
# 衝突偵測
# ==========================================
class ConflictDetector(ABC):
    """衝突偵測策略"""

    # 衝突是否與時間相關；與時間無關的衝突無法靠調整時程消解，需改道
    time_aware = True

    def __init__(self, safety_distance: float = 5.0):
        if not safety_distance > 0:
            raise ValueError(f"安全距離必須為正: {safety_distance}")
        self.safety_distance = safety_distance

    @abstractmethod
    def detect(self, paths: Dict[str, List[Waypoint]],
               schedules: Dict[str, AgentSchedule],
               constraints: FlightConstraints) -> List[PathConflict]:
        """偵測所有兩兩衝突"""
        pass

    @staticmethod
    def _pairs(paths: Dict[str, List[Waypoint]]):
        # 規劃失敗（空路徑）的無人機不參與偵測
        active = [agent_id for agent_id, path in paths.items() if path]
        return itertools.combinations(active, 2)


class SpatialProximityDetector(ConflictDetector):
    """
    空間鄰近偵測

    兩條路徑任意線段間最近距離小於安全距離即視為衝突，不考慮時間。
    """

    time_aware = False

    def detect(self, paths, schedules, constraints):
        conflicts = []
        for id_a, id_b in self._pairs(paths):
            conflict = self._closest_approach(id_a, paths[id_a], id_b, paths[id_b])
            if conflict is not None:
                conflicts.append(conflict)
        return conflicts

    def _closest_approach(self, id_a: str, path_a: List[Waypoint],
                          id_b: str, path_b: List[Waypoint]) -> Optional[PathConflict]:
        segments_a = _segments(path_a)
        segments_b = _segments(path_b)

        best_distance = float('inf')
        best_position = None
        for a1, a2 in segments_a:
            for b1, b2 in segments_b:
                distance = segment_segment_distance(a1, a2, b1, b2)
                if distance < best_distance:
                    best_distance = distance
                    best_position = lerp_point(a1, a2, 0.5)

        if best_position is None or best_distance >= self.safety_distance:
            return None
        return PathConflict(id_a, id_b, best_position, best_distance)


def _segments(path: List[Waypoint]) -> List[Tuple[Vector3, Vector3]]:
    if len(path) == 1:
        return [(path[0].position, path[0].position)]
    return [(path[i].position, path[i + 1].position) for i in range(len(path) - 1)]


def avoidance_tube(path: Sequence[Waypoint], safety_distance: float) -> List[AvoidanceZone]:
    """
    沿路徑建立一串球形禁飛區，包覆路徑周圍 safety_distance 範圍

    球心間距為 safety_distance / 2，半徑再加上半個間距，
    使避開所有球的線段與路徑上任一點距離都不小於 safety_distance。

    參數:
        path: 被讓行的路徑
        safety_distance: 安全距離

    返回:
        禁飛區列表
    """
    spacing = safety_distance / 2.0
    radius = safety_distance + spacing / 2.0

    centers: List[Vector3] = []
    for a, b in _segments(list(path)):
        steps = max(1, int(math.ceil(euclidean_distance_3d(a, b) / spacing)))
        centers.extend(lerp_point(a, b, i / steps) for i in range(steps))
    if path:
        centers.append(path[-1].position)

    return [AvoidanceZone(center, radius, ZoneType.NO_FLY) for center in centers]


class TimeWindowDetector(ConflictDetector):
    """
    空間鄰近 + 時間窗口偵測

    兩機在時間差不超過 time_window 的時刻彼此距離小於安全距離即視為衝突。
    無人機只在起飛到抵達之間佔用空域。
    """

    def __init__(self, safety_distance: float = 5.0,
                 time_window: float = 2.0,
                 sample_interval: float = 0.5):
        super().__init__(safety_distance)
        if time_window < 0:
            raise ValueError(f"時間窗口不可為負: {time_window}")
        if not sample_interval > 0:
            raise ValueError(f"取樣間隔必須為正: {sample_interval}")
        self.time_window = time_window
        self.sample_interval = sample_interval

    def detect(self, paths, schedules, constraints):
        samples = {}
        for agent_id, path in paths.items():
            if path:
                samples[agent_id] = self._sample(path, schedules[agent_id], constraints)

        conflicts = []
        for id_a, id_b in self._pairs(paths):
            times_a, points_a = samples[id_a]
            times_b, points_b = samples[id_b]

            close_in_time = np.abs(times_a[:, None] - times_b[None, :]) <= self.time_window
            distances = np.linalg.norm(points_a[:, None, :] - points_b[None, :, :], axis=2)
            hits = np.argwhere(close_in_time & (distances < self.safety_distance))
            if hits.size == 0:
                continue

            # 取最早的衝突時刻
            i, j = hits[0]
            conflicts.append(PathConflict(
                agent_a=id_a,
                agent_b=id_b,
                position=as_tuple(points_a[i]),
                distance=float(distances[i, j]),
                time=float(times_a[i])
            ))
        return conflicts

    def _sample(self, path: List[Waypoint], schedule: AgentSchedule,
                constraints: FlightConstraints) -> Tuple[np.ndarray, np.ndarray]:
        timeline = compute_timeline(path, schedule, constraints)
        times = np.arange(timeline[0], timeline[-1], self.sample_interval)
        times = np.append(times, timeline[-1])
        return times, positions_at(path, timeline, times)


# ==========================================
# 衝突消解
# ==========================================
class ConflictResolver(ABC):
    """衝突消解策略"""

    @abstractmethod
    def resolve(self, conflict: PathConflict,
                agents: Dict[str, SwarmAgent],
                schedules: Dict[str, AgentSchedule],
                cooperation_level: float) -> str:
        """
        消解單一衝突

        返回:
            做出讓步的無人機 ID
        """
        pass

    @staticmethod
    def yielding_agent(conflict: PathConflict, agents: Dict[str, SwarmAgent]) -> str:
        """優先權較低者讓步；相同時由列表中較後的無人機讓步"""
        order = list(agents)
        a = agents[conflict.agent_a]
        b = agents[conflict.agent_b]
        if a.priority != b.priority:
            return a.agent_id if a.priority < b.priority else b.agent_id
        if order.index(a.agent_id) > order.index(b.agent_id):
            return a.agent_id
        return b.agent_id


class PriorityYieldResolver(ConflictResolver):
    """優先權讓行：低優先權無人機延後起飛"""

    def __init__(self, time_buffer: float = 2.0, min_delay_step: float = 0.5):
        self.time_buffer = time_buffer
        self.min_delay_step = min_delay_step

    def resolve(self, conflict, agents, schedules, cooperation_level):
        agent_id = self.yielding_agent(conflict, agents)
        step = max(self.min_delay_step, self.time_buffer * cooperation_level)
        schedules[agent_id].departure_delay += step
        return agent_id


class VelocityAdjustResolver(ConflictResolver):
    """速度調整：低優先權無人機降速"""

    def __init__(self, min_speed_scale: float = 0.2):
        self.min_speed_scale = min_speed_scale

    def resolve(self, conflict, agents, schedules, cooperation_level):
        agent_id = self.yielding_agent(conflict, agents)
        schedule = schedules[agent_id]
        schedule.speed_scale = max(self.min_speed_scale,
                                   schedule.speed_scale * (1.0 - 0.5 * cooperation_level))
        return agent_id


_DETECTORS = {
    'spatial': SpatialProximityDetector,
    'time_window': TimeWindowDetector,
}

_RESOLVERS = {
    'priority_yield': PriorityYieldResolver,
    'velocity_adjust': VelocityAdjustResolver,
}


def create_detector(name: str, **kwargs) -> ConflictDetector:
    """依名稱建立衝突偵測策略"""
    if name not in _DETECTORS:
        raise ValueError(f"不支援的衝突偵測策略: {name}")
    return _DETECTORS[name](**kwargs)


def create_resolver(name: str, **kwargs) -> ConflictResolver:
    """依名稱建立衝突消解策略"""
    if name not in _RESOLVERS:
        raise ValueError(f"不支援的衝突消解策略: {name}")
    return _RESOLVERS[name](**kwargs)


# ==========================================
# 群飛協調器
# ==========================================
class SwarmCoordinator:
    """
    群飛協調器

    先為每台無人機獨立規劃路徑，再進行最多 max_rounds 輪的
    偵測與消解，無衝突時提前結束。
    時間相關的衝突交由消解策略調整時程，空間衝突則由讓行者改道。
    """

    def __init__(self, planner: BasePlanner,
                 detector: Optional[ConflictDetector] = None,
                 resolver: Optional[ConflictResolver] = None,
                 max_rounds: int = 10,
                 synthesizer: Optional[TrajectorySynthesizer] = None):
        """
        初始化群飛協調器

        參數:
            planner: 單機規劃器（RRT*）
            detector: 衝突偵測策略
            resolver: 衝突消解策略
            max_rounds: 最大消解輪數
            synthesizer: 軌跡合成器（提供時輸出各機軌跡）
        """
        if max_rounds < 0:
            raise ValueError(f"最大消解輪數不可為負: {max_rounds}")
        self.planner = planner
        self.detector = detector or TimeWindowDetector()
        self.resolver = resolver or PriorityYieldResolver()
        self.max_rounds = max_rounds
        self.synthesizer = synthesizer

    def plan_cooperative_paths(self, agents: Sequence[SwarmAgent],
                               constraints: FlightConstraints,
                               cooperation_level: float = 0.8) -> CooperativePlanResult:
        """
        協同路徑規劃

        參數:
            agents: 無人機列表
            constraints: 飛行約束
            cooperation_level: 協同強度 [0, 1]

        返回:
            CooperativePlanResult
        """
        constraints.validate()
        if not 0.0 <= cooperation_level <= 1.0:
            raise ValueError(f"協同強度必須在 0~1 之間: {cooperation_level}")

        agent_map: Dict[str, SwarmAgent] = {}
        for agent in agents:
            if agent.agent_id in agent_map:
                raise ValueError(f"重複的無人機 ID: {agent.agent_id}")
            agent_map[agent.agent_id] = agent

        # 初始路徑規劃
        paths: Dict[str, List[Waypoint]] = {}
        for agent in agent_map.values():
            paths[agent.agent_id] = self.planner.plan(agent.start, agent.goal, constraints)
            if not paths[agent.agent_id]:
                logger.warning(f"無人機 {agent.agent_id} 規劃失敗，不參與衝突偵測")
        schedules = {agent_id: AgentSchedule() for agent_id in agent_map}

        # 迭代衝突消解
        rounds = 0
        resolved = 0
        remaining: List[PathConflict] = []
        detour_zones: Dict[str, List[AvoidanceZone]] = {agent_id: [] for agent_id in agent_map}
        for _ in range(self.max_rounds):
            conflicts = self.detector.detect(paths, schedules, constraints)
            if not conflicts:
                break
            for conflict in conflicts:
                if self.detector.time_aware:
                    self.resolver.resolve(conflict, agent_map, schedules, cooperation_level)
                else:
                    self._reroute(conflict, agent_map, paths, detour_zones, constraints)
                resolved += 1
            rounds += 1
            logger.debug(f"第 {rounds} 輪消解 {len(conflicts)} 個衝突")
        else:
            remaining = self.detector.detect(paths, schedules, constraints)

        if remaining:
            logger.warning(f"達到最大輪數 {self.max_rounds}，仍有 {len(remaining)} 個衝突")
        else:
            logger.info(f"協同規劃完成: {len(agent_map)} 台無人機, {rounds} 輪消解")

        result = CooperativePlanResult(
            paths=paths,
            schedules=schedules,
            rounds=rounds,
            conflicts=remaining,
            resolved_count=resolved
        )
        if self.synthesizer is not None:
            result.trajectories = self._synthesize(paths, schedules, constraints)
        return result

    def _reroute(self, conflict: PathConflict,
                 agents: Dict[str, SwarmAgent],
                 paths: Dict[str, List[Waypoint]],
                 detour_zones: Dict[str, List[AvoidanceZone]],
                 constraints: FlightConstraints) -> str:
        """
        空間衝突改道：讓行的無人機避開對方路徑周圍的禁飛管道後重新規劃

        累積的禁飛管道會保留到後續輪次；重新規劃失敗時保留原路徑。

        返回:
            讓行的無人機 ID
        """
        agent_id = self.resolver.yielding_agent(conflict, agents)
        other_id = conflict.agent_b if agent_id == conflict.agent_a else conflict.agent_a
        agent = agents[agent_id]

        detour_zones[agent_id].extend(
            avoidance_tube(paths[other_id], self.detector.safety_distance)
        )
        detour = self.planner.plan(
            agent.start, agent.goal,
            constraints.with_additional_zones(detour_zones[agent_id])
        )
        if detour:
            paths[agent_id] = detour
            logger.debug(f"無人機 {agent_id} 改道避開 {other_id}")
        else:
            logger.warning(f"無人機 {agent_id} 無法改道避開 {other_id}，保留原路徑")
        return agent_id

    def _synthesize(self, paths: Dict[str, List[Waypoint]],
                    schedules: Dict[str, AgentSchedule],
                    constraints: FlightConstraints) -> Dict[str, List[TrajectoryPoint]]:
        trajectories = {}
        for agent_id, path in paths.items():
            schedule = schedules[agent_id]
            scaled = replace(constraints,
                             max_speed=constraints.max_speed * schedule.speed_scale)
            trajectories[agent_id] = self.synthesizer.synthesize(
                path, scaled, start_time=schedule.departure_delay
            )
        return trajectories
