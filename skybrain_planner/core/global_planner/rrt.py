"""
RRT* (Optimal Rapidly-exploring Random Tree) 路徑規劃器
在連續三維空間中增量建樹，並透過鄰域重連持續降低路徑成本
"""

import math
import random
import time
from dataclasses import dataclass, field
from typing import List, Tuple, Optional, Sequence

import numpy as np

from ..base.constraint_base import FlightConstraints, MapBounds
from ..base.planner_base import (
    BasePlanner, PlannerConfig, PlannerFactory, PlannerType
)
from ..collision import CollisionChecker
from ...mission.waypoint import Waypoint, WaypointType
from ...utils.logger import get_logger
from ...utils.math_utils import (
    Vector3, altitude_of, euclidean_distance_3d, move_towards
)


logger = get_logger('SkyBrainPlanner.rrt')


@dataclass(frozen=True)
class RRTStarConfig(PlannerConfig):
    """RRT* 規劃器配置"""
    max_iterations: int = 5000        # 預設迭代預算
    max_step: float = 10.0            # 最大擴展步長（公尺）
    goal_radius: float = 5.0          # 目標捕獲半徑（公尺）
    gamma: float = 50.0               # 鄰域半徑常數
    max_near_radius: float = 20.0     # 鄰域半徑上限
    goal_bias_start: float = 0.1      # 初始目標偏向機率
    goal_bias_end: float = 0.5        # 結束時目標偏向機率
    altitude_weight: float = 2.0      # 高度變化懲罰
    speed_weight: float = 0.5         # 速度變化懲罰

    def validate(self):
        """驗證配置"""
        if self.max_iterations < 0:
            raise ValueError(f"迭代次數不可為負: {self.max_iterations}")
        if not self.max_step > 0:
            raise ValueError(f"最大步長必須為正: {self.max_step}")
        if self.goal_radius < 0:
            raise ValueError(f"目標半徑不可為負: {self.goal_radius}")
        if not self.gamma > 0:
            raise ValueError(f"gamma 必須為正: {self.gamma}")
        if not 0.0 <= self.goal_bias_start <= self.goal_bias_end <= 1.0:
            raise ValueError(
                f"目標偏向範圍不合法: {self.goal_bias_start} ~ {self.goal_bias_end}"
            )


@dataclass
class RRTNode:
    """RRT* 樹節點，parent 與 children 皆為節點索引"""
    position: Vector3
    speed: float = 0.0
    parent: Optional[int] = None
    cost: float = 0.0                 # 從根節點到此節點的累積成本
    children: List[int] = field(default_factory=list)


class RRTTree:
    """
    以陣列儲存節點的搜索樹

    節點之間只以索引互相引用，重連僅需更新索引。
    位置另存於 numpy 陣列，加速最近鄰與鄰域查詢。
    """

    def __init__(self, root: RRTNode, capacity: int = 1024):
        self.nodes: List[RRTNode] = []
        self._positions = np.empty((max(1, capacity), 3), dtype=float)
        self.add(root)

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> RRTNode:
        return self.nodes[index]

    def add(self, node: RRTNode) -> int:
        """加入節點並掛到其父節點下，返回索引"""
        index = len(self.nodes)
        if index >= self._positions.shape[0]:
            grown = np.empty((self._positions.shape[0] * 2, 3), dtype=float)
            grown[:index] = self._positions[:index]
            self._positions = grown
        self._positions[index] = node.position
        self.nodes.append(node)
        if node.parent is not None:
            self.nodes[node.parent].children.append(index)
        return index

    def _distances(self, point: Sequence[float]) -> np.ndarray:
        diff = self._positions[:len(self.nodes)] - np.asarray(point, dtype=float)
        return np.sqrt(np.einsum('ij,ij->i', diff, diff))

    def nearest(self, point: Sequence[float]) -> int:
        """最近節點索引（距離相同時取先加入者）"""
        return int(np.argmin(self._distances(point)))

    def near(self, point: Sequence[float], radius: float) -> List[int]:
        """距離 <= radius 的節點索引"""
        return [int(i) for i in np.flatnonzero(self._distances(point) <= radius)]

    def rewire(self, index: int, new_parent: int, new_cost: float) -> bool:
        """
        將節點改接到 new_parent 下

        只接受嚴格降低成本的重連，並把降幅傳遞到整棵子樹。

        參數:
            index: 被重連的節點
            new_parent: 新父節點
            new_cost: 經由新父節點的成本

        返回:
            是否執行重連
        """
        node = self.nodes[index]
        delta = node.cost - new_cost
        if delta <= 0 or index == new_parent:
            return False

        # 移除舊連接
        if node.parent is not None:
            self.nodes[node.parent].children.remove(index)

        # 建立新連接
        node.parent = new_parent
        self.nodes[new_parent].children.append(index)
        node.cost = new_cost

        # 更新子樹成本
        stack = list(node.children)
        while stack:
            child = self.nodes[stack.pop()]
            child.cost -= delta
            stack.extend(child.children)
        return True

    def branch(self, index: int) -> List[RRTNode]:
        """從根節點到指定節點的節點序列"""
        chain = []
        current: Optional[int] = index
        while current is not None:
            chain.append(self.nodes[current])
            current = self.nodes[current].parent
        chain.reverse()
        return chain


@PlannerFactory.register(PlannerType.RRT_STAR)
class RRTStarPlanner(BasePlanner):
    """
    RRT* 規劃器

    特點:
    - 目標偏向機率隨迭代從 0.1 線性增加到 0.5
    - 鄰域半徑 min(γ·(ln n / n)^(1/3), 20)
    - 成本 = 距離 + 2·|Δ高度| + 0.5·|Δ速度|
    - 找不到路徑時返回空列表
    """

    def __init__(self, bounds: MapBounds,
                 config: Optional[RRTStarConfig] = None,
                 collision_checker: Optional[CollisionChecker] = None,
                 seed: Optional[int] = None):
        """
        初始化 RRT* 規劃器

        參數:
            bounds: 採樣邊界
            config: 規劃器配置
            collision_checker: 碰撞檢測器（含靜態障礙物）
            seed: 隨機種子，設定後每次規劃結果可重現
        """
        super().__init__(bounds)
        self.config = config or RRTStarConfig()
        self.config.validate()
        self.collision_checker = collision_checker or CollisionChecker()
        self.seed = seed

    @property
    def planner_type(self) -> PlannerType:
        return PlannerType.RRT_STAR

    def plan(self, start: Waypoint, goal: Waypoint,
             constraints: FlightConstraints,
             max_iterations: Optional[int] = None,
             rng: Optional[random.Random] = None) -> List[Waypoint]:
        """
        規劃從起點到終點的路徑

        參數:
            start: 起點航點
            goal: 終點航點
            constraints: 飛行約束
            max_iterations: 迭代預算（預設使用配置值）
            rng: 隨機數產生器

        返回:
            航點列表，找不到路徑時為空列表
        """
        tree, goal_index = self.grow_tree(start, goal, constraints, max_iterations, rng)
        if goal_index is None:
            logger.info("RRT* 未找到連接目標的節點")
            return []

        path = self._build_path(tree, goal_index, start, goal)
        logger.debug(
            f"RRT* 路徑: {len(path)} 點, 成本 {tree[goal_index].cost:.2f}, "
            f"樹節點 {len(tree)}"
        )
        return path

    def grow_tree(self, start: Waypoint, goal: Waypoint,
                  constraints: FlightConstraints,
                  max_iterations: Optional[int] = None,
                  rng: Optional[random.Random] = None) -> Tuple[RRTTree, Optional[int]]:
        """
        建樹主循環

        返回:
            (搜索樹, 最佳目標連接節點索引或 None)
        """
        constraints.validate()
        budget = self.config.max_iterations if max_iterations is None else max_iterations
        if budget < 0:
            raise ValueError(f"迭代次數不可為負: {budget}")
        rng = rng or random.Random(self.seed)

        tree = RRTTree(RRTNode(start.position, speed=start.speed),
                       capacity=budget + 1)
        goal_candidates: List[int] = []
        start_time = time.monotonic()

        for i in range(budget):
            if self._check_timeout(start_time, self.config.timeout):
                logger.warning(f"RRT* 超時，已完成 {i} 次迭代")
                break

            # 採樣隨機點
            sample, sample_speed = self._sample(goal, i, budget, rng)

            # 找到最近節點並擴展
            nearest_index = tree.nearest(sample)
            nearest = tree[nearest_index]
            new_position, new_speed = self._steer(nearest, sample, sample_speed, constraints)

            if not self._is_valid(nearest.position, new_position, constraints):
                continue

            # 選擇最優父節點
            near_indices = tree.near(new_position, self._near_radius(len(tree)))
            best_parent = nearest_index
            min_cost = nearest.cost + self._cost(nearest.position, nearest.speed,
                                                 new_position, new_speed)
            for index in near_indices:
                candidate = tree[index]
                cost = candidate.cost + self._cost(candidate.position, candidate.speed,
                                                   new_position, new_speed)
                if cost < min_cost and self._is_valid(candidate.position,
                                                      new_position, constraints):
                    best_parent = index
                    min_cost = cost

            new_index = tree.add(RRTNode(new_position, new_speed, best_parent, min_cost))

            # 重連附近節點
            for index in near_indices:
                if index == best_parent:
                    continue
                near_node = tree[index]
                new_cost = min_cost + self._cost(new_position, new_speed,
                                                 near_node.position, near_node.speed)
                if new_cost < near_node.cost and self._is_valid(new_position,
                                                                near_node.position,
                                                                constraints):
                    tree.rewire(index, new_index, new_cost)

            # 檢查是否到達目標
            if (euclidean_distance_3d(new_position, goal.position) < self.config.goal_radius
                    and self._is_valid(new_position, goal.position, constraints)):
                goal_candidates.append(new_index)

        return tree, self._best_goal_node(tree, goal_candidates, goal)

    # ==========================================
    # 輔助方法
    # ==========================================
    def _sample(self, goal: Waypoint, iteration: int, budget: int,
                rng: random.Random) -> Tuple[Vector3, float]:
        """目標偏向採樣，偏向機率隨迭代線性增加"""
        progress = iteration / budget
        goal_bias = (self.config.goal_bias_start +
                     (self.config.goal_bias_end - self.config.goal_bias_start) * progress)
        if rng.random() < goal_bias:
            return goal.position, goal.speed
        return self.bounds.sample(rng), 0.0

    def _steer(self, from_node: RRTNode, target: Vector3, target_speed: float,
               constraints: FlightConstraints) -> Tuple[Vector3, float]:
        """
        從 from_node 向 target 擴展，最多 max_step

        距離不足一步時直接到達採樣點並沿用其速度；
        否則速度受加速度限制 min(max_speed, speed + max_acceleration)。
        """
        distance = euclidean_distance_3d(from_node.position, target)
        if distance <= self.config.max_step:
            return target, target_speed

        position = move_towards(from_node.position, target, self.config.max_step)
        speed = min(constraints.max_speed, from_node.speed + constraints.max_acceleration)
        return position, speed

    def _cost(self, from_position: Sequence[float], from_speed: float,
              to_position: Sequence[float], to_speed: float) -> float:
        """成本 = 距離 + 高度變化懲罰 + 速度變化懲罰"""
        distance = euclidean_distance_3d(from_position, to_position)
        height_change = abs(altitude_of(to_position) - altitude_of(from_position))
        speed_change = abs(to_speed - from_speed)
        return (distance + height_change * self.config.altitude_weight +
                speed_change * self.config.speed_weight)

    def _near_radius(self, node_count: int) -> float:
        """鄰域半徑 min(γ·(ln n / n)^(1/3), 上限)"""
        if node_count < 2:
            return 0.0
        radius = self.config.gamma * (math.log(node_count) / node_count) ** (1.0 / 3.0)
        return min(radius, self.config.max_near_radius)

    def _is_valid(self, p1: Sequence[float], p2: Sequence[float],
                  constraints: FlightConstraints) -> bool:
        return self.collision_checker.is_segment_valid(p1, p2, constraints)

    def _best_goal_node(self, tree: RRTTree, candidates: List[int],
                        goal: Waypoint) -> Optional[int]:
        """以目前（重連後）成本選出到目標總成本最低的節點"""
        best_index = None
        best_cost = math.inf
        for index in candidates:
            node = tree[index]
            goal_cost = node.cost + self._cost(node.position, node.speed,
                                               goal.position, goal.speed)
            if goal_cost < best_cost:
                best_cost = goal_cost
                best_index = index
        return best_index

    @staticmethod
    def _build_path(tree: RRTTree, goal_index: int,
                    start: Waypoint, goal: Waypoint) -> List[Waypoint]:
        """沿父節點回溯建立路徑，首點為請求的起點，末點為請求的終點"""
        chain = tree.branch(goal_index)
        path = [start]
        for node in chain[1:]:
            path.append(Waypoint(
                position=node.position,
                waypoint_type=WaypointType.CHECKPOINT,
                speed=node.speed
            ))

        # 最後節點與目標重合時直接以目標替換
        if len(path) > 1 and path[-1].position == goal.position:
            path[-1] = goal
        else:
            path.append(goal)
        return path
