"""
數學工具模組
提供三維向量、距離、插值等幾何計算工具函數
"""

import math
from typing import Iterable, Sequence, Tuple

import numpy as np


Vector3 = Tuple[float, float, float]


# ==========================================
# 常數定義
# ==========================================
EPSILON = 1e-10       # 浮點比較容差
ALTITUDE_AXIS = 1     # y 軸為高度（場景座標系 y-up）


# ==========================================
# 向量轉換
# ==========================================
def as_vector(point: Sequence[float]) -> np.ndarray:
    """
    轉換為 numpy 三維向量

    參數:
        point: (x, y, z) 序列

    返回:
        float64 陣列
    """
    return np.asarray(point, dtype=float).reshape(3)


def as_tuple(vector: Iterable[float]) -> Vector3:
    """轉換為 (x, y, z) 浮點元組"""
    x, y, z = (float(v) for v in vector)
    return (x, y, z)


# ==========================================
# 距離計算
# ==========================================
def euclidean_distance_3d(p1: Sequence[float], p2: Sequence[float]) -> float:
    """
    計算三維歐幾里得距離

    參數:
        p1: 第一個點 (x, y, z)
        p2: 第二個點 (x, y, z)

    返回:
        距離
    """
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    dz = p2[2] - p1[2]
    return math.sqrt(dx * dx + dy * dy + dz * dz)


def polyline_length(points: Sequence[Sequence[float]]) -> float:
    """
    計算折線總長度

    參數:
        points: 點列表

    返回:
        各線段長度總和
    """
    total = 0.0
    for i in range(1, len(points)):
        total += euclidean_distance_3d(points[i - 1], points[i])
    return total


def altitude_of(point: Sequence[float]) -> float:
    """取得點的高度分量（y 軸）"""
    return float(point[ALTITUDE_AXIS])


# ==========================================
# 插值
# ==========================================
def lerp(a: float, b: float, t: float) -> float:
    """線性插值"""
    return a + (b - a) * t


def lerp_point(p1: Sequence[float], p2: Sequence[float], t: float) -> Vector3:
    """
    三維點線性插值

    參數:
        p1: 起點
        p2: 終點
        t: 插值參數 [0, 1]

    返回:
        插值點
    """
    return (
        lerp(p1[0], p2[0], t),
        lerp(p1[1], p2[1], t),
        lerp(p1[2], p2[2], t)
    )


def move_towards(origin: Sequence[float], target: Sequence[float],
                 max_distance: float) -> Vector3:
    """
    從 origin 向 target 移動，最多 max_distance

    參數:
        origin: 起點
        target: 目標點
        max_distance: 最大移動距離

    返回:
        新位置（距離不足時直接返回 target）
    """
    distance = euclidean_distance_3d(origin, target)
    if distance <= max_distance:
        return as_tuple(target)
    ratio = max_distance / distance
    return lerp_point(origin, target, ratio)
