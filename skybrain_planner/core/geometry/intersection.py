"""
交點計算模組
提供三維點、線段與球體之間的相交與距離計算
"""

import math
from typing import Sequence

import numpy as np

from ...utils.math_utils import EPSILON, as_vector


# ==========================================
# 點-球體
# ==========================================
def point_in_sphere(point: Sequence[float], center: Sequence[float],
                    radius: float) -> bool:
    """
    判斷點是否在球體內（含邊界）

    參數:
        point: 點座標
        center: 球心
        radius: 半徑（<= 0 視為退化區域，永不包含）

    返回:
        是否在球內
    """
    if radius <= 0:
        return False
    p = as_vector(point)
    c = as_vector(center)
    return float(np.linalg.norm(p - c)) <= radius


# ==========================================
# 點-線段
# ==========================================
def point_to_segment_distance(point: Sequence[float],
                              seg_start: Sequence[float],
                              seg_end: Sequence[float]) -> float:
    """
    計算點到線段的最短距離

    參數:
        point: 點座標
        seg_start, seg_end: 線段端點

    返回:
        最短距離
    """
    p = as_vector(point)
    a = as_vector(seg_start)
    b = as_vector(seg_end)

    ab = b - a
    denom = float(np.dot(ab, ab))

    if denom < EPSILON:
        # 線段退化為點
        return float(np.linalg.norm(p - a))

    # 投影參數
    t = max(0.0, min(1.0, float(np.dot(p - a, ab)) / denom))
    closest = a + t * ab
    return float(np.linalg.norm(p - closest))


# ==========================================
# 線段-球體
# ==========================================
def segment_intersects_sphere(seg_start: Sequence[float],
                              seg_end: Sequence[float],
                              center: Sequence[float],
                              radius: float) -> bool:
    """
    判斷線段是否與球體相交

    零長度線段與零半徑球體一律視為不相交。

    參數:
        seg_start, seg_end: 線段端點
        center: 球心
        radius: 半徑

    返回:
        是否相交
    """
    if radius <= 0:
        return False

    a = as_vector(seg_start)
    b = as_vector(seg_end)
    if float(np.dot(b - a, b - a)) < EPSILON:
        return False

    return point_to_segment_distance(center, a, b) <= radius


# ==========================================
# 線段-線段
# ==========================================
def segment_segment_distance(p1: Sequence[float], p2: Sequence[float],
                             q1: Sequence[float], q2: Sequence[float]) -> float:
    """
    計算兩條三維線段之間的最短距離

    參數:
        p1, p2: 第一條線段端點
        q1, q2: 第二條線段端點

    返回:
        最近點之間的距離
    """
    a0 = as_vector(p1)
    b0 = as_vector(q1)
    d1 = as_vector(p2) - a0
    d2 = as_vector(q2) - b0
    r = a0 - b0

    a = float(np.dot(d1, d1))
    e = float(np.dot(d2, d2))
    f = float(np.dot(d2, r))

    if a < EPSILON and e < EPSILON:
        # 兩條皆退化為點
        return float(np.linalg.norm(r))

    if a < EPSILON:
        s = 0.0
        t = max(0.0, min(1.0, f / e))
    else:
        c = float(np.dot(d1, r))
        if e < EPSILON:
            t = 0.0
            s = max(0.0, min(1.0, -c / a))
        else:
            b = float(np.dot(d1, d2))
            denom = a * e - b * b
            if denom > EPSILON:
                s = max(0.0, min(1.0, (b * f - c * e) / denom))
            else:
                # 平行線段
                s = 0.0
            t = (b * s + f) / e
            if t < 0.0:
                t = 0.0
                s = max(0.0, min(1.0, -c / a))
            elif t > 1.0:
                t = 1.0
                s = max(0.0, min(1.0, (b - c) / a))

    closest_p = a0 + d1 * s
    closest_q = b0 + d2 * t
    distance = float(np.linalg.norm(closest_p - closest_q))
    return distance if math.isfinite(distance) else float('inf')
