"""
約束條件基類模組
定義飛行約束：高度、速度、電池、天氣、迴避區域與地圖邊界
"""

import math
import random
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Sequence, Tuple

from ..exceptions import ConstraintError, MapConfigurationError
from ..geometry.intersection import point_in_sphere, segment_intersects_sphere
from ...utils.math_utils import Vector3, as_tuple


# ==========================================
# 迴避區域
# ==========================================
class ZoneType(Enum):
    """迴避區域嚴重等級"""
    NO_FLY = 'no-fly'            # 禁飛區
    RESTRICTED = 'restricted'    # 限制區
    TEMPORARY = 'temporary'      # 臨時管制區

    @property
    def risk_weight(self) -> float:
        """區域對應的網格風險值"""
        return _ZONE_RISK_WEIGHTS[self]

    @property
    def is_blocking(self) -> bool:
        """是否完全不可穿越"""
        return self is ZoneType.NO_FLY


_ZONE_RISK_WEIGHTS = {
    ZoneType.NO_FLY: 1.0,
    ZoneType.RESTRICTED: 0.7,
    ZoneType.TEMPORARY: 0.4,
}


@dataclass(frozen=True)
class AvoidanceZone:
    """球形迴避區域"""
    center: Vector3
    radius: float
    zone_type: ZoneType = ZoneType.NO_FLY
    zone_id: str = field(default='', compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'center', as_tuple(self.center))
        if not isinstance(self.zone_type, ZoneType):
            object.__setattr__(self, 'zone_type', ZoneType(self.zone_type))

    @property
    def risk_weight(self) -> float:
        return self.zone_type.risk_weight

    def contains_point(self, point: Sequence[float]) -> bool:
        """判斷點是否在區域內"""
        return point_in_sphere(point, self.center, self.radius)

    def intersects_segment(self, p1: Sequence[float], p2: Sequence[float]) -> bool:
        """判斷線段是否穿越區域"""
        return segment_intersects_sphere(p1, p2, self.center, self.radius)

    def validate(self):
        """檢查區域幾何是否合法"""
        if not math.isfinite(self.radius) or self.radius < 0:
            raise ConstraintError(f"迴避區域半徑不合法: {self.radius}")
        if not all(math.isfinite(c) for c in self.center):
            raise ConstraintError(f"迴避區域中心不合法: {self.center}")


# ==========================================
# 天氣限制
# ==========================================
@dataclass(frozen=True)
class WeatherLimits:
    """可飛行天氣上限"""
    max_wind_speed: float = 12.0     # 最大風速（m/s）
    max_rainfall: float = 10.0       # 最大降雨量（mm/h）
    min_visibility: float = 1000.0   # 最小能見度（m）


# ==========================================
# 飛行約束
# ==========================================
@dataclass(frozen=True)
class FlightConstraints:
    """
    單次規劃請求的飛行約束（唯讀）

    高度限制作用於 y 軸。
    """
    min_altitude: float = 0.0
    max_altitude: float = 120.0
    max_speed: float = 15.0               # 最大速度（m/s）
    battery_capacity: float = 30.0        # 電池容量（分鐘）
    payload_weight: float = 0.0           # 載荷重量（kg）
    weather_limits: WeatherLimits = field(default_factory=WeatherLimits)
    avoidance_zones: Tuple[AvoidanceZone, ...] = ()
    max_acceleration: float = 2.0         # 最大加速度（m/s²）

    def __post_init__(self):
        object.__setattr__(self, 'avoidance_zones', tuple(self.avoidance_zones))

    @property
    def no_fly_zones(self) -> Tuple[AvoidanceZone, ...]:
        """完全不可穿越的區域"""
        return tuple(z for z in self.avoidance_zones if z.zone_type.is_blocking)

    def altitude_in_range(self, altitude: float) -> bool:
        """高度是否在允許範圍內"""
        return self.min_altitude <= altitude <= self.max_altitude

    def with_zones(self, zones: Iterable[AvoidanceZone]) -> 'FlightConstraints':
        """返回替換迴避區域後的新約束"""
        return replace(self, avoidance_zones=tuple(zones))

    def with_additional_zones(self, zones: Iterable[AvoidanceZone]) -> 'FlightConstraints':
        """返回附加迴避區域後的新約束"""
        return replace(self, avoidance_zones=self.avoidance_zones + tuple(zones))

    def validate(self):
        """
        驗證約束，格式錯誤時立即拋出 ConstraintError
        """
        if self.min_altitude > self.max_altitude:
            raise ConstraintError(
                f"最小高度 {self.min_altitude} 大於最大高度 {self.max_altitude}"
            )
        if not self.max_speed > 0:
            raise ConstraintError(f"最大速度必須為正: {self.max_speed}")
        if self.max_acceleration < 0:
            raise ConstraintError(f"最大加速度不可為負: {self.max_acceleration}")
        if self.battery_capacity < 0:
            raise ConstraintError(f"電池容量不可為負: {self.battery_capacity}")
        if self.payload_weight < 0:
            raise ConstraintError(f"載荷重量不可為負: {self.payload_weight}")
        for zone in self.avoidance_zones:
            zone.validate()


# ==========================================
# 地圖邊界
# ==========================================
@dataclass(frozen=True)
class MapBounds:
    """三維地圖邊界"""
    min_x: float
    max_x: float
    min_y: float
    max_y: float
    min_z: float
    max_z: float

    @classmethod
    def from_size(cls, size_x: float, size_y: float, size_z: float) -> 'MapBounds':
        """以原點為角點建立邊界"""
        return cls(0.0, size_x, 0.0, size_y, 0.0, size_z)

    @property
    def minimum(self) -> Vector3:
        return (self.min_x, self.min_y, self.min_z)

    @property
    def maximum(self) -> Vector3:
        return (self.max_x, self.max_y, self.max_z)

    def contains(self, point: Sequence[float]) -> bool:
        """點是否在邊界內（含邊界）"""
        return (self.min_x <= point[0] <= self.max_x and
                self.min_y <= point[1] <= self.max_y and
                self.min_z <= point[2] <= self.max_z)

    def sample(self, rng: random.Random) -> Vector3:
        """在邊界內均勻採樣"""
        return (
            rng.uniform(self.min_x, self.max_x),
            rng.uniform(self.min_y, self.max_y),
            rng.uniform(self.min_z, self.max_z)
        )

    def validate(self):
        """驗證邊界，設定錯誤時拋出 MapConfigurationError"""
        for axis, low, high in (('x', self.min_x, self.max_x),
                                ('y', self.min_y, self.max_y),
                                ('z', self.min_z, self.max_z)):
            if not (math.isfinite(low) and math.isfinite(high)):
                raise MapConfigurationError(f"{axis} 軸邊界必須為有限值")
            if low >= high:
                raise MapConfigurationError(
                    f"{axis} 軸邊界不合法: min={low} >= max={high}"
                )
