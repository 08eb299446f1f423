"""
航點資料結構模組
定義航點、航點類型等核心資料結構
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Dict, Any, Sequence
from enum import Enum

from ..utils.math_utils import (
    Vector3, altitude_of, as_tuple, euclidean_distance_3d, polyline_length
)


# ==========================================
# 航點類型定義
# ==========================================
class WaypointType(Enum):
    """航點語意類型"""
    START = 'start'             # 起點
    END = 'end'                 # 終點
    CHECKPOINT = 'checkpoint'   # 途經點
    AVOID = 'avoid'             # 迴避點
    PRIORITY = 'priority'       # 優先點


# ==========================================
# 航點資料類
# ==========================================
@dataclass(frozen=True)
class Waypoint:
    """
    航點資料類

    表示三維空間中具有語意角色的一個點，建立後不可變。
    座標為 (x, y, z)，其中 y 為高度。
    """
    # 座標資訊
    position: Vector3

    # 語意角色
    waypoint_type: WaypointType = WaypointType.CHECKPOINT

    # 可選資訊
    timestamp: Optional[float] = None           # 時間戳（秒）
    risk_level: Optional[float] = None          # 風險等級 [0, 1]
    speed: float = 0.0                          # 通過速度（m/s）

    # 識別碼（不參與比較）
    waypoint_id: str = field(default='', compare=False)

    def __post_init__(self):
        """初始化後正規化座標與類型"""
        object.__setattr__(self, 'position', as_tuple(self.position))
        if not isinstance(self.waypoint_type, WaypointType):
            object.__setattr__(self, 'waypoint_type', WaypointType(self.waypoint_type))

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def z(self) -> float:
        return self.position[2]

    @property
    def altitude(self) -> float:
        """高度（y 軸）"""
        return altitude_of(self.position)

    def distance_to(self, other: 'Waypoint') -> float:
        """
        計算到另一個航點的距離

        參數:
            other: 另一個航點

        返回:
            歐幾里得距離
        """
        return euclidean_distance_3d(self.position, other.position)

    def with_position(self, position: Sequence[float]) -> 'Waypoint':
        """返回位置替換後的新航點，其餘屬性保留"""
        return replace(self, position=as_tuple(position))

    def to_dict(self) -> Dict[str, Any]:
        """轉換為字典"""
        return {
            'id': self.waypoint_id,
            'position': list(self.position),
            'type': self.waypoint_type.value,
            'timestamp': self.timestamp,
            'risk_level': self.risk_level,
            'speed': self.speed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Waypoint':
        """
        從字典創建航點

        參數:
            data: to_dict() 產生的字典

        返回:
            Waypoint 實例
        """
        return cls(
            position=tuple(data['position']),
            waypoint_type=WaypointType(data.get('type', WaypointType.CHECKPOINT.value)),
            timestamp=data.get('timestamp'),
            risk_level=data.get('risk_level'),
            speed=float(data.get('speed', 0.0)),
            waypoint_id=data.get('id', ''),
        )

    def __str__(self) -> str:
        x, y, z = self.position
        return f"Waypoint({self.waypoint_type.value}, pos=({x:.2f}, {y:.2f}, {z:.2f}))"


# ==========================================
# 路徑工具
# ==========================================
def path_positions(path: Sequence[Waypoint]) -> List[Vector3]:
    """取出路徑中所有航點座標"""
    return [wp.position for wp in path]


def path_length(path: Sequence[Waypoint]) -> float:
    """
    計算路徑總長度

    參數:
        path: 航點序列

    返回:
        各段歐幾里得距離總和
    """
    return polyline_length(path_positions(path))


def make_waypoint(position: Sequence[float],
                  waypoint_type: WaypointType = WaypointType.CHECKPOINT,
                  **kwargs) -> Waypoint:
    """建立航點的便捷函數"""
    return Waypoint(position=as_tuple(position), waypoint_type=waypoint_type, **kwargs)


Path = List[Waypoint]
PathTuple = Tuple[Waypoint, ...]
