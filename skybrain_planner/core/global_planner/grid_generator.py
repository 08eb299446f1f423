"""
環境風險網格生成器

將迴避區域幾何光柵化為三維風險網格：
- 0.0 表示可自由通行
- 1.0 表示完全不可通行（禁飛區）
- 介於兩者之間為風險等級（限制區 0.7、臨時區 0.4）

區域重疊時取最大值，最嚴格的約束永遠主導。
"""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np

from ..base.constraint_base import AvoidanceZone, MapBounds
from ..exceptions import MapConfigurationError
from ...utils.logger import get_logger


logger = get_logger('SkyBrainPlanner.grid')

GridIndex = Tuple[int, int, int]


@dataclass
class EnvironmentGrid:
    """
    三維風險網格

    單次規劃請求建立並擁有，請求結束後即丟棄。
    """
    risk: np.ndarray
    bounds: MapBounds
    resolution: float

    @property
    def shape(self) -> GridIndex:
        return tuple(self.risk.shape)

    def world_to_grid(self, point: Sequence[float]) -> GridIndex:
        """世界座標轉網格索引（不做範圍檢查）"""
        return (
            int(math.floor((point[0] - self.bounds.min_x) / self.resolution)),
            int(math.floor((point[1] - self.bounds.min_y) / self.resolution)),
            int(math.floor((point[2] - self.bounds.min_z) / self.resolution)),
        )

    def in_grid(self, index: GridIndex) -> bool:
        """索引是否落在網格內"""
        return all(0 <= i < n for i, n in zip(index, self.risk.shape))

    def risk_at(self, point: Sequence[float]) -> float:
        """
        查詢點所在網格的風險值

        參數:
            point: 世界座標

        返回:
            風險值，地圖外返回 0.0
        """
        index = self.world_to_grid(point)
        if self.bounds.contains(point):
            # 最大邊界面上的點歸入最後一格
            index = tuple(min(i, n - 1) for i, n in zip(index, self.risk.shape))
        if not self.in_grid(index):
            return 0.0
        return float(self.risk[index])

    def is_passable(self, point: Sequence[float]) -> bool:
        """點所在網格風險是否嚴格小於 1.0"""
        return self.risk_at(point) < 1.0

    @property
    def max_risk(self) -> float:
        return float(self.risk.max()) if self.risk.size else 0.0


class EnvironmentGridBuilder:
    """
    環境網格建構器

    使用方式:
        builder = EnvironmentGridBuilder(bounds, resolution=1.0)
        grid = builder.build(constraints.avoidance_zones)
    """

    def __init__(self, bounds: MapBounds, resolution: float = 1.0):
        """
        初始化建構器

        參數:
            bounds: 地圖邊界
            resolution: 網格解析度（公尺）
        """
        bounds.validate()
        if not (math.isfinite(resolution) and resolution > 0):
            raise MapConfigurationError(f"網格解析度必須為正: {resolution}")

        self.bounds = bounds
        self.resolution = resolution

    @property
    def shape(self) -> GridIndex:
        """網格維度：各軸 ceil(範圍 / 解析度)"""
        b = self.bounds
        return (
            int(math.ceil((b.max_x - b.min_x) / self.resolution)),
            int(math.ceil((b.max_y - b.min_y) / self.resolution)),
            int(math.ceil((b.max_z - b.min_z) / self.resolution)),
        )

    def build(self, zones: Iterable[AvoidanceZone] = ()) -> EnvironmentGrid:
        """
        建立風險網格

        參數:
            zones: 迴避區域

        返回:
            EnvironmentGrid
        """
        grid = EnvironmentGrid(
            risk=np.zeros(self.shape, dtype=np.float32),
            bounds=self.bounds,
            resolution=self.resolution
        )

        count = 0
        for zone in zones:
            self._rasterize_zone(grid, zone)
            count += 1

        logger.debug(
            f"環境網格建立完成: shape={grid.shape}, 區域數={count}, "
            f"不可通行格數={int(np.count_nonzero(grid.risk >= 1.0))}"
        )
        return grid

    def _rasterize_zone(self, grid: EnvironmentGrid, zone: AvoidanceZone):
        """
        將單一區域寫入網格

        以區域中心所在格為圓心，索引空間距離 <= ceil(radius / resolution)
        的格子風險取 max(原值, 區域權重)。迭代範圍裁切至網格內。
        """
        center = grid.world_to_grid(zone.center)
        radius = max(0, int(math.ceil(zone.radius / self.resolution)))

        lo = [max(0, c - radius) for c in center]
        hi = [min(n, c + radius + 1) for c, n in zip(center, grid.shape)]
        if any(l >= h for l, h in zip(lo, hi)):
            # 區域完全在網格外
            return

        xs = np.arange(lo[0], hi[0]) - center[0]
        ys = np.arange(lo[1], hi[1]) - center[1]
        zs = np.arange(lo[2], hi[2]) - center[2]
        dist_sq = (xs[:, None, None] ** 2 +
                   ys[None, :, None] ** 2 +
                   zs[None, None, :] ** 2)
        mask = dist_sq <= radius * radius

        block = grid.risk[lo[0]:hi[0], lo[1]:hi[1], lo[2]:hi[2]]
        block[mask] = np.maximum(block[mask], zone.risk_weight)
