"""
全局配置管理模組
提供地圖、搜索、採樣、軌跡、協同、快取與日誌配置
"""

import os
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from ..core.base.constraint_base import MapBounds
from ..core.global_planner.astar import AStarConfig
from ..core.global_planner.rrt import RRTStarConfig
from ..mission.swarm_coordinator import (
    ConflictDetector, ConflictResolver, create_detector, create_resolver
)
from ..utils.file_io import read_config_file, write_config_file
from ..utils.logger import Logger, get_logger, setup_logger


logger = get_logger('SkyBrainPlanner.settings')


@dataclass
class MapSettings:
    """地圖配置（y 軸為高度）"""
    min_x: float = 0.0
    max_x: float = 1000.0
    min_y: float = 0.0
    max_y: float = 150.0
    min_z: float = 0.0
    max_z: float = 1000.0

    # 靜態障礙物佔用格解析度（None 表示不建立佔用格）
    obstacle_resolution: Optional[float] = None

    def to_bounds(self) -> MapBounds:
        """轉換為 MapBounds"""
        return MapBounds(self.min_x, self.max_x, self.min_y,
                         self.max_y, self.min_z, self.max_z)


@dataclass
class SearchSettings:
    """A* 搜索配置"""
    # 預設地圖 1000x150x1000 公尺，5 公尺格約 120 萬格（float32 約 4.8 MB）
    grid_size: float = 5.0
    heuristic_weight: float = 1.2
    risk_weight: float = 0.3
    energy_weight: float = 0.4
    time_weight: float = 0.3
    goal_tolerance: float = 1.0
    max_expansions: int = 500000
    timeout: Optional[float] = None

    def to_config(self) -> AStarConfig:
        return AStarConfig(**asdict(self))


@dataclass
class SamplingSettings:
    """RRT* 採樣配置"""
    max_iterations: int = 5000
    max_step: float = 10.0
    goal_radius: float = 5.0
    gamma: float = 50.0
    max_near_radius: float = 20.0
    goal_bias_start: float = 0.1
    goal_bias_end: float = 0.5
    altitude_weight: float = 2.0
    speed_weight: float = 0.5
    timeout: Optional[float] = None

    # 隨機種子（None 表示不固定）
    seed: Optional[int] = None

    def to_config(self) -> RRTStarConfig:
        values = asdict(self)
        values.pop('seed')
        return RRTStarConfig(**values)


@dataclass
class TrajectorySettings:
    """軌跡與平滑配置"""
    time_step: float = 0.1
    smoothing_factor: float = 0.3


@dataclass
class CoordinationSettings:
    """群飛協同配置"""
    detector: str = 'time_window'        # spatial, time_window
    resolver: str = 'priority_yield'     # priority_yield, velocity_adjust
    max_rounds: int = 10

    # 偵測參數
    safety_distance: float = 5.0
    time_window: float = 2.0
    sample_interval: float = 0.5

    # 消解參數
    time_buffer: float = 2.0
    min_delay_step: float = 0.5
    min_speed_scale: float = 0.2

    def build_detector(self) -> ConflictDetector:
        """依配置建立衝突偵測策略"""
        if self.detector == 'time_window':
            return create_detector(self.detector,
                                   safety_distance=self.safety_distance,
                                   time_window=self.time_window,
                                   sample_interval=self.sample_interval)
        return create_detector(self.detector, safety_distance=self.safety_distance)

    def build_resolver(self) -> ConflictResolver:
        """依配置建立衝突消解策略"""
        if self.resolver == 'velocity_adjust':
            return create_resolver(self.resolver, min_speed_scale=self.min_speed_scale)
        return create_resolver(self.resolver,
                               time_buffer=self.time_buffer,
                               min_delay_step=self.min_delay_step)


@dataclass
class CacheSettings:
    """規劃結果快取配置"""
    enable_rrt_cache: bool = True
    max_entries: int = 128


@dataclass
class LoggingSettings:
    """日誌配置"""
    level: str = 'INFO'
    log_to_console: bool = True
    log_to_file: bool = False
    log_dir: Optional[str] = None

    def apply(self) -> Logger:
        """以此配置重新設定根日誌"""
        return setup_logger(level=self.level,
                            log_dir=self.log_dir,
                            log_to_file=self.log_to_file,
                            log_to_console=self.log_to_console)


_SECTIONS = {
    'map': MapSettings,
    'search': SearchSettings,
    'sampling': SamplingSettings,
    'trajectory': TrajectorySettings,
    'coordination': CoordinationSettings,
    'cache': CacheSettings,
    'logging': LoggingSettings,
}


class GlobalSettings:
    """全局配置管理器"""

    def __init__(self, config_file: Optional[str] = None):
        """
        初始化全局配置

        參數:
            config_file: 配置文件路徑（.json / .yaml / .yml，可選）
        """
        self.reset_to_default()
        self.config_file = config_file

        # 載入配置（如果存在）
        if config_file and os.path.exists(config_file):
            self.load()

    def load(self) -> bool:
        """
        從文件載入配置，失敗時保留目前配置

        返回:
            是否成功載入
        """
        if not self.config_file:
            return False

        config_data = read_config_file(self.config_file)
        if config_data is None:
            return False

        try:
            # 先全部解析成功才替換，避免部分更新
            sections = {
                name: section_class(**config_data[name])
                for name, section_class in _SECTIONS.items()
                if name in config_data
            }
        except TypeError as e:
            logger.error(f"載入配置失敗: {e}")
            return False

        for name, section in sections.items():
            setattr(self, name, section)
        logger.info(f"已載入配置: {self.config_file}")
        return True

    def save(self, config_file: Optional[str] = None) -> bool:
        """
        儲存配置到文件

        參數:
            config_file: 目標路徑（預設為載入時的路徑）

        返回:
            是否成功儲存
        """
        target = config_file or self.config_file
        if not target:
            logger.error("未指定配置文件路徑")
            return False
        return write_config_file(target, self.get_dict())

    def reset_to_default(self):
        """重設為預設配置"""
        self.map = MapSettings()
        self.search = SearchSettings()
        self.sampling = SamplingSettings()
        self.trajectory = TrajectorySettings()
        self.coordination = CoordinationSettings()
        self.cache = CacheSettings()
        self.logging = LoggingSettings()

    def get_dict(self) -> Dict[str, Any]:
        """獲取配置字典"""
        return {name: asdict(getattr(self, name)) for name in _SECTIONS}


# 全局配置實例
_global_settings: Optional[GlobalSettings] = None


def get_settings() -> GlobalSettings:
    """
    獲取全局配置實例（單例模式）

    返回:
        GlobalSettings實例
    """
    global _global_settings
    if _global_settings is None:
        _global_settings = GlobalSettings()
    return _global_settings


def init_settings(config_file: Optional[str] = None) -> GlobalSettings:
    """
    初始化全局配置

    參數:
        config_file: 配置文件路徑（可選）

    返回:
        GlobalSettings實例
    """
    global _global_settings
    _global_settings = GlobalSettings(config_file)
    return _global_settings
