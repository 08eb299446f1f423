"""
配置模組
提供全局配置管理、規劃器參數配置等功能
"""

from .settings import (
    GlobalSettings,
    MapSettings,
    SearchSettings,
    SamplingSettings,
    TrajectorySettings,
    CoordinationSettings,
    CacheSettings,
    LoggingSettings,
    get_settings,
    init_settings
)

__all__ = [
    'GlobalSettings',
    'MapSettings',
    'SearchSettings',
    'SamplingSettings',
    'TrajectorySettings',
    'CoordinationSettings',
    'CacheSettings',
    'LoggingSettings',
    'get_settings',
    'init_settings'
]
