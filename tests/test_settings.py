"""
全局配置測試
"""

import pytest

from skybrain_planner import AStarConfig, MapBounds, RRTStarConfig
from skybrain_planner.config import (
    CoordinationSettings, GlobalSettings, get_settings, init_settings
)
from skybrain_planner.mission.swarm_coordinator import (
    PriorityYieldResolver, SpatialProximityDetector, TimeWindowDetector,
    VelocityAdjustResolver
)
from skybrain_planner.utils.file_io import write_json


class TestGlobalSettings:

    def test_defaults_match_planner_configs(self):
        settings = GlobalSettings()

        assert settings.search.to_config() == AStarConfig(grid_size=5.0)
        assert settings.sampling.to_config() == RRTStarConfig()
        assert settings.map.to_bounds() == MapBounds(0.0, 1000.0, 0.0, 150.0, 0.0, 1000.0)
        assert settings.map.obstacle_resolution is None

    @pytest.mark.parametrize("filename", ["planner.yaml", "planner.yml", "planner.json"])
    def test_save_and_load(self, tmp_path, filename):
        path = str(tmp_path / filename)
        settings = GlobalSettings()
        settings.search.risk_weight = 0.6
        settings.sampling.seed = 42
        settings.coordination.resolver = 'velocity_adjust'
        assert settings.save(path)

        loaded = GlobalSettings(path)

        assert loaded.search.risk_weight == 0.6
        assert loaded.sampling.seed == 42
        assert loaded.coordination.resolver == 'velocity_adjust'
        assert loaded.get_dict() == settings.get_dict()

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        path = str(tmp_path / "partial.json")
        write_json(path, {'map': {'max_y': 60.0}})

        settings = GlobalSettings(path)

        assert settings.map.max_y == 60.0
        assert settings.map.max_x == 1000.0
        assert settings.search.grid_size == 5.0

    def test_unknown_key_rejected_without_partial_update(self, tmp_path):
        path = str(tmp_path / "broken.json")
        write_json(path, {'map': {'max_y': 60.0}, 'search': {'warp_factor': 9}})

        settings = GlobalSettings()
        settings.config_file = path

        assert not settings.load()
        assert settings.map.max_y == 150.0

    def test_missing_file_keeps_defaults(self, tmp_path):
        settings = GlobalSettings(str(tmp_path / "absent.yaml"))
        assert settings.get_dict() == GlobalSettings().get_dict()

    def test_save_requires_path(self):
        assert not GlobalSettings().save()

    def test_reset_to_default(self):
        settings = GlobalSettings()
        settings.cache.max_entries = 4
        settings.reset_to_default()
        assert settings.cache.max_entries == 128

    def test_singleton(self, tmp_path):
        path = str(tmp_path / "singleton.yaml")
        settings = init_settings(path)
        assert get_settings() is settings
        assert settings.config_file == path


class TestCoordinationSettings:

    def test_default_strategies(self):
        settings = CoordinationSettings(time_window=3.0)

        detector = settings.build_detector()
        resolver = settings.build_resolver()

        assert isinstance(detector, TimeWindowDetector)
        assert detector.time_window == 3.0
        assert isinstance(resolver, PriorityYieldResolver)

    def test_alternative_strategies(self):
        settings = CoordinationSettings(detector='spatial', resolver='velocity_adjust',
                                        safety_distance=8.0, min_speed_scale=0.4)

        assert isinstance(settings.build_detector(), SpatialProximityDetector)
        assert settings.build_detector().safety_distance == 8.0
        resolver = settings.build_resolver()
        assert isinstance(resolver, VelocityAdjustResolver)
        assert resolver.min_speed_scale == 0.4

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            CoordinationSettings(detector='radar').build_detector()
