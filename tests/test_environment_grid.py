"""
環境風險網格測試
"""

import numpy as np
import pytest

from skybrain_planner import (
    AvoidanceZone, EnvironmentGridBuilder, MapBounds, MapConfigurationError, ZoneType
)


class TestEnvironmentGridBuilder:

    def test_dimensions_use_ceiling(self, scenario_bounds):
        assert EnvironmentGridBuilder(scenario_bounds, 1.0).build().shape == (20, 8, 200)
        assert EnvironmentGridBuilder(scenario_bounds, 3.0).build().shape == (7, 3, 67)

    def test_empty_grid_is_free(self, scenario_bounds):
        grid = EnvironmentGridBuilder(scenario_bounds).build()
        assert grid.max_risk == 0.0

    def test_no_fly_zone_rasterized(self, scenario_bounds):
        zone = AvoidanceZone((0.0, 3.0, 0.0), 1.5, ZoneType.NO_FLY)
        grid = EnvironmentGridBuilder(scenario_bounds).build([zone])

        assert grid.risk_at((0.0, 3.0, 0.0)) == 1.0
        # ceil(1.5) = 2 格以內
        assert grid.risk_at((2.0, 3.0, 0.0)) == 1.0
        assert grid.risk_at((3.0, 3.0, 0.0)) == 0.0
        assert not grid.is_passable((0.0, 3.0, 0.0))

    @pytest.mark.parametrize("zone_type, weight", [
        (ZoneType.NO_FLY, 1.0),
        (ZoneType.RESTRICTED, 0.7),
        (ZoneType.TEMPORARY, 0.4),
    ])
    def test_zone_weights(self, scenario_bounds, zone_type, weight):
        zone = AvoidanceZone((0.0, 3.0, 50.0), 2.0, zone_type)
        grid = EnvironmentGridBuilder(scenario_bounds).build([zone])
        assert grid.risk_at((0.0, 3.0, 50.0)) == pytest.approx(weight)

    def test_overlap_takes_maximum(self, scenario_bounds):
        temporary = AvoidanceZone((0.0, 3.0, 50.0), 2.0, ZoneType.TEMPORARY)
        restricted = AvoidanceZone((0.0, 3.0, 50.0), 2.0, ZoneType.RESTRICTED)

        for zones in ([temporary, restricted], [restricted, temporary]):
            grid = EnvironmentGridBuilder(scenario_bounds).build(zones)
            assert grid.risk_at((0.0, 3.0, 50.0)) == pytest.approx(0.7)

    def test_zone_outside_map_is_clipped(self, scenario_bounds):
        far = AvoidanceZone((100.0, 100.0, 500.0), 3.0)
        partial = AvoidanceZone((-10.5, 3.0, 0.0), 1.5)
        grid = EnvironmentGridBuilder(scenario_bounds).build([far, partial])

        assert grid.risk_at((-9.5, 3.0, 0.0)) == 1.0
        assert grid.risk_at((5.0, 3.0, 100.0)) == 0.0

    def test_risk_outside_grid_is_zero(self, scenario_bounds):
        grid = EnvironmentGridBuilder(scenario_bounds).build()
        assert grid.risk_at((50.0, 50.0, 50.0)) == 0.0

    def test_degenerate_zone_marks_center_cell_only(self, scenario_bounds):
        zone = AvoidanceZone((0.5, 3.5, 10.5), 0.0, ZoneType.RESTRICTED)
        grid = EnvironmentGridBuilder(scenario_bounds).build([zone])

        assert grid.risk_at((0.5, 3.5, 10.5)) == pytest.approx(0.7)
        assert grid.risk_at((1.5, 3.5, 10.5)) == 0.0

    def test_invalid_configuration_fails_fast(self, scenario_bounds):
        with pytest.raises(MapConfigurationError):
            EnvironmentGridBuilder(scenario_bounds, 0.0)
        with pytest.raises(MapConfigurationError):
            EnvironmentGridBuilder(MapBounds(10.0, -10.0, 0.0, 8.0, 0.0, 200.0))

    def test_point_on_max_face_reads_last_cell(self, scenario_bounds):
        zone = AvoidanceZone((9.5, 3.0, 50.0), 1.0, ZoneType.NO_FLY)
        grid = EnvironmentGridBuilder(scenario_bounds).build([zone])

        assert grid.risk_at((10.0, 3.0, 50.0)) == 1.0
        assert not grid.is_passable((10.0, 3.0, 50.0))
        assert grid.risk_at((10.5, 3.0, 50.0)) == 0.0

    def test_risk_stored_in_single_precision(self, scenario_bounds):
        grid = EnvironmentGridBuilder(scenario_bounds).build()
        assert grid.risk.dtype == np.float32
        assert grid.risk.nbytes == 20 * 8 * 200 * 4
