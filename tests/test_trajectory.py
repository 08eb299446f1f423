"""
軌跡合成測試
"""

import numpy as np
import pytest

from skybrain_planner import FlightConstraints, TrajectorySynthesizer, Waypoint

from .conftest import make_path


@pytest.fixture
def synthesizer():
    return TrajectorySynthesizer(time_step=0.1)


@pytest.fixture
def speed_ten():
    return FlightConstraints(max_speed=10.0)


class TestTrajectorySynthesizer:

    def test_single_segment_sampling(self, synthesizer, speed_ten):
        path = make_path((0, 0, 0), (10, 0, 0))

        trajectory = synthesizer.synthesize(path, speed_ten)

        assert len(trajectory) == 11
        assert trajectory[0].timestamp == 0.0
        assert trajectory[-1].timestamp == pytest.approx(1.0)
        np.testing.assert_allclose(trajectory[-1].position, (10, 0, 0))
        for point in trajectory:
            np.testing.assert_allclose(point.velocity, (10, 0, 0))
            np.testing.assert_allclose(point.acceleration, (0, 0, 0))

    def test_junction_not_duplicated(self, synthesizer, speed_ten):
        path = make_path((0, 0, 0), (10, 0, 0), (10, 0, 5))

        trajectory = synthesizer.synthesize(path, speed_ten)

        assert len(trajectory) == 16
        timestamps = [p.timestamp for p in trajectory]
        assert all(b > a for a, b in zip(timestamps, timestamps[1:]))
        assert timestamps[-1] == pytest.approx(1.5)
        np.testing.assert_allclose(trajectory[-1].velocity, (0, 0, 10))

    def test_speed_never_exceeds_limit(self, synthesizer):
        path = make_path((0, 0, 0), (3, 4, 0), (3, 4, 12), (0, 0, 0))
        constraints = FlightConstraints(max_speed=7.5)

        trajectory = synthesizer.synthesize(path, constraints)

        assert all(p.speed <= 7.5 + 1e-9 for p in trajectory)

    def test_zero_length_segment_skipped(self, synthesizer, speed_ten):
        path = make_path((0, 0, 0), (10, 0, 0), (10, 0, 0), (20, 0, 0))

        trajectory = synthesizer.synthesize(path, speed_ten)

        assert len(trajectory) == 21
        timestamps = [p.timestamp for p in trajectory]
        assert all(b > a for a, b in zip(timestamps, timestamps[1:]))

    def test_risk_interpolated(self, synthesizer, speed_ten):
        path = [Waypoint((0, 0, 0), risk_level=0.0), Waypoint((10, 0, 0), risk_level=1.0)]

        trajectory = synthesizer.synthesize(path, speed_ten)

        assert trajectory[5].risk == pytest.approx(0.5)
        assert trajectory[-1].risk == pytest.approx(1.0)

    def test_start_time_offset(self, synthesizer, speed_ten):
        path = make_path((0, 0, 0), (10, 0, 0))

        trajectory = synthesizer.synthesize(path, speed_ten, start_time=3.0)

        assert trajectory[0].timestamp == 3.0
        assert trajectory[-1].timestamp == pytest.approx(4.0)

    def test_degenerate_paths(self, synthesizer, speed_ten):
        assert synthesizer.synthesize([], speed_ten) == []

        single = synthesizer.synthesize([Waypoint((1, 2, 3))], speed_ten)
        assert len(single) == 1
        np.testing.assert_allclose(single[0].velocity, (0, 0, 0))

    def test_invalid_time_step(self):
        with pytest.raises(ValueError):
            TrajectorySynthesizer(time_step=0.0)
