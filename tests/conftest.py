"""
共用測試夾具
"""

import pytest

from skybrain_planner import (
    FlightConstraints, MapBounds, Waypoint, WaypointType
)


@pytest.fixture
def scenario_bounds():
    """X/Y/Z = [-10, 10] x [0, 8] x [0, 200]"""
    return MapBounds(-10.0, 10.0, 0.0, 8.0, 0.0, 200.0)


@pytest.fixture
def open_bounds():
    """RRT* / 重規劃使用的開放空間"""
    return MapBounds(0.0, 100.0, 0.0, 50.0, 0.0, 100.0)


@pytest.fixture
def constraints():
    return FlightConstraints(min_altitude=0.0, max_altitude=50.0, max_speed=15.0)


@pytest.fixture
def start():
    return Waypoint((0.0, 3.0, 0.0), WaypointType.START, waypoint_id='start')


@pytest.fixture
def goal():
    return Waypoint((5.0, 3.0, 2.0), WaypointType.END, waypoint_id='goal')


def make_path(*positions):
    """以座標建立航點路徑，首尾標記為起點與終點"""
    path = [Waypoint(p) for p in positions]
    path[0] = Waypoint(positions[0], WaypointType.START)
    path[-1] = Waypoint(positions[-1], WaypointType.END)
    return path
