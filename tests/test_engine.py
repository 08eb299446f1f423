"""
路徑規劃引擎整合測試
"""

import pytest

from skybrain_planner import (
    AStarConfig, AvoidanceZone, ConstraintError, FlightConstraints, MapBounds,
    MapConfigurationError, OptimizationFlags, PathPlanningEngine, PlannerStatus,
    PlannerType, RRTStarConfig, SwarmAgent, Waypoint, WaypointType, ZoneType
)
from skybrain_planner.config import GlobalSettings, MapSettings
from skybrain_planner.mission.swarm_coordinator import SpatialProximityDetector
from skybrain_planner.mission.waypoint import path_length

from .conftest import make_path


@pytest.fixture
def low_ceiling():
    return FlightConstraints(min_altitude=0.0, max_altitude=8.0)


class TestOptimalPath:

    def test_scenario_result(self, scenario_bounds, start, goal, low_ceiling):
        engine = PathPlanningEngine(scenario_bounds)

        result = engine.plan_optimal_path(start, goal, low_ceiling)

        assert result.status == PlannerStatus.SUCCESS
        assert result.is_success
        assert result.path[0] is start
        assert result.path[-1] is goal
        assert len(result.alternative_paths) == 3
        assert result.optimization_metrics == OptimizationFlags.all_set()
        assert result.total_distance == pytest.approx(path_length(result.path))
        assert result.estimated_time == pytest.approx(result.total_distance / (0.7 * 15.0))
        assert result.risk_score == 0.0
        assert result.planning_time >= 0.0
        assert engine.astar.config == AStarConfig()

    def test_checkpoints_in_every_path(self, scenario_bounds, start, goal, low_ceiling):
        checkpoint = Waypoint((2.0, 3.0, 4.0), WaypointType.CHECKPOINT)
        engine = PathPlanningEngine(scenario_bounds)

        result = engine.plan_optimal_path(start, goal, low_ceiling, checkpoints=[checkpoint])

        for alternative in result.alternative_paths:
            assert sum(1 for wp in alternative if wp is checkpoint) == 1

    def test_registered_zone_applied(self, scenario_bounds, start, goal, low_ceiling):
        engine = PathPlanningEngine(scenario_bounds)
        zone = AvoidanceZone((2.5, 3.0, 1.0), 1.5, ZoneType.NO_FLY)
        engine.add_avoidance_zone(zone)

        result = engine.plan_optimal_path(start, goal, low_ceiling)

        grid = engine.astar.build_grid(low_ceiling.with_zones([zone]))
        assert all(grid.risk_at(wp.position) < 1.0 for wp in result.path)
        for alternative in result.alternative_paths:
            assert all(grid.is_passable(wp.position) for wp in alternative)

    def test_unreachable_goal_reports_fallback(self):
        engine = PathPlanningEngine(MapBounds.from_size(10.0, 10.0, 10.0))
        engine.add_avoidance_zone(AvoidanceZone((8.0, 5.0, 8.0), 3.0))
        start = Waypoint((1.0, 5.0, 1.0), WaypointType.START)
        goal = Waypoint((8.0, 5.0, 8.0), WaypointType.END)

        result = engine.plan_optimal_path(start, goal, FlightConstraints())

        assert result.status == PlannerStatus.FALLBACK
        assert list(result.path) == [start, goal]

    def test_invalid_constraints_fail_fast(self, scenario_bounds, start, goal):
        engine = PathPlanningEngine(scenario_bounds)
        with pytest.raises(ConstraintError):
            engine.plan_optimal_path(start, goal,
                                     FlightConstraints(min_altitude=9.0, max_altitude=1.0))

    def test_invalid_bounds_fail_fast(self):
        with pytest.raises(MapConfigurationError):
            PathPlanningEngine(MapBounds(0.0, 0.0, 0.0, 10.0, 0.0, 10.0))


class TestRRTCache:

    @pytest.fixture
    def engine(self, open_bounds):
        return PathPlanningEngine(open_bounds, seed=1, max_cache_entries=2)

    @pytest.fixture
    def calls(self, engine, monkeypatch):
        calls = []

        def fake_plan(start, goal, constraints, max_iterations=None, rng=None):
            calls.append((start.position, goal.position))
            return [start, goal]

        monkeypatch.setattr(engine.rrt, 'plan', fake_plan)
        return calls

    @pytest.fixture
    def endpoints(self):
        return (Waypoint((10.0, 10.0, 10.0), WaypointType.START),
                Waypoint((90.0, 10.0, 90.0), WaypointType.END))

    def test_repeat_request_hits_cache(self, engine, calls, endpoints, constraints):
        first = engine.plan_path_rrt_star(*endpoints, constraints)
        second = engine.plan_path_rrt_star(*endpoints, constraints)

        assert len(calls) == 1
        assert first == second
        assert first is not second
        assert engine.cache_size == 1

    def test_iteration_budget_is_part_of_key(self, engine, calls, endpoints, constraints):
        engine.plan_path_rrt_star(*endpoints, constraints)
        engine.plan_path_rrt_star(*endpoints, constraints, max_iterations=100)
        assert len(calls) == 2

    def test_changed_constraints_invalidate(self, engine, calls, endpoints, constraints):
        engine.plan_path_rrt_star(*endpoints, constraints)
        engine.plan_path_rrt_star(*endpoints, FlightConstraints(max_speed=12.0))
        assert len(calls) == 2
        assert engine.cache_size == 1

    def test_zone_registry_change_invalidates(self, engine, calls, endpoints, constraints):
        engine.plan_path_rrt_star(*endpoints, constraints)
        zone_id = engine.add_avoidance_zone(AvoidanceZone((50.0, 40.0, 50.0), 2.0))
        engine.plan_path_rrt_star(*endpoints, constraints)
        engine.remove_avoidance_zone(zone_id)
        engine.plan_path_rrt_star(*endpoints, constraints)
        assert len(calls) == 3

    def test_explicit_invalidation(self, engine, calls, endpoints, constraints):
        engine.plan_path_rrt_star(*endpoints, constraints)
        engine.invalidate_cache()
        assert engine.cache_size == 0
        engine.plan_path_rrt_star(*endpoints, constraints)
        assert len(calls) == 2

    def test_least_recently_used_evicted(self, engine, calls, constraints):
        start = Waypoint((10.0, 10.0, 10.0), WaypointType.START)
        goals = [Waypoint((x, 10.0, 90.0), WaypointType.END) for x in (30.0, 60.0, 90.0)]

        for goal in goals:
            engine.plan_path_rrt_star(start, goal, constraints)
        assert engine.cache_size == 2

        engine.plan_path_rrt_star(start, goals[0], constraints)
        assert len(calls) == 4

    def test_empty_result_not_cached(self, engine, monkeypatch, endpoints, constraints):
        calls = []
        monkeypatch.setattr(engine.rrt, 'plan',
                            lambda *args, **kwargs: calls.append(1) or [])

        assert engine.plan_path_rrt_star(*endpoints, constraints) == []
        assert engine.plan_path_rrt_star(*endpoints, constraints) == []
        assert len(calls) == 2
        assert engine.cache_size == 0

    def test_new_obstacles_in_adjustment_clear_cache(self, engine, calls, endpoints,
                                                     constraints):
        engine.plan_path_rrt_star(*endpoints, constraints)
        path = make_path((0.0, 10.0, 50.0), (90.0, 10.0, 50.0))

        engine.adjust_path_dynamically(path, path[0],
                                       [AvoidanceZone((50.0, 40.0, 90.0), 2.0)],
                                       constraints)

        assert engine.cache_size == 0

    def test_cache_disabled(self, open_bounds, monkeypatch, endpoints, constraints):
        engine = PathPlanningEngine(open_bounds, enable_cache=False)
        calls = []
        monkeypatch.setattr(engine.rrt, 'plan',
                            lambda start, goal, *args, **kwargs: calls.append(1) or [start, goal])

        engine.plan_path_rrt_star(*endpoints, constraints)
        engine.plan_path_rrt_star(*endpoints, constraints)

        assert len(calls) == 2
        assert engine.cache_size == 0


class TestEngineOperations:

    @pytest.fixture
    def engine(self, open_bounds):
        return PathPlanningEngine(open_bounds, rrt_config=RRTStarConfig(max_iterations=1500),
                                  seed=21)

    def test_rrt_star_path(self, engine, constraints):
        start = Waypoint((10.0, 10.0, 10.0), WaypointType.START)
        goal = Waypoint((90.0, 20.0, 90.0), WaypointType.END)

        path = engine.plan_path_rrt_star(start, goal, constraints)

        assert path[0] is start and path[-1] is goal

    def test_optimize_trajectory(self, engine):
        path = make_path((0.0, 10.0, 0.0), (10.0, 10.0, 0.0))

        trajectory = engine.optimize_trajectory(path, FlightConstraints(max_speed=10.0))

        assert len(trajectory) == 11

    @pytest.mark.parametrize("method", [PlannerType.RRT_STAR, PlannerType.ASTAR])
    def test_adjust_path_dynamically(self, engine, constraints, method):
        path = make_path(*[(float(x), 10.0, 50.0) for x in range(0, 100, 10)])
        zone = AvoidanceZone((55.0, 10.0, 50.0), 3.0)

        adjusted = engine.adjust_path_dynamically(path, path[1], [zone],
                                                  constraints, method=method)

        assert adjusted[:6] == path[:6]
        assert adjusted[-1] is path[-1]

    def test_cooperative_paths_from_dicts(self, engine, constraints):
        agents = [
            {'id': 'alpha',
             'start': Waypoint((10.0, 10.0, 50.0), WaypointType.START),
             'goal': Waypoint((90.0, 10.0, 50.0), WaypointType.END)},
            SwarmAgent('beta',
                       Waypoint((50.0, 10.0, 10.0), WaypointType.START),
                       Waypoint((50.0, 10.0, 90.0), WaypointType.END),
                       priority=1),
        ]

        result = engine.plan_cooperative_paths(agents, constraints)

        assert set(result.paths) == {'alpha', 'beta'}
        assert result.paths['alpha'][-1].position == (90.0, 10.0, 50.0)
        assert set(result.trajectories) == {'alpha', 'beta'}
        assert result.schedules['beta'].departure_delay == 0.0

    def test_static_obstacle_requires_map(self, engine):
        with pytest.raises(ValueError):
            engine.add_static_obstacle((0, 0, 0), (1, 1, 1))


class TestFromSettings:

    def test_builds_components_from_settings(self):
        settings = GlobalSettings()
        settings.map = MapSettings(max_x=100.0, max_y=50.0, max_z=100.0,
                                   obstacle_resolution=5.0)
        settings.sampling.seed = 3
        settings.sampling.max_iterations = 800
        settings.coordination.detector = 'spatial'
        settings.cache.max_entries = 4

        engine = PathPlanningEngine.from_settings(settings)

        assert engine.bounds == MapBounds(0.0, 100.0, 0.0, 50.0, 0.0, 100.0)
        assert engine.rrt.seed == 3
        assert engine.rrt.config.max_iterations == 800
        assert engine.max_cache_entries == 4
        assert isinstance(engine.coordinator.detector, SpatialProximityDetector)
        assert engine.collision_checker.obstacle_map is engine.obstacle_manager.obstacle_map

    def test_static_obstacle_blocks_segments(self):
        settings = GlobalSettings()
        settings.map = MapSettings(max_x=100.0, max_y=50.0, max_z=100.0,
                                   obstacle_resolution=5.0)
        engine = PathPlanningEngine.from_settings(settings)

        engine.add_static_obstacle((40.0, 0.0, 40.0), (60.0, 50.0, 60.0))

        assert not engine.collision_checker.is_segment_valid(
            (10.0, 10.0, 50.0), (90.0, 10.0, 50.0), FlightConstraints())
        assert engine.obstacle_manager.version == 1

    def test_default_settings_build_compact_grid(self):
        engine = PathPlanningEngine.from_settings(GlobalSettings())
        start = Waypoint((0.0, 10.0, 0.0), WaypointType.START)
        goal = Waypoint((100.0, 10.0, 100.0), WaypointType.END)

        grid = engine.astar.build_grid(FlightConstraints())
        result = engine.plan_optimal_path(start, goal, FlightConstraints())

        assert grid.shape == (200, 30, 200)
        assert grid.risk.nbytes < 10 * 1024 * 1024
        assert result.status == PlannerStatus.SUCCESS
        assert result.path[-1] is goal
