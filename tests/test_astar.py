"""
風險加權 A* 規劃器測試
"""

import pytest

from skybrain_planner import (
    AStarConfig, AvoidanceZone, ConstraintError, FlightConstraints, MapBounds,
    MapConfigurationError, PlannerFactory, PlannerStatus, PlannerType,
    RiskAwareAStarPlanner, Waypoint, WaypointType, ZoneType
)
from skybrain_planner.mission.waypoint import path_length


@pytest.fixture
def planner(scenario_bounds):
    return RiskAwareAStarPlanner(scenario_bounds)


@pytest.fixture
def low_ceiling():
    return FlightConstraints(min_altitude=0.0, max_altitude=8.0)


class TestRiskAwareAStar:

    def test_open_space_path(self, planner, start, goal, low_ceiling):
        path = planner.plan(start, goal, low_ceiling)
        straight = start.distance_to(goal)

        assert path[0] is start
        assert path[-1] is goal
        assert straight <= path_length(path) <= straight + 2.0
        assert all((wp.risk_level or 0.0) == 0.0 for wp in path)

    def test_routes_around_no_fly_zone(self, planner, start, goal, low_ceiling):
        zone = AvoidanceZone((2.5, 3.0, 1.0), 1.5, ZoneType.NO_FLY)
        constraints = low_ceiling.with_zones([zone])
        grid = planner.build_grid(constraints)

        path, status = planner.solve(start, goal, (), grid, constraints)

        assert status == PlannerStatus.SUCCESS
        assert path[0] is start and path[-1] is goal
        assert path_length(path) > start.distance_to(goal)
        for wp in path[1:-1]:
            assert grid.risk_at(wp.position) < 1.0

    def test_altitude_limits_respected(self, planner, start, goal):
        zone = AvoidanceZone((2.5, 3.0, 1.0), 1.5, ZoneType.NO_FLY)
        constraints = FlightConstraints(min_altitude=2.0, max_altitude=4.0,
                                        avoidance_zones=(zone,))

        path = planner.plan(start, goal, constraints)

        assert all(2.0 <= wp.altitude <= 4.0 for wp in path)

    def test_restricted_zone_is_passable(self, planner, start, goal, low_ceiling):
        zone = AvoidanceZone(goal.position, 3.0, ZoneType.RESTRICTED)
        constraints = low_ceiling.with_zones([zone])
        grid = planner.build_grid(constraints)

        path, status = planner.solve(start, goal, (), grid, constraints)

        assert status == PlannerStatus.SUCCESS
        assert path[-1] is goal
        # 終點前一格位於限制區內，記錄格風險
        assert path[-2].risk_level == pytest.approx(0.7)

    def test_checkpoint_visited_once(self, planner, start, goal, low_ceiling):
        checkpoint = Waypoint((2.0, 3.0, 4.0), WaypointType.CHECKPOINT)

        path = planner.plan(start, goal, low_ceiling, checkpoints=[checkpoint])

        assert sum(1 for wp in path if wp is checkpoint) == 1
        assert path[0] is start and path[-1] is goal
        # 相鄰航點不可重複
        assert all(a.position != b.position for a, b in zip(path, path[1:]))

    def test_unreachable_goal_falls_back_to_straight_line(self):
        bounds = MapBounds.from_size(10.0, 10.0, 10.0)
        planner = RiskAwareAStarPlanner(bounds)
        start = Waypoint((1.0, 5.0, 1.0), WaypointType.START)
        goal = Waypoint((8.0, 5.0, 8.0), WaypointType.END)
        constraints = FlightConstraints(avoidance_zones=(
            AvoidanceZone((8.0, 5.0, 8.0), 3.0),
        ))
        grid = planner.build_grid(constraints)

        path, status = planner.solve(start, goal, (), grid, constraints)

        assert path == [start, goal]
        assert status == PlannerStatus.FALLBACK

    def test_expansion_cap_falls_back(self, scenario_bounds, start, goal, low_ceiling):
        planner = RiskAwareAStarPlanner(scenario_bounds, AStarConfig(max_expansions=1))
        grid = planner.build_grid(low_ceiling)

        path, status = planner.solve(start, goal, (), grid, low_ceiling)

        assert path == [start, goal]
        assert status == PlannerStatus.FALLBACK

    def test_coarse_grid_reaches_off_lattice_goal(self, constraints):
        planner = RiskAwareAStarPlanner(MapBounds.from_size(20.0, 20.0, 20.0),
                                        AStarConfig(grid_size=2.0))
        zone = AvoidanceZone((6.5, 5.5, 6.5), 2.0, ZoneType.NO_FLY)
        constraints = constraints.with_zones([zone])
        grid = planner.build_grid(constraints)
        start = Waypoint((1.0, 5.0, 1.0), WaypointType.START)
        goal = Waypoint((12.0, 6.0, 12.0), WaypointType.END)

        path, status = planner.solve(start, goal, (), grid, constraints)

        assert status == PlannerStatus.SUCCESS
        assert path[-1] is goal
        assert len(path) > 2
        assert all(grid.is_passable(wp.position) for wp in path)

    def test_goal_tolerance_covers_half_cell_diagonal(self):
        assert AStarConfig().effective_goal_tolerance == 1.0
        assert AStarConfig(grid_size=2.0).effective_goal_tolerance == pytest.approx(3 ** 0.5)
        assert AStarConfig(grid_size=2.0, goal_tolerance=4.0).effective_goal_tolerance == 4.0

    def test_alternatives_do_not_mutate_config(self, planner, start, goal, low_ceiling):
        grid = planner.build_grid(low_ceiling)

        alternatives = planner.generate_alternatives(start, goal, (), grid, low_ceiling)

        assert len(alternatives) == 3
        assert all(p[0] is start and p[-1] is goal for p in alternatives)
        assert planner.config == AStarConfig()

    def test_registered_with_factory(self, scenario_bounds):
        planner = PlannerFactory.create(PlannerType.ASTAR, scenario_bounds)
        assert isinstance(planner, RiskAwareAStarPlanner)
        assert PlannerType.ASTAR in PlannerFactory.get_available_types()


class TestAStarValidation:

    def test_inverted_altitude_limits(self, planner, start, goal):
        with pytest.raises(ConstraintError):
            planner.plan(start, goal, FlightConstraints(min_altitude=10.0, max_altitude=5.0))

    def test_non_positive_grid_size(self, scenario_bounds):
        with pytest.raises(MapConfigurationError):
            RiskAwareAStarPlanner(scenario_bounds, AStarConfig(grid_size=0.0))

    @pytest.mark.parametrize("kwargs", [
        {'heuristic_weight': 0.5},
        {'goal_tolerance': -1.0},
        {'max_expansions': 0},
    ])
    def test_invalid_config(self, scenario_bounds, kwargs):
        with pytest.raises(ValueError):
            RiskAwareAStarPlanner(scenario_bounds, AStarConfig(**kwargs))

    def test_errors_share_planning_base(self):
        assert issubclass(ConstraintError, ValueError)
        assert issubclass(MapConfigurationError, ValueError)
