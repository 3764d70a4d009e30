import random

import pygame
import pytest

from systems.ai import PathPlan
from systems.enemy import (
    ARCHETYPE_PROFILES,
    Archetype,
    Enemy,
    EnemyState,
    PursuitContext,
    ambush_goal,
    axis_direction,
    chase_goal,
    patrol_goal,
    random_goal,
)
from systems.movement import MovementController

from conftest import open_rows

Vec2 = pygame.Vector2

SPLIT = [
    "#######",
    "#..#..#",
    "#..#..#",
    "#######",
]


def make_enemy(grid, archetype: Archetype = Archetype.CHASER, position=(30, 30)) -> Enemy:
    return Enemy(Vec2(position), grid, archetype, rng=random.Random(3))


class TestArchetypes:
    def test_weights_sum_to_one(self) -> None:
        assert sum(p.spawn_weight for p in ARCHETYPE_PROFILES.values()) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        ("archetype", "speed", "interval", "points"),
        [
            (Archetype.CHASER, 108.0, 0.3, 200),
            (Archetype.AMBUSHER, 96.0, 0.6, 400),
            (Archetype.PATROL, 84.0, 0.8, 300),
            (Archetype.RANDOM, 78.0, 1.0, 100),
        ],
    )
    def test_profiles(self, open_grid, archetype, speed, interval, points) -> None:
        enemy = make_enemy(open_grid, archetype)
        assert enemy.speed == speed
        assert enemy.replan_interval == interval
        assert enemy.points == points


class TestVulnerability:
    def test_speed_halved_and_restored(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.set_vulnerable(True)
        assert enemy.speed == pytest.approx(54.0)
        assert enemy.state is EnemyState.VULNERABLE
        enemy.set_vulnerable(False)
        assert enemy.speed == pytest.approx(108.0)
        assert enemy.state is EnemyState.CHASING

    def test_repeated_activation_does_not_compound(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.set_vulnerable(True)
        enemy.set_vulnerable(True)
        assert enemy.speed == pytest.approx(54.0)
        enemy.set_vulnerable(False)
        assert enemy.speed == pytest.approx(108.0)

    def test_clearing_when_not_vulnerable_keeps_speed(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.set_vulnerable(False)
        assert enemy.speed == pytest.approx(108.0)

    def test_expires_after_duration(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.set_vulnerable(True, duration=1.0)
        enemy.update_vulnerability(0.6)
        assert enemy.is_vulnerable
        enemy.update_vulnerability(0.5)
        assert not enemy.is_vulnerable
        assert enemy.speed == pytest.approx(108.0)

    def test_toggle_invalidates_plan(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.plan = PathPlan([(1, 1), (2, 1)])
        enemy.replan_timer = 0.5
        enemy.set_vulnerable(True)
        assert enemy.plan.exhausted
        assert enemy.replan_timer == 0


class TestGoals:
    def test_chase_targets_player(self, open_grid) -> None:
        ctx = PursuitContext(Vec2(110, 110), Vec2(1, 0))
        assert chase_goal(make_enemy(open_grid), ctx) == Vec2(110, 110)

    def test_ambush_leads_player(self, open_grid) -> None:
        ctx = PursuitContext(Vec2(50, 50), Vec2(0, 1))
        assert ambush_goal(make_enemy(open_grid), ctx) == Vec2(50, 150)

    def test_vulnerable_enemy_runs_away(self, open_grid) -> None:
        enemy = make_enemy(open_grid, position=(100, 100))
        enemy.set_vulnerable(True)
        assert enemy.select_goal(PursuitContext(Vec2(50, 100))) == Vec2(300, 100)

    def test_patrol_points_are_inner_corners(self, open_grid) -> None:
        enemy = make_enemy(open_grid, Archetype.PATROL)
        assert enemy.patrol_points() == [Vec2(30, 30), Vec2(110, 30), Vec2(110, 110), Vec2(30, 110)]

    def test_patrol_advances_when_reached(self, open_grid) -> None:
        enemy = make_enemy(open_grid, Archetype.PATROL)
        ctx = PursuitContext(Vec2(70, 70))
        assert patrol_goal(enemy, ctx) == Vec2(110, 30)
        assert enemy.patrol_index == 1
        assert patrol_goal(enemy, ctx) == Vec2(110, 30)

    def test_random_goal_lands_on_open_cell(self, make_grid) -> None:
        grid = make_grid(SPLIT)
        enemy = make_enemy(grid, Archetype.RANDOM)
        for _ in range(20):
            assert not grid.is_wall(random_goal(enemy, PursuitContext(Vec2(30, 30))))

    def test_axis_direction_prefers_dominant_axis(self) -> None:
        assert axis_direction(Vec2(5, -2)) == Vec2(1, 0)
        assert axis_direction(Vec2(1, -3)) == Vec2(0, -1)
        assert axis_direction(Vec2(0, 0)) == Vec2()


class TestPlanning:
    def test_replan_runs_from_own_cell_to_goal(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.replan(PursuitContext(Vec2(110, 110)))
        assert enemy.plan.cells[0] == (1, 1)
        assert enemy.plan.goal == (5, 5)
        assert len(enemy.plan.cells) == 9

    def test_replan_holds_plan_when_goal_unreachable(self, make_grid) -> None:
        enemy = make_enemy(make_grid(SPLIT))
        enemy.plan = PathPlan([(1, 1), (2, 1)])
        enemy.replan(PursuitContext(Vec2(90, 30)))
        assert enemy.plan.cells == [(1, 1), (2, 1)]

    def test_arrival_turns_toward_next_waypoint(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.plan = PathPlan([(1, 1), (2, 1), (2, 2)])
        enemy.follow_path(0.05)
        assert enemy.plan.current == (2, 1)
        assert enemy.agent.direction == Vec2(1, 0)

    def test_finished_plan_stops_enemy(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.agent.direction = Vec2(1, 0)
        enemy.plan = PathPlan([(1, 1)])
        enemy.follow_path(0.05)
        assert enemy.agent.direction == Vec2()

    def test_chaser_closes_distance(self, make_grid) -> None:
        grid = make_grid(open_rows(11, 11))
        movement = MovementController(grid)
        enemy = make_enemy(grid)
        player = grid.grid_to_world((9, 9))
        start = enemy.position.distance_to(player)
        ctx = PursuitContext(player)
        for _ in range(60):
            enemy.update(1 / 60, ctx, movement)
            assert movement.can_occupy(enemy.position, enemy.agent.size)
        assert enemy.position.distance_to(player) < start - 40

    def test_reset_clears_state(self, open_grid) -> None:
        enemy = make_enemy(open_grid)
        enemy.set_vulnerable(True)
        enemy.reset((50, 50))
        assert enemy.position == Vec2(50, 50)
        assert not enemy.is_vulnerable
        assert enemy.speed == pytest.approx(108.0)
        assert enemy.plan.exhausted
