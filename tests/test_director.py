import logging
import random

import pygame
import pytest

from systems.director import AIDirector
from systems.enemy import Archetype
from systems.movement import MovementController

from conftest import open_rows

Vec2 = pygame.Vector2


class FixedRoll(random.Random):
    """Random whose ``random()`` always returns the same roll."""

    def __init__(self, roll: float):
        super().__init__(0)
        self.roll = roll

    def random(self) -> float:
        return self.roll


@pytest.fixture
def arena(make_grid):
    return make_grid(open_rows(21, 15))


@pytest.fixture
def director(arena) -> AIDirector:
    return AIDirector(arena, MovementController(arena), rng=random.Random(1), player_start=(1, 1))


class TestSpawnRoster:
    def test_spawn_cells_avoid_player_start(self, director, arena) -> None:
        cells = director.roster.cells
        assert len(cells) == 7
        assert (1, 1) not in cells
        for x, y in cells:
            assert not arena.is_wall_cell((x, y))
            assert abs(x - 1) + abs(y - 1) >= 6

    def test_round_robin_spawning(self, director) -> None:
        first = director.get(director.spawn_enemy(Archetype.CHASER))
        second = director.get(director.spawn_enemy(Archetype.CHASER))
        cells = director.roster.cells
        assert director.grid.world_to_grid(first.position) == cells[0]
        assert director.grid.world_to_grid(second.position) == cells[1]
        assert director.roster.spawned == 2

    def test_fallback_ring_when_edges_are_excluded(self, make_grid) -> None:
        grid = make_grid(["#####", "#...#", "#####"])
        director = AIDirector(grid, MovementController(grid), rng=random.Random(0), player_start=(1, 1))
        assert set(director.roster.cells) == {(3, 1), (1, 1)}

    def test_no_spawn_cells_logs_warning(self, make_grid, caplog) -> None:
        grid = make_grid(["#####", "#####", "##.##", "#####", "#####"])
        director = AIDirector(grid, MovementController(grid), rng=random.Random(0))
        with caplog.at_level(logging.WARNING, logger="systems.director"):
            assert director.spawn_enemy() is None
        assert "No valid spawn positions" in caplog.text
        assert len(director) == 0


class TestArena:
    def test_handles_survive_removal(self, director) -> None:
        handles = [director.spawn_enemy(Archetype.CHASER) for _ in range(3)]
        assert handles == [0, 1, 2]
        survivor = director.get(2)
        assert director.remove_enemy(1)
        assert director.get(1) is None
        assert director.get(2) is survivor
        assert len(director) == 2
        assert director.spawn_enemy(Archetype.PATROL) == 1

    def test_removing_twice_is_noop(self, director) -> None:
        handle = director.spawn_enemy()
        assert director.remove_enemy(handle)
        assert not director.remove_enemy(handle)
        assert not director.remove_enemy(99)

    def test_iteration_in_slot_order(self, director) -> None:
        for archetype in (Archetype.CHASER, Archetype.PATROL, Archetype.RANDOM):
            director.spawn_enemy(archetype)
        director.remove_enemy(0)
        assert [handle for handle, _ in director.enemies()] == [1, 2]


class TestArchetypeSelection:
    @pytest.mark.parametrize(
        ("roll", "expected"),
        [
            (0.0, Archetype.CHASER),
            (0.29, Archetype.CHASER),
            (0.31, Archetype.AMBUSHER),
            (0.56, Archetype.PATROL),
            (0.99, Archetype.RANDOM),
        ],
    )
    def test_cumulative_weights(self, arena, roll, expected) -> None:
        director = AIDirector(arena, MovementController(arena), rng=FixedRoll(roll))
        assert director.select_archetype() is expected

    def test_distribution_follows_weights(self, director) -> None:
        draws = 4000
        counts = {archetype: 0 for archetype in Archetype}
        for _ in range(draws):
            counts[director.select_archetype()] += 1
        for archetype, count in counts.items():
            assert count / draws == pytest.approx(archetype.profile.spawn_weight, abs=0.04)


class TestDifficulty:
    @pytest.mark.parametrize(
        ("level", "max_enemies", "spawn_delay"),
        [(1, 4, 2.0), (3, 5, 1.8), (6, 6, 1.5), (30, 6, 1.0)],
    )
    def test_level_scaling(self, director, level, max_enemies, spawn_delay) -> None:
        director.set_difficulty_level(level)
        assert director.max_enemies == max_enemies
        assert director.spawn_delay == pytest.approx(spawn_delay)

    def test_enemy_scaling(self, director) -> None:
        director.set_difficulty_level(5)
        chaser = director.get(director.spawn_enemy(Archetype.CHASER))
        wanderer = director.get(director.spawn_enemy(Archetype.RANDOM))
        assert chaser.speed == pytest.approx(132.0)
        assert chaser.replan_interval == pytest.approx(0.2)
        assert wanderer.replan_interval == pytest.approx(0.9)

    def test_early_levels_keep_replan_interval(self, director) -> None:
        director.set_difficulty_level(3)
        enemy = director.get(director.spawn_enemy(Archetype.PATROL))
        assert enemy.replan_interval == pytest.approx(0.8)
        assert enemy.speed == pytest.approx(96.0)


class TestSpawnTimer:
    def test_waits_for_delay(self, director) -> None:
        assert director.spawn_if_due() is None
        director.advance_timers(2.0)
        assert director.spawn_if_due() == 0
        assert director.spawn_timer == pytest.approx(director.spawn_delay)

    def test_population_cap(self, director) -> None:
        director.max_enemies = 2
        for _ in range(5):
            director.spawn_timer = 0
            director.spawn_if_due()
        assert len(director) == 2

    def test_inactive_director_does_not_spawn(self, director) -> None:
        director.set_active(False)
        director.spawn_timer = 0
        assert director.spawn_if_due() is None


class TestVulnerabilityBroadcast:
    def test_all_enemies_toggle(self, director) -> None:
        for archetype in Archetype:
            director.spawn_enemy(archetype)
        assert director.set_all_vulnerable(True, 10.0) == 4
        assert director.vulnerable_count() == 4
        assert director.vulnerability_remaining == 10.0

        director.set_all_vulnerable(True, 10.0)
        for _, enemy in director.enemies():
            assert enemy.speed == pytest.approx(enemy.archetype.profile.speed / 2)

        assert director.set_all_vulnerable(False) == 4
        for _, enemy in director.enemies():
            assert enemy.speed == pytest.approx(enemy.archetype.profile.speed)
        assert not director.has_vulnerable_enemies()

    def test_countdown(self, director) -> None:
        director.set_all_vulnerable(True, 1.0)
        director.advance_timers(0.4)
        assert director.vulnerability_remaining == pytest.approx(0.6)
        director.advance_timers(1.0)
        assert director.vulnerability_remaining == 0.0


class TestPlayerCollisions:
    def test_vulnerable_enemy_is_eaten(self, director) -> None:
        enemy = director.get(director.spawn_enemy(Archetype.AMBUSHER))
        enemy.set_vulnerable(True)
        report = director.resolve_player_collisions(Vec2(enemy.position), 8)
        assert not report.player_hit
        assert [e.points for e in report.eaten] == [400]
        assert report.points == 400
        assert len(director) == 0

    def test_chasing_enemy_hits_player(self, director) -> None:
        enemy = director.get(director.spawn_enemy(Archetype.CHASER))
        report = director.resolve_player_collisions(Vec2(enemy.position), 8)
        assert report.player_hit
        assert report.eaten == []
        assert len(director) == 1

    def test_invulnerable_player_ignores_hits(self, director) -> None:
        enemy = director.get(director.spawn_enemy(Archetype.CHASER))
        report = director.resolve_player_collisions(Vec2(enemy.position), 8, ignore_hits=True)
        assert not report.player_hit

    def test_distant_enemy_does_not_collide(self, director) -> None:
        enemy = director.get(director.spawn_enemy(Archetype.CHASER))
        assert director.check_player_collisions(enemy.position + Vec2(16, 0), 8) == []
        assert len(director.check_player_collisions(enemy.position + Vec2(15, 0), 8)) == 1


class TestHousekeeping:
    def test_out_of_bounds_enemy_pruned(self, director) -> None:
        enemy = director.get(director.spawn_enemy())
        director.spawn_enemy()
        enemy.position = (-500, -500)
        assert director.prune() == 1
        assert len(director) == 1

    def test_stats(self, director) -> None:
        director.spawn_enemy(Archetype.CHASER)
        director.spawn_enemy(Archetype.CHASER)
        director.get(director.spawn_enemy(Archetype.PATROL)).set_vulnerable(True)
        stats = director.stats()
        assert stats["total"] == 3
        assert stats["vulnerable"] == 1
        assert stats["chasing"] == 2
        assert stats["by_type"] == {"chaser": 2, "patrol": 1}

    def test_player_heading_tracked(self, director) -> None:
        director.update_player_tracking((30, 30))
        director.update_player_tracking((35, 30))
        assert director.player_direction == Vec2(1, 0)
        # Standing still or jumping through a tunnel keeps the last heading
        director.update_player_tracking((35, 30))
        director.update_player_tracking((400, 30))
        assert director.player_direction == Vec2(1, 0)

    def test_reset_empties_roster(self, director) -> None:
        director.spawn_enemy()
        director.set_all_vulnerable(True)
        director.reset()
        assert len(director) == 0
        assert director.vulnerability_remaining == 0.0
        assert director.roster.spawned == 0
