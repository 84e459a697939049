"""
Tests for the steady-state optimizer loop.
"""

import unittest
import numpy as np

from groupify.exceptions import InvalidArgumentError
from groupify.fitness import evaluate
from groupify.mock_data import generate_mock_participants
from groupify.participant import Criterion, Participant
from groupify_ga.optimizer import initialize_population, optimize_grouping, optimize_groups


def six_participants():
    def make(pid, score, prefs=()):
        return Participant(id=pid, criteria=(Criterion("0-100", score),), preference_ids=tuple(prefs))

    return [
        make(1, 80, [2]),
        make(2, 20, [1]),
        make(3, 60, [4]),
        make(4, 40, [3]),
        make(5, 90),
        make(6, 10),
    ]


class TestInitializePopulation(unittest.TestCase):
    """Test initial population construction."""

    def test_population_is_scored(self):
        participants = generate_mock_participants(20, 3, np.random.default_rng(1))
        population = initialize_population(participants, 4, 6, np.random.default_rng(2))

        self.assertEqual(len(population), 6)
        for solution, fitness in zip(population.solutions, population.fitness_scores):
            solution.validate(participants)
            self.assertAlmostEqual(fitness, evaluate(solution))


class TestOptimizeGrouping(unittest.TestCase):
    """Test the optimizer entry points."""

    def setUp(self):
        self.participants = generate_mock_participants(24, 3, np.random.default_rng(42))

    def test_result_is_valid_partition(self):
        result = optimize_grouping(self.participants, 4, {'generations': 40, 'random_seed': 3})

        result.solution.validate(self.participants)
        self.assertAlmostEqual(result.fitness, evaluate(result.solution))
        self.assertEqual(result.generations_run, 40)
        self.assertEqual(len(result.history), 40)
        self.assertFalse(result.stopped_early)
        self.assertEqual(result.seed, 3)

    def test_population_never_gets_worse(self):
        result = optimize_grouping(self.participants, 4, {'generations': 60, 'random_seed': 5})

        worst = [record.worst_fitness for record in result.history]
        best = [record.best_fitness for record in result.history]
        for earlier, later in zip(worst, worst[1:]):
            self.assertGreaterEqual(later, earlier)
        for earlier, later in zip(best, best[1:]):
            self.assertGreaterEqual(later, earlier)
        self.assertGreaterEqual(result.fitness, result.initial_best_fitness)
        self.assertEqual(result.fitness, best[-1])

    def test_replacements_recorded(self):
        result = optimize_grouping(self.participants, 4, {'generations': 30, 'random_seed': 9})
        for record in result.history:
            if record.accepted:
                self.assertEqual(record.worst_fitness, min(record.worst_fitness, record.child_fitness))
            self.assertIn(record.parent_indices[0], range(result.population_size))
        self.assertEqual(result.accepted_children(), sum(r.accepted for r in result.history))

    def test_same_seed_same_result(self):
        config = {'generations': 25, 'random_seed': 11}
        first = optimize_grouping(self.participants, 3, config)
        second = optimize_grouping(self.participants, 3, config)
        self.assertEqual(first.solution.to_dict(), second.solution.to_dict())
        self.assertEqual(first.fitness, second.fitness)

    def test_seed_drawn_and_recorded(self):
        result = optimize_grouping(self.participants, 3, {'generations': 2})
        self.assertIsInstance(result.seed, int)
        replay = optimize_grouping(self.participants, 3, {'generations': 2, 'random_seed': result.seed})
        self.assertEqual(replay.solution.to_dict(), result.solution.to_dict())

    def test_external_rng(self):
        result = optimize_grouping(self.participants, 3, {'generations': 5}, rng=np.random.default_rng(0))
        self.assertIsNone(result.seed)
        result.solution.validate(self.participants)

    def test_sectioned_config(self):
        result = optimize_grouping(
            self.participants, 3, {'optimization': {'generations': 7, 'population_size': 5, 'random_seed': 1}}
        )
        self.assertEqual(result.generations_run, 7)
        self.assertEqual(result.population_size, 5)

    def test_population_size_defaults_to_group_count(self):
        result = optimize_grouping(self.participants, 6, {'generations': 1, 'random_seed': 1})
        self.assertEqual(result.population_size, 6)

    def test_recompute_fitness_matches_cached(self):
        cached = optimize_grouping(self.participants, 4, {'generations': 30, 'random_seed': 21})
        recomputed = optimize_grouping(
            self.participants, 4, {'generations': 30, 'random_seed': 21, 'recompute_fitness': True}
        )
        self.assertEqual(cached.fitness, recomputed.fitness)
        self.assertEqual(cached.solution.to_dict(), recomputed.solution.to_dict())

    def test_threaded_evaluation_matches_inline(self):
        inline = optimize_grouping(self.participants, 4, {'generations': 10, 'random_seed': 4})
        threaded = optimize_grouping(self.participants, 4, {'generations': 10, 'random_seed': 4, 'workers': 3})
        self.assertEqual(inline.fitness, threaded.fitness)

    def test_pair_difference_dispersion(self):
        result = optimize_grouping(
            self.participants, 4, {'generations': 10, 'random_seed': 4, 'dispersion': 'pair_difference'}
        )
        self.assertAlmostEqual(result.fitness, evaluate(result.solution, 'pair_difference'))

    def test_single_group(self):
        result = optimize_grouping(self.participants, 1, {'random_seed': 1})

        self.assertEqual(len(result.solution.groups), 1)
        self.assertEqual(result.solution.total_participant_count(), 24)
        self.assertEqual(result.generations_run, 0)
        self.assertEqual(result.history, [])

    def test_empty_participants(self):
        with self.assertRaises(InvalidArgumentError):
            optimize_grouping([], 3)

        result = optimize_grouping([], 1)
        self.assertEqual(result.solution.groups, [[]])

    def test_invalid_group_count(self):
        for group_count in (0, -1):
            with self.assertRaises(InvalidArgumentError):
                optimize_grouping(self.participants, group_count)

    def test_invalid_settings_rejected(self):
        for settings in (
            {'population_size': 0},
            {'population_size': 2.5},
            {'population_size': -3},
            {'generations': -4},
            {'mutation_rate': 7},
            {'workers': 0},
            {'dispersion': 'median'},
            {'random_seed': 'abc'},
        ):
            with self.assertRaises(InvalidArgumentError):
                optimize_grouping(self.participants, 3, settings)

    def test_zero_generations_allowed(self):
        result = optimize_grouping(self.participants, 3, {'generations': 0, 'random_seed': 1})
        self.assertEqual(result.generations_run, 0)
        result.solution.validate(self.participants)

    def test_should_stop_before_first_generation(self):
        result = optimize_grouping(self.participants, 4, {'random_seed': 2}, should_stop=lambda: True)

        self.assertTrue(result.stopped_early)
        self.assertEqual(result.generations_run, 0)
        result.solution.validate(self.participants)

    def test_should_stop_after_some_generations(self):
        calls = []

        def stop_after_five():
            calls.append(1)
            return len(calls) > 5

        result = optimize_grouping(self.participants, 4, {'random_seed': 2}, should_stop=stop_after_five)
        self.assertTrue(result.stopped_early)
        self.assertEqual(result.generations_run, 5)

    def test_time_limit(self):
        result = optimize_grouping(
            self.participants, 4, {'random_seed': 2, 'generations': 10**7, 'time_limit': 0.05}
        )
        self.assertTrue(result.stopped_early)
        self.assertLess(result.generations_run, 10**7)

    def test_six_participant_scenario(self):
        participants = six_participants()
        paired = False

        for seed in range(5):
            result = optimize_grouping(participants, 3, {'generations': 50, 'random_seed': seed})
            result.solution.validate(participants)
            groups = [frozenset(p.id for p in group) for group in result.solution.groups]
            if frozenset({1, 2}) in groups and frozenset({3, 4}) in groups:
                paired = True
                self.assertIn(frozenset({5, 6}), groups)

        self.assertTrue(paired)

    def test_optimize_groups_returns_solution(self):
        solution = optimize_groups(self.participants, 4, {'generations': 5, 'random_seed': 8})
        solution.validate(self.participants)


if __name__ == '__main__':
    unittest.main()
