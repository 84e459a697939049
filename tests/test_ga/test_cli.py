"""
Tests for run configuration handling and the batch workflows.
"""

import csv
import io
import shutil
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

import numpy as np
import yaml

from groupify.mock_data import generate_mock_participants
from groupify_ga.cli import (
    ConfigValidationError,
    load_run_config,
    run_from_config,
    validate_run_config,
)
from groupify_ga.io_utils import load_generation_log, save_participants_csv
from groupify_ga.orchestration import resolve_run_settings, select_best_trial


class TestRunConfigValidation(unittest.TestCase):
    """Test run configuration validation."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.participants_path = self.temp_dir / "people.csv"
        save_participants_csv(
            generate_mock_participants(12, 2, np.random.default_rng(0)), self.participants_path
        )
        self.config = {
            'mode': 'single',
            'input': {'participants': str(self.participants_path)},
            'grouping': {'group_count': 3},
            'output': {'root': str(self.temp_dir / "out")},
        }

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_valid_single_config(self):
        validate_run_config(self.config)

    def test_missing_mode(self):
        del self.config['mode']
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self.config)

    def test_invalid_mode(self):
        self.config['mode'] = 'offspring'
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self.config)

    def test_missing_sections(self):
        for field in ('input', 'grouping', 'output'):
            config = dict(self.config)
            del config[field]
            with self.assertRaises(ConfigValidationError):
                validate_run_config(config)

    def test_missing_participant_file(self):
        self.config['input'] = {'participants': str(self.temp_dir / "absent.csv")}
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self.config)

    def test_missing_output_root(self):
        self.config['output'] = {}
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self.config)

    def test_group_count_must_be_positive_int(self):
        for value in (0, -2, 2.5, True, None):
            self.config['grouping'] = {'group_count': value}
            with self.assertRaises(ConfigValidationError):
                validate_run_config(self.config)

    def test_invalid_optimization_override(self):
        self.config['optimization'] = {'mutation_rate': 2}
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self.config)

    def test_trials_require_count(self):
        self.config['mode'] = 'trials'
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self.config)

        self.config['trials'] = {'count': 0}
        with self.assertRaises(ConfigValidationError):
            validate_run_config(self.config)

        self.config['trials'] = {'count': 2}
        validate_run_config(self.config)

    def test_load_run_config(self):
        path = self.temp_dir / "run.yaml"
        path.write_text(yaml.safe_dump(self.config))
        self.assertEqual(load_run_config(str(path)), self.config)

        empty = self.temp_dir / "empty.yaml"
        empty.write_text("")
        with self.assertRaises(ConfigValidationError):
            load_run_config(str(empty))

        with self.assertRaises(FileNotFoundError):
            load_run_config(str(self.temp_dir / "absent.yaml"))

    def test_resolve_run_settings(self):
        system_config = self.temp_dir / "config.yaml"
        system_config.write_text("optimization:\n  generations: 12\n  mutation_rate: 0.3\n")
        self.config.update({
            'config': str(system_config),
            'optimization': {'mutation_rate': 0.1},
            'random_seed': 77,
        })

        settings = resolve_run_settings(self.config)
        self.assertEqual(settings['generations'], 12)
        self.assertEqual(settings['mutation_rate'], 0.1)
        self.assertEqual(settings['random_seed'], 77)
        self.assertEqual(settings['dispersion'], 'legacy')


class TestRunFromConfig(unittest.TestCase):
    """Test the single and trials workflows end to end."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.participants_path = self.temp_dir / "people.csv"
        save_participants_csv(
            generate_mock_participants(15, 3, np.random.default_rng(1)), self.participants_path
        )

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write_run_config(self, **overrides):
        config = {
            'mode': 'single',
            'input': {'participants': str(self.participants_path)},
            'grouping': {'group_count': 3},
            'optimization': {'generations': 20},
            'random_seed': 5,
            'output': {'root': str(self.temp_dir / "out"), 'plot': False},
        }
        config.update(overrides)
        path = self.temp_dir / "run.yaml"
        path.write_text(yaml.safe_dump(config))
        return path

    def run_quietly(self, path):
        with redirect_stdout(io.StringIO()):
            run_from_config(str(path))

    def test_single_mode(self):
        self.run_quietly(self.write_run_config())

        out = self.temp_dir / "out"
        for name in ('solution.csv', 'groups.json', 'groups.csv', 'generation_log.csv', 'metadata.yaml'):
            self.assertTrue((out / name).exists(), name)

        with open(out / 'metadata.yaml') as f:
            metadata = yaml.safe_load(f)
        self.assertEqual(metadata['seed'], 5)
        self.assertEqual(metadata['generations_run'], 20)
        self.assertEqual(sum(metadata['group_sizes']), 15)
        self.assertEqual(len(load_generation_log(out / 'generation_log.csv')), 20)

    def test_existing_output_refused(self):
        (self.temp_dir / "out").mkdir()
        with self.assertRaises(FileExistsError):
            self.run_quietly(self.write_run_config())

    def test_trials_mode(self):
        self.run_quietly(self.write_run_config(mode='trials', trials={'count': 3}))

        out = self.temp_dir / "out"
        for i in range(3):
            self.assertTrue((out / f"trial_{i:03d}" / "solution.csv").exists())

        with open(out / 'trials_summary.csv', newline='') as f:
            rows = list(csv.DictReader(f))
        self.assertEqual([int(row['seed']) for row in rows], [5, 6, 7])

    def test_select_best_trial(self):
        self.assertIsNone(select_best_trial([]))


if __name__ == '__main__':
    unittest.main()
