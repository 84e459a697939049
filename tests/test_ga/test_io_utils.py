"""
Tests for I/O utilities and data models.

Tests participant file parsing, solution and generation-log serialization,
and run folder management.
"""

import unittest
import tempfile
import shutil
import json
from pathlib import Path

import yaml

from groupify.participant import Criterion, Participant
from groupify.partition import Solution
from groupify_ga.data_models import GenerationRecord, OptimizationResult, Population
from groupify_ga.io_utils import (
    create_run_folder,
    load_generation_log,
    load_participants,
    load_participants_csv,
    load_solution_csv,
    save_generation_log,
    save_metadata,
    save_participants_csv,
    save_solution_csv,
    validate_participants_file,
)


class TestDataModels(unittest.TestCase):
    """Test core data model classes."""

    def setUp(self):
        self.solutions = [Solution(groups=[[Participant(id=i)]]) for i in range(3)]

    def test_population_lockstep(self):
        with self.assertRaises(ValueError):
            Population(self.solutions, [1.0])

    def test_population_extremes_first_occurrence(self):
        population = Population(self.solutions, [2.0, 1.0, 2.0])
        self.assertEqual(population.best_index(), 0)
        self.assertEqual(population.worst_index(), 1)
        self.assertEqual(population.min_fitness(), 1.0)
        self.assertIs(population.best(), self.solutions[0])

        population.replace(1, self.solutions[2], 3.0)
        self.assertEqual(population.best_fitness(), 3.0)
        self.assertEqual(population.worst_index(), 0)

    def test_generation_record_round_trip(self):
        record = GenerationRecord(
            generation=4,
            parent_indices=(2, 0),
            mutation_ops=["swap_mutation: a (group 0) <-> b (group 1)"],
            child_fitness=3.5,
            replaced_index=None,
            best_fitness=4.0,
            worst_fitness=1.5,
        )
        data = {key: str(value) for key, value in record.to_dict().items()}
        self.assertEqual(GenerationRecord.from_dict(data), record)
        self.assertFalse(record.accepted)

    def test_optimization_result_curves(self):
        history = [
            GenerationRecord(0, (0, 1), [], 1.0, 1, 2.0, 1.0),
            GenerationRecord(1, (0, 1), [], 0.5, None, 2.0, 1.0),
        ]
        result = OptimizationResult(
            solution=self.solutions[0], fitness=2.0, seed=1, generations_run=2,
            stopped_early=False, population_size=2, history=history,
        )
        self.assertEqual(result.best_fitness_curve(), [2.0, 2.0])
        self.assertEqual(result.worst_fitness_curve(), [1.0, 1.0])
        self.assertEqual(result.accepted_children(), 1)


class TestParticipantFiles(unittest.TestCase):
    """Test participant loading and saving."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.participants = [
            Participant(id="p001", name="Ada", criteria=(Criterion("0-10", 7), Criterion("0-1", 0.5)),
                        preference_ids=("p002", "p003")),
            Participant(id="p002", name="Grace", criteria=(Criterion("0-10", 5), Criterion("0-1", 0.25))),
            Participant(id="p003", name="Alan", criteria=(Criterion("0-10", 9), Criterion("0-1", 1)),
                        preference_ids=("p001",)),
        ]

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_csv_round_trip(self):
        path = save_participants_csv(self.participants, self.temp_dir / "people.csv")
        loaded = load_participants(path)

        self.assertEqual(loaded, self.participants)
        header = path.read_text().splitlines()[0]
        self.assertEqual(header, "id,name,preferences,c1[0-10],c2[0-1]")

    def test_csv_with_labels_and_blank_cells(self):
        path = self.temp_dir / "labelled.csv"
        path.write_text(
            "id,name,preferences,skill[0-10],experience[0-100],notes\n"
            "a,Ada, b ; c ,7,,likes tea\n"
            "b,Bob,,3,40,\n"
        )
        loaded = load_participants_csv(path)

        self.assertEqual(loaded[0].preference_ids, ("b", "c"))
        self.assertEqual(loaded[0].criteria, (Criterion("0-10", 7.0),))
        self.assertAlmostEqual(loaded[1].score(), 70.0)

    def test_csv_missing_columns(self):
        path = self.temp_dir / "bad.csv"
        path.write_text("name,score\nAda,3\n")
        with self.assertRaises(ValueError):
            load_participants_csv(path)

    def test_csv_invalid_value(self):
        path = self.temp_dir / "bad_value.csv"
        path.write_text("id,name,preferences,skill[0-10]\na,Ada,,high\n")
        with self.assertRaises(ValueError):
            load_participants_csv(path)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_participants(self.temp_dir / "absent.csv")

    def test_yaml_and_json_documents(self):
        records = [p.to_dict() for p in self.participants]

        yaml_path = self.temp_dir / "people.yaml"
        yaml_path.write_text(yaml.safe_dump({'participants': records}))
        json_path = self.temp_dir / "people.json"
        json_path.write_text(json.dumps(records))

        self.assertEqual(load_participants(yaml_path), self.participants)
        self.assertEqual(load_participants(json_path), self.participants)

    def test_unsupported_extension(self):
        path = self.temp_dir / "people.txt"
        path.write_text("a")
        with self.assertRaises(ValueError):
            load_participants(path)

    def test_overwrite_protection(self):
        path = save_participants_csv(self.participants, self.temp_dir / "people.csv")
        with self.assertRaises(FileExistsError):
            save_participants_csv(self.participants, path)
        save_participants_csv(self.participants, path, overwrite=True)

    def test_validate_participants_file(self):
        path = save_participants_csv(self.participants, self.temp_dir / "people.csv")
        self.assertEqual(validate_participants_file(path), (True, None))

        duplicate = self.temp_dir / "duplicate.csv"
        duplicate.write_text("id,name,preferences\na,A,\na,B,\n")
        is_valid, message = validate_participants_file(duplicate)
        self.assertFalse(is_valid)
        self.assertIn("unique", message)

        is_valid, _ = validate_participants_file(self.temp_dir / "absent.csv")
        self.assertFalse(is_valid)


class TestRunArtifacts(unittest.TestCase):
    """Test solution, log and metadata files."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.participants = [Participant(id=f"p{i}", name=f"P{i}", criteria=(Criterion("0-100", i),))
                             for i in range(5)]
        self.solution = Solution(groups=[self.participants[:3], self.participants[3:]])

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_solution_round_trip(self):
        path = save_solution_csv(self.solution, self.temp_dir / "solution.csv")
        loaded = load_solution_csv(path, self.participants)
        self.assertEqual(loaded.to_dict(), self.solution.to_dict())

        with self.assertRaises(ValueError):
            load_solution_csv(path, self.participants[:2])

    def test_generation_log_round_trip(self):
        records = [
            GenerationRecord(0, (0, 1), ["no_mutation: skipped (probability)"], 1.5, 2, 3.0, 1.5),
            GenerationRecord(1, (0, 2), [], 0.5, None, 3.0, 1.5),
        ]
        path = save_generation_log(records, self.temp_dir / "log.csv")
        self.assertEqual(load_generation_log(path), records)

    def test_metadata_sidecar(self):
        path = save_metadata({'seed': 4, 'group_sizes': [3, 2]}, self.temp_dir / "metadata.yaml")
        with open(path) as f:
            self.assertEqual(yaml.safe_load(f), {'seed': 4, 'group_sizes': [3, 2]})
        with self.assertRaises(FileExistsError):
            save_metadata({}, path)

    def test_create_run_folder(self):
        folder = create_run_folder(self.temp_dir, 3)
        self.assertEqual(folder.name, "trial_003")
        self.assertTrue(folder.is_dir())
        with self.assertRaises(FileExistsError):
            create_run_folder(self.temp_dir, 3)


if __name__ == '__main__':
    unittest.main()
