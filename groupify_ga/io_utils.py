"""
I/O utilities for the grouping GA.

Handles participant file parsing (CSV, YAML, JSON), solution and
generation-log serialization, and run folder management.
"""

import csv
import json
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import yaml

from groupify.participant import Criterion, Participant, participants_from_records
from groupify.partition import Solution

from .data_models import GenerationRecord

REQUIRED_COLUMNS = ['id', 'name', 'preferences']
PREFERENCE_SEPARATOR = ';'

# Criterion columns look like "skill[0-10]"
CRITERION_COLUMN = re.compile(r'^(?P<label>.*)\[(?P<scale>[^\]]+)\]$')


def load_participants_csv(csv_path: Union[str, Path]) -> List[Participant]:
    """
    Load participants from a CSV file.

    CSV format:
        id,name,preferences,skill[0-10],experience[0-100]
        p001,Ada,p002;p003,7,40
        p002,Grace,,5,85

    Empty criterion cells are skipped.

    Args:
        csv_path: Path to CSV file

    Returns:
        Participants in file order

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If CSV format is invalid
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    participants = []
    with open(csv_path, 'r', newline='') as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None or not all(col in reader.fieldnames for col in REQUIRED_COLUMNS):
            raise ValueError(
                f"Invalid CSV format in {csv_path}. Expected columns: {','.join(REQUIRED_COLUMNS)}"
            )

        criterion_columns = []
        for column in reader.fieldnames:
            match = CRITERION_COLUMN.match(column)
            if match:
                criterion_columns.append((column, match.group('scale')))

        for line_number, row in enumerate(reader, start=2):
            if not row['id']:
                raise ValueError(f"Missing participant id on line {line_number} of {csv_path}")

            criteria = []
            for column, scale in criterion_columns:
                cell = (row.get(column) or '').strip()
                if not cell:
                    continue
                try:
                    criteria.append(Criterion(scale, float(cell)))
                except ValueError:
                    raise ValueError(
                        f"Invalid value {cell!r} for {column} on line {line_number} of {csv_path}"
                    )

            preferences = [
                pid.strip() for pid in (row['preferences'] or '').split(PREFERENCE_SEPARATOR)
                if pid.strip()
            ]

            participants.append(Participant(
                id=row['id'].strip(),
                name=row['name'] or '',
                criteria=tuple(criteria),
                preference_ids=tuple(preferences),
            ))

    return participants


def load_participants_document(path: Union[str, Path]) -> List[Participant]:
    """
    Load participants from a YAML or JSON document.

    The document is either a list of participant records or a mapping with a
    ``participants`` list.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the document has no participant list
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Participant file not found: {path}")

    with open(path, 'r') as f:
        if path.suffix.lower() == '.json':
            document = json.load(f)
        else:
            document = yaml.safe_load(f)

    if isinstance(document, dict):
        document = document.get('participants')

    if not isinstance(document, list):
        raise ValueError(f"No participant list found in {path}")

    return participants_from_records(document)


def load_participants(path: Union[str, Path]) -> List[Participant]:
    """
    Load participants, choosing the parser from the file extension.

    Args:
        path: ``.csv``, ``.yaml``, ``.yml`` or ``.json`` file

    Returns:
        Participants in file order

    Raises:
        ValueError: If the extension is not supported
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == '.csv':
        return load_participants_csv(path)
    if suffix in ('.yaml', '.yml', '.json'):
        return load_participants_document(path)

    raise ValueError(f"Unsupported participant file type: {path.suffix or path.name}")


def save_participants_csv(
    participants: List[Participant],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save participants to CSV file.

    Criterion columns are named ``c1[scale]``, ``c2[scale]``, ... after the
    position and scale of each criterion of the first participant.

    Args:
        participants: Participants to save
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved CSV file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    criterion_header = []
    if participants:
        criterion_header = [
            f"c{i + 1}[{criterion.scale_kind}]"
            for i, criterion in enumerate(participants[0].criteria)
        ]

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(REQUIRED_COLUMNS + criterion_header)

        for participant in participants:
            values = [_format_number(c.raw_value) for c in participant.criteria]
            values += [''] * (len(criterion_header) - len(values))
            writer.writerow([
                participant.id,
                participant.name,
                PREFERENCE_SEPARATOR.join(str(pid) for pid in participant.preference_ids),
            ] + values[:len(criterion_header)])

    return output_path


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def save_solution_csv(
    solution: Solution,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save a grouping to CSV file.

    CSV format:
        group,participant_id,name,score
        1,p001,Ada,70.0

    Groups are numbered from 1.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['group', 'participant_id', 'name', 'score'])

        for index, group in enumerate(solution.groups, start=1):
            for participant in group:
                writer.writerow([index, participant.id, participant.name, participant.score()])

    return output_path


def load_solution_csv(csv_path: Union[str, Path], participants: List[Participant]) -> Solution:
    """
    Rebuild a grouping saved by :func:`save_solution_csv`.

    Args:
        csv_path: Path to solution CSV
        participants: Participants the ids refer to

    Raises:
        FileNotFoundError: If CSV file doesn't exist
        ValueError: If a row references an unknown participant
    """
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")

    by_id = {str(p.id): p for p in participants}
    groups = {}

    with open(csv_path, 'r', newline='') as f:
        for row in csv.DictReader(f):
            participant = by_id.get(row['participant_id'])
            if participant is None:
                raise ValueError(f"Unknown participant in {csv_path}: {row['participant_id']}")
            groups.setdefault(int(row['group']), []).append(participant)

    return Solution(
        groups=[groups[key] for key in sorted(groups)],
        metadata={'source_file': str(csv_path), 'loaded_at': datetime.now().isoformat()},
    )


def save_generation_log(
    records: List[GenerationRecord],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save per-generation records to CSV file.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Generation log already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        fieldnames = ['generation', 'parent_indices', 'mutation_ops', 'child_fitness',
                      'replaced_index', 'best_fitness', 'worst_fitness']
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        for record in records:
            writer.writerow(record.to_dict())

    return output_path


def load_generation_log(csv_path: Union[str, Path]) -> List[GenerationRecord]:
    """Read a generation log written by :func:`save_generation_log`."""
    csv_path = Path(csv_path)

    if not csv_path.exists():
        raise FileNotFoundError(f"Generation log not found: {csv_path}")

    with open(csv_path, 'r', newline='') as f:
        return [GenerationRecord.from_dict(row) for row in csv.DictReader(f)]


def create_run_folder(
    root: Union[str, Path],
    index: int,
    format_string: str = "trial_{:03d}"
) -> Path:
    """
    Create a numbered run folder with standard naming.

    Args:
        root: Root directory for outputs
        index: Run number
        format_string: Format string for the folder name

    Returns:
        Path to created folder

    Raises:
        FileExistsError: If folder already exists
    """
    root = Path(root)
    run_folder = root / format_string.format(index)

    if run_folder.exists():
        raise FileExistsError(f"Run folder already exists: {run_folder}")

    run_folder.mkdir(parents=True, exist_ok=False)

    return run_folder


def save_metadata(
    metadata: dict,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save metadata to YAML sidecar file.

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Metadata file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        yaml.safe_dump(metadata, f, default_flow_style=False, sort_keys=False)

    return output_path


def validate_participants_file(path: Union[str, Path]) -> tuple[bool, Optional[str]]:
    """
    Check that a participant file can be loaded.

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        participants = load_participants(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        return False, str(e)

    if not participants:
        return False, "Participant file is empty (no participants)"

    ids = [p.id for p in participants]
    if len(set(ids)) != len(ids):
        return False, "Participant ids are not unique"

    return True, None
