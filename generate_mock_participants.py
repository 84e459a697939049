#!/usr/bin/env python3
"""
Generate a mock participant file.

Usage:
    python3 generate_mock_participants.py 40 -o participants.csv
    python3 generate_mock_participants.py 40 --criteria 5 --seed 7 -o people.yaml
"""

import argparse
import sys
from pathlib import Path

import numpy as np
import yaml

sys.path.append(str(Path(__file__).parent))

from groupify.mock_data import generate_mock_participants
from groupify_ga.io_utils import save_participants_csv


def write_participants(participants, output_path, overwrite=False):
    """Write participants as CSV, or as a YAML document for .yaml/.yml paths"""
    output_path = Path(output_path)

    if output_path.suffix.lower() in ('.yaml', '.yml'):
        if output_path.exists() and not overwrite:
            raise FileExistsError(f"Output file already exists: {output_path}")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w') as f:
            yaml.safe_dump({'participants': [p.to_dict() for p in participants]},
                           f, default_flow_style=False, sort_keys=False)
        return output_path

    return save_participants_csv(participants, output_path, overwrite=overwrite)


def main():
    parser = argparse.ArgumentParser(description="Generate mock participants")
    parser.add_argument('count', type=int, help='Number of participants')
    parser.add_argument('--criteria', type=int, default=3, help='Criteria per participant (default: 3)')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--output', '-o', default='participants.csv',
                        help='Output file, .csv or .yaml (default: participants.csv)')
    parser.add_argument('--overwrite', action='store_true', help='Overwrite an existing file')
    args = parser.parse_args()

    try:
        rng = np.random.default_rng(args.seed)
        participants = generate_mock_participants(args.count, args.criteria, rng)
        path = write_participants(participants, args.output, overwrite=args.overwrite)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    with_preferences = sum(1 for p in participants if p.preference_ids)
    print(f"Generated {len(participants)} participants "
          f"({with_preferences} with preferences) -> {path}")


if __name__ == "__main__":
    main()
