"""
Grouping Export System

Exports finished groupings in the shape the surrounding service hands to
clients (groups with named members), as JSON or CSV.
"""

import csv
import json
import time
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .fitness import analyze_solution
from .partition import Solution


@dataclass
class GroupMember:
    """Member entry of an exported group"""
    id: str
    name: str
    score: float


@dataclass
class ExportedGroup:
    """One group as presented to clients"""
    id: str
    name: str
    members: List[GroupMember]


@dataclass
class GroupingDocument:
    """Complete grouping result for persistence and rendering"""
    groups: List[ExportedGroup]
    metadata: Dict[str, Any]


class GroupingExporter:
    """Exports solutions to client-facing documents"""

    def create_document(self,
                        solution: Solution,
                        fitness: Optional[float] = None,
                        project_id: Optional[str] = None,
                        dispersion: str = "legacy") -> GroupingDocument:
        """
        Convert a solution to a grouping document

        Args:
            solution: Finished partition
            fitness: Fitness of the solution (computed if omitted)
            project_id: Optional id of the project the grouping belongs to
            dispersion: Dispersion sampling mode used to compute the fitness

        Returns:
            Grouping document
        """
        analysis = analyze_solution(solution, dispersion)

        metadata = {
            'timestamp': datetime.now().isoformat(),
            'generator': 'groupify_grouping_optimizer',
            'group_count': len(solution.groups),
            'participant_count': solution.total_participant_count(),
            'fitness': analysis['fitness'] if fitness is None else fitness,
            'dispersion': dispersion,
            'preference_satisfaction': analysis['preference_satisfaction'],
        }
        if project_id is not None:
            metadata['project_id'] = project_id

        groups = []
        for index, group in enumerate(solution.groups, start=1):
            members = [
                GroupMember(id=str(p.id), name=p.name, score=p.score())
                for p in group
            ]
            groups.append(ExportedGroup(id=f"group{index}", name=f"Group {index}", members=members))

        return GroupingDocument(groups=groups, metadata=metadata)

    def export_json(self, document: GroupingDocument, output_path: str) -> str:
        """Export grouping document to JSON"""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w') as f:
            json.dump(asdict(document), f, indent=2)

        return str(output_file)

    def export_csv(self, document: GroupingDocument, output_path: str) -> str:
        """Export group membership to CSV format"""
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        with open(output_file, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(['group_id', 'group_name', 'participant_id', 'name', 'score'])

            for group in document.groups:
                for member in group.members:
                    writer.writerow([group.id, group.name, member.id, member.name, member.score])

        return str(output_file)


def create_grouping_files(solution: Solution,
                          output_name: Optional[str] = None,
                          output_dir: str = "output",
                          fitness: Optional[float] = None,
                          dispersion: str = "legacy") -> Dict[str, str]:
    """
    Convenience function to write the JSON and CSV exports of a solution

    Args:
        solution: Finished partition
        output_name: Base name for output files
        output_dir: Directory for output files
        fitness: Fitness of the solution (computed if omitted)
        dispersion: Dispersion sampling mode used to compute the fitness

    Returns:
        Mapping of format name to written path
    """
    if output_name is None:
        timestamp = int(time.time())
        output_name = f"grouping_{timestamp}"

    exporter = GroupingExporter()
    document = exporter.create_document(solution, fitness=fitness, dispersion=dispersion)

    return {
        'json': exporter.export_json(document, f"{output_dir}/{output_name}.json"),
        'csv': exporter.export_csv(document, f"{output_dir}/{output_name}.csv"),
    }
