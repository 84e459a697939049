"""
Orchestration module for batch grouping runs.

Implements the single-run and repeated-trials workflows driven by a YAML
run configuration.
"""

import csv
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from groupify.config_loader import get_optimizer_config, load_config
from groupify.exporter import create_grouping_files
from groupify.fitness import analyze_solution
from groupify.participant import Participant

from .data_models import OptimizationResult
from .io_utils import (
    create_run_folder,
    load_participants,
    save_generation_log,
    save_metadata,
    save_solution_csv
)
from .optimizer import optimize_grouping


def resolve_run_settings(run_config: Dict) -> Dict:
    """
    Optimizer settings for a run.

    Starts from the defaults, applies the ``optimization`` section of the
    referenced system config (``run_config['config']``), then the run's own
    ``optimization`` section, then a top-level ``random_seed``.
    """
    base = {}
    if run_config.get('config'):
        base = load_config(run_config['config'])

    settings = get_optimizer_config(base)
    settings.update(run_config.get('optimization') or {})
    if 'random_seed' in run_config:
        settings['random_seed'] = run_config['random_seed']

    return get_optimizer_config({'optimization': settings})


def prepare_output_root(run_config: Dict) -> Path:
    """Create the output root, refusing to reuse it unless overwrite is set."""
    output_root = Path(run_config['output']['root'])
    overwrite = run_config['output'].get('overwrite', False)

    if output_root.exists() and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {output_root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )

    output_root.mkdir(parents=True, exist_ok=overwrite)
    return output_root


def save_run_outputs(
    result: OptimizationResult,
    folder: Path,
    overwrite: bool = False,
    plot: bool = False,
    dispersion: str = "legacy"
) -> Dict[str, Path]:
    """
    Write everything a finished run produced into one folder.

    Files:
        solution.csv, groups.json, groups.csv, generation_log.csv,
        metadata.yaml and, when ``plot`` is set, fitness.png

    Returns:
        Mapping of artifact name to written path
    """
    folder = Path(folder)
    paths = {
        'solution': save_solution_csv(result.solution, folder / 'solution.csv', overwrite=overwrite),
        'generation_log': save_generation_log(result.history, folder / 'generation_log.csv', overwrite=overwrite),
    }

    exported = create_grouping_files(
        result.solution, 'groups', str(folder), fitness=result.fitness, dispersion=dispersion
    )
    paths['groups_json'] = Path(exported['json'])
    paths['groups_csv'] = Path(exported['csv'])

    analysis = analyze_solution(result.solution, dispersion)
    metadata = {
        'fitness': result.fitness,
        'initial_best_fitness': result.initial_best_fitness,
        'seed': result.seed,
        'generations_run': result.generations_run,
        'stopped_early': result.stopped_early,
        'population_size': result.population_size,
        'accepted_children': result.accepted_children(),
        'group_sizes': result.solution.group_sizes(),
        'preference_satisfaction': analysis['preference_satisfaction'],
        'mean_diversity': analysis['mean_diversity'],
        'diversity_penalty': analysis['diversity_penalty'],
        'elapsed_seconds': result.metadata.get('elapsed_seconds'),
        'config': result.metadata.get('config', {}),
    }
    paths['metadata'] = save_metadata(metadata, folder / 'metadata.yaml', overwrite=overwrite)

    if plot:
        import matplotlib
        matplotlib.use('Agg')
        from groupify.visualization import GroupingVisualizer

        plot_path = folder / 'fitness.png'
        GroupingVisualizer(result.solution, dispersion).plot_comprehensive_analysis(
            result.best_fitness_curve(),
            result.worst_fitness_curve(),
            save_path=str(plot_path),
        )
        paths['plot'] = plot_path

    return paths


def _print_result(result: OptimizationResult) -> None:
    print(f"  Fitness: {result.fitness:.4f} (initial best {result.initial_best_fitness})")
    print(f"  Generations: {result.generations_run}"
          f"{' (stopped early)' if result.stopped_early else ''}")
    print(f"  Accepted children: {result.accepted_children()}")
    print(f"  Group sizes: {result.solution.group_sizes()}")


def _load_run_participants(run_config: Dict) -> List[Participant]:
    participants_path = run_config['input']['participants']
    print(f"Loading participants from: {participants_path}")
    participants = load_participants(participants_path)
    print(f"Participants: {len(participants)}")
    return participants


def run_single_mode(run_config: Dict) -> OptimizationResult:
    """
    Optimize one grouping and write its artifacts.

    Args:
        run_config: Run configuration dict from YAML

    Algorithm:
        1. Resolve optimizer settings (system config + run overrides)
        2. Load participants from run_config['input']['participants']
        3. Create output directory: run_config['output']['root']
        4. Run the optimizer with the resolved seed
        5. Save solution, exports, generation log and metadata
        6. Print summary report

    Returns:
        OptimizationResult of the run
    """
    print("=" * 70)
    print("SINGLE RUN MODE")
    print("=" * 70)

    settings = resolve_run_settings(run_config)
    group_count = run_config['grouping']['group_count']
    participants = _load_run_participants(run_config)
    print(f"Group count: {group_count}")

    output_root = prepare_output_root(run_config)
    overwrite = run_config['output'].get('overwrite', False)
    print(f"Output directory: {output_root}\n")

    print(f"Optimizing over {settings['generations']} generations...")
    result = optimize_grouping(participants, group_count, settings)
    print(f"Random seed: {result.seed}")
    _print_result(result)

    paths = save_run_outputs(
        result, output_root, overwrite=overwrite,
        plot=run_config['output'].get('plot', False),
        dispersion=settings['dispersion'],
    )

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    for name, path in paths.items():
        print(f"  {name}: {path}")

    return result


def run_trials_mode(run_config: Dict) -> List[OptimizationResult]:
    """
    Repeat the optimization with consecutive seeds and compare the runs.

    Each trial gets its own ``trial_{i:03d}`` folder; a ``trials_summary.csv``
    in the output root lists every trial's seed and fitness.

    Args:
        run_config: Run configuration dict from YAML

    Returns:
        OptimizationResult of every trial, in order
    """
    print("=" * 70)
    print("TRIALS MODE")
    print("=" * 70)

    settings = resolve_run_settings(run_config)
    group_count = run_config['grouping']['group_count']
    participants = _load_run_participants(run_config)
    print(f"Group count: {group_count}")

    seed = settings.get('random_seed')
    if seed is None:
        seed = int(np.random.default_rng().integers(0, 2**31))
    print(f"Base random seed: {seed}")

    output_root = prepare_output_root(run_config)
    overwrite = run_config['output'].get('overwrite', False)
    plot = run_config['output'].get('plot', False)
    print(f"Output directory: {output_root}\n")

    num_trials = run_config['trials']['count']
    print(f"Running {num_trials} trials...")
    print()

    results = []
    for i in range(num_trials):
        trial_settings = dict(settings, random_seed=seed + i)
        result = optimize_grouping(participants, group_count, trial_settings)

        folder = output_root / f"trial_{i:03d}"
        if not (overwrite and folder.exists()):
            folder = create_run_folder(output_root, i)
        save_run_outputs(result, folder, overwrite=overwrite, plot=plot,
                         dispersion=settings['dispersion'])
        results.append(result)

        # Progress reporting
        if (i + 1) % 10 == 0 or i == num_trials - 1:
            print(f"  Progress: {i+1}/{num_trials} trials completed")

    summary_path = save_trials_summary(results, output_root / 'trials_summary.csv')
    best = select_best_trial(results)

    print()
    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Trials: {len(results)}")
    fitness = np.array([r.fitness for r in results])
    print(f"Fitness: best {fitness.max():.4f}, mean {fitness.mean():.4f}, worst {fitness.min():.4f}")
    if best is not None:
        print(f"Best trial: {best:03d} (seed {results[best].seed})")
    print(f"Trials summary: {summary_path}")

    return results


def select_best_trial(results: List[OptimizationResult]) -> Optional[int]:
    """Index of the fittest trial (first on ties), or None without trials."""
    if not results:
        return None
    scores = [r.fitness for r in results]
    return scores.index(max(scores))


def save_trials_summary(results: List[OptimizationResult], output_path: Path) -> Path:
    """Write one CSV row per trial."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(['trial', 'seed', 'fitness', 'initial_best_fitness',
                         'generations_run', 'accepted_children'])
        for i, result in enumerate(results):
            writer.writerow([i, result.seed, result.fitness, result.initial_best_fitness,
                             result.generations_run, result.accepted_children()])

    return output_path
