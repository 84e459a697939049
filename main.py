#!/usr/bin/env python3
"""
Groupify - Participant Grouping Optimizer

Main entry point for grouping participants.
Loads participants (or generates mock ones), runs the genetic optimizer
and writes the grouping as CSV/JSON plus an optional fitness plot.
"""

import sys
import argparse
import time
from pathlib import Path

import numpy as np

# Add current directory to path for imports
sys.path.append(str(Path(__file__).parent))

from groupify.config_loader import (
    ConfigurationError,
    get_grouping_config,
    get_optimizer_config,
    get_visualization_config,
    load_config,
    print_config_summary,
    validate_config
)
from groupify.exporter import create_grouping_files
from groupify.fitness import analyze_solution
from groupify.mock_data import generate_mock_participants
from groupify_ga.io_utils import load_participants
from groupify_ga.optimizer import optimize_grouping


def load_system_config(config_path):
    """Load the config file if it exists; defaults otherwise"""
    if not Path(config_path).exists():
        print(f"Config file {config_path} not found, using defaults")
        return {}

    config = load_config(config_path)
    issues = validate_config(config)
    if issues:
        raise ConfigurationError("; ".join(issues))
    return config


def load_run_participants(args, grouping_config, rng):
    """Participants from --mock, --participants or the config file"""
    if args.mock:
        print(f"Generating {args.mock} mock participants...")
        return generate_mock_participants(args.mock, rng=rng)

    participants_path = args.participants or grouping_config.get('participants')
    if not participants_path:
        raise ConfigurationError(
            "No participants given: use --participants, --mock or grouping.participants in the config"
        )

    print(f"Loading participants from: {participants_path}")
    return load_participants(participants_path)


def print_grouping_report(solution, dispersion="legacy"):
    """Print a per-group breakdown of a solution"""
    analysis = analyze_solution(solution, dispersion)

    print("\nGrouping Report:")
    print("Group | Size | Mean score | Diversity | Satisfied")
    print("------|------|------------|-----------|----------")
    for details in analysis['groups']:
        print(f"{details['group'] + 1:5} | {details['size']:4} | {details['mean_score']:10.2f} | "
              f"{details['diversity']:9.3f} | {details['satisfied']:9}")

    print(f"\nPreference satisfaction: {analysis['preference_satisfaction']}"
          f"/{analysis['participant_count']} ({analysis['satisfaction_rate']:.0%})")
    print(f"Mean diversity: {analysis['mean_diversity']:.3f}")
    print(f"Diversity penalty: {analysis['diversity_penalty']:.3f}")
    return analysis


def run_grouping(args, show_summary=True, output_name=None, seed=None):
    """Run one optimization and export the result"""
    config = load_system_config(args.config)

    if show_summary and Path(args.config).exists():
        print_config_summary(args.config)

    grouping_config = get_grouping_config(config)
    settings = get_optimizer_config(config)
    if args.generations is not None:
        settings['generations'] = args.generations
    if seed is not None:
        settings['random_seed'] = seed
    if settings['random_seed'] is None:
        settings['random_seed'] = int(np.random.default_rng().integers(0, 2**31))

    rng = np.random.default_rng(settings['random_seed'])
    participants = load_run_participants(args, grouping_config, rng)

    group_count = args.groups if args.groups is not None else grouping_config.get('group_count')
    if group_count is None:
        raise ConfigurationError("No group count given: use --groups or grouping.group_count in the config")

    print(f"\nGrouping {len(participants)} participants into {group_count} groups...")
    print(f"Random seed: {settings['random_seed']}")
    start_time = time.time()

    result = optimize_grouping(participants, group_count, settings, rng=rng)

    elapsed_time = time.time() - start_time
    print(f"Optimization completed in {elapsed_time:.3f} seconds")
    print(f"  Generations: {result.generations_run}")
    print(f"  Accepted children: {result.accepted_children()}")
    print(f"  Fitness: {result.initial_best_fitness} -> {result.fitness:.4f}")

    print_grouping_report(result.solution, settings['dispersion'])

    output_config = config.get('output') or {}
    output_dir = output_config.get('directory', 'output')

    if output_name is None:
        timestamp = int(time.time())
        output_name = f"grouping_{timestamp}"

    print(f"\nExporting grouping as '{output_name}'...")
    files = create_grouping_files(
        result.solution, output_name, output_dir,
        fitness=result.fitness, dispersion=settings['dispersion']
    )
    for fmt, path in files.items():
        print(f"  ✓ {fmt.upper()}: {path}")

    if output_config.get('plot', True) and not args.no_plot:
        print(f"\nGenerating fitness plot...")
        # Set matplotlib to non-interactive backend to avoid display issues
        import matplotlib
        matplotlib.use('Agg')
        from groupify.visualization import GroupingVisualizer

        vis_config = get_visualization_config(config)
        plot_path = f"{output_dir}/{output_name}_plot.png"
        GroupingVisualizer(result.solution, settings['dispersion']).plot_comprehensive_analysis(
            result.best_fitness_curve(),
            result.worst_fitness_curve(),
            figsize=tuple(vis_config.get('figure_size', [14, 10])),
            save_path=plot_path
        )
        print(f"  ✓ Plot: {plot_path}")

    return result


def run_multiple_trials(args):
    """Run multiple trials with consecutive seeds for comparison"""
    print("=" * 60)
    print(f"RUNNING {args.trials} TRIALS")
    print("=" * 60)

    base_seed = args.seed
    if base_seed is None:
        base_seed = int(np.random.default_rng().integers(0, 2**31))

    results = []
    for trial in range(args.trials):
        print(f"\n--- Trial {trial + 1}/{args.trials} ---")
        seed = base_seed + trial
        name = f"{args.output_name or 'grouping'}_trial_{trial + 1}_seed_{seed}"
        result = run_grouping(args, show_summary=False, output_name=name, seed=seed)
        results.append((trial + 1, seed, result))

    print("\n" + "=" * 60)
    print("TRIAL SUMMARY")
    print("=" * 60)
    print("Trial | Seed       | Fitness   | Accepted")
    print("------|------------|-----------|---------")

    for trial, seed, result in results:
        print(f"{trial:5} | {seed:10} | {result.fitness:9.3f} | {result.accepted_children():8}")

    fitness = np.array([result.fitness for _, _, result in results])
    print(f"\nFitness Statistics:")
    print(f"  Average: {fitness.mean():.3f}")
    print(f"  Range: {fitness.min():.3f} - {fitness.max():.3f}")
    print(f"  Std Dev: {fitness.std():.3f}")

    return results


def main():
    """Main entry point with command-line argument parsing"""
    parser = argparse.ArgumentParser(
        description="Groupify - Participant Grouping Optimizer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 main.py --participants people.csv --groups 4   # Group a participant file
  python3 main.py --mock 40 --groups 8                   # Group 40 mock participants
  python3 main.py --config custom.yaml                   # Custom config file
  python3 main.py --mock 30 --groups 5 --trials 10       # Multiple seeded trials
  python3 main.py --mock 30 --groups 5 --seed 42 --no-plot
        """
    )

    parser.add_argument(
        '--config', '-c',
        default='config.yaml',
        help='Configuration file path (default: config.yaml)'
    )

    parser.add_argument(
        '--participants', '-p',
        metavar='FILE',
        help='Participant file (.csv, .yaml or .json)'
    )

    parser.add_argument(
        '--groups', '-g',
        type=int,
        metavar='N',
        help='Number of groups (overrides grouping.group_count)'
    )

    parser.add_argument(
        '--seed', '-s',
        type=int,
        help='Random seed (overrides optimization.random_seed)'
    )

    parser.add_argument(
        '--generations',
        type=int,
        metavar='N',
        help='Number of generations (overrides optimization.generations)'
    )

    parser.add_argument(
        '--trials', '-t',
        type=int,
        metavar='N',
        help='Run N trials with consecutive seeds for comparison'
    )

    parser.add_argument(
        '--output-name', '-n',
        type=str,
        metavar='NAME',
        help='Base name for output files (default: grouping_TIMESTAMP)'
    )

    parser.add_argument(
        '--no-plot',
        action='store_true',
        help='Skip the fitness plot'
    )

    parser.add_argument(
        '--mock',
        type=int,
        metavar='N',
        help='Generate N mock participants instead of loading a file'
    )

    args = parser.parse_args()

    try:
        if args.trials:
            run_multiple_trials(args)
        else:
            print("=" * 60)
            print("GROUPIFY GROUPING OPTIMIZER")
            print("=" * 60)
            run_grouping(args, output_name=args.output_name, seed=args.seed)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
