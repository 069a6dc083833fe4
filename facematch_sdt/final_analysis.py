"""
Face-matching report: complete analysis pipeline.

This script:
1. Loads and concatenates the experiment files
2. Computes the summary table (rates, d-prime, Welch's t-tests, Cohen's d)
3. Prints the formatted report and saves it as CSV
4. Optionally draws the condition figures
5. Optionally fits the hierarchical Bayesian model of the condition effect
"""

import argparse
import sys
from pathlib import Path

from .data_io import DEFAULT_FILES, LoaderConfig, format_report, load_experiments, write_report
from .summary_stats import DEFAULT_N_TRIALS, analyze_trials, compute_d_prime_table

REPORT_FILE = 'summary_statistics.csv'
BAYES_FILE = 'bayes_effects.csv'


def build_parser():
    parser = argparse.ArgumentParser(
        prog='facematch-report',
        description='Summary statistics for the Simultaneous vs Sequential face-matching experiments',
    )
    parser.add_argument('--data-dir', type=Path, default=Path('data'),
                        help='Directory holding the experiment CSV files')
    parser.add_argument('--files', nargs='+', default=list(DEFAULT_FILES),
                        help='Experiment file names inside --data-dir')
    parser.add_argument('--n-trials', type=int, default=DEFAULT_N_TRIALS,
                        help=f'Trials per stimulus type (default {DEFAULT_N_TRIALS})')
    parser.add_argument('--output-dir', type=Path, default=Path('output'),
                        help='Directory for the report and figures')
    parser.add_argument('--plots', action='store_true',
                        help='Save rate and d-prime figures')
    parser.add_argument('--bayes', action='store_true',
                        help='Fit the hierarchical Bayesian condition model')
    parser.add_argument('--draws', type=int, default=2000)
    parser.add_argument('--tune', type=int, default=1000)
    parser.add_argument('--chains', type=int, default=4)
    parser.add_argument('--seed', type=int, default=42)
    parser.add_argument('--display', action='store_true',
                        help='Print samples of the loaded data')
    return parser


def run_report(args):
    """Run the pipeline for parsed arguments and return the summary table."""
    print("=" * 60)
    print("FACE-MATCHING REPORT: SIMULTANEOUS vs SEQUENTIAL")
    print("=" * 60)

    # Step 1: Load data
    print("\n1. LOADING DATA")
    print("-" * 40)
    config = LoaderConfig(data_dir=args.data_dir, file_names=args.files)
    data = load_experiments(config, display=args.display)
    print(f"Loaded {len(data)} participants from {len(args.files)} file(s)")

    # Step 2: Summary statistics
    print("\n2. COMPUTING SUMMARY STATISTICS")
    print("-" * 40)
    print(f"Using n_trials = {args.n_trials} for the d-prime correction")
    table = analyze_trials(data, n_trials=args.n_trials)
    print()
    print(format_report(table))

    # Step 3: Save
    print("\n3. SAVING RESULTS")
    print("-" * 40)
    report_path = write_report(table, args.output_dir / REPORT_FILE)
    print(f"Summary table saved to: {report_path}")

    # Step 4: Figures
    if args.plots:
        print("\n4. DRAWING FIGURES")
        print("-" * 40)
        from .plots import plot_condition_rates, plot_d_prime

        plot_condition_rates(data, output_dir=args.output_dir)
        plot_d_prime(compute_d_prime_table(data, args.n_trials), output_dir=args.output_dir)
        print(f"Figures saved to: {args.output_dir}")

    # Step 5: Bayesian cross-check
    if args.bayes:
        print("\n5. HIERARCHICAL BAYESIAN CONDITION MODEL")
        print("-" * 40)
        from .bayes_sdt import run_bayesian_check

        effects = run_bayesian_check(data, n_trials=args.n_trials, draws=args.draws,
                                     tune=args.tune, chains=args.chains, random_seed=args.seed)
        print(effects.round(3).to_string(index=False))
        effects_path = write_report(effects, args.output_dir / BAYES_FILE)
        print(f"Effect summary saved to: {effects_path}")

    print("\n" + "=" * 60)
    print("ANALYSIS COMPLETE")
    print("=" * 60)
    return table


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        run_report(args)
    except (OSError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
