"""Summary statistics for the Simultaneous vs Sequential face-matching experiments.

Provides:
- Per-condition identification rates, Welch's t-tests and Cohen's d
- Bias-corrected d-prime from hit / false-alarm rate pairs
- Loading of the experiment files and CSV export of the report
"""

from .summary_stats import (
    CONDITIONS,
    RATE_COLUMNS,
    D_PRIME_PAIRS,
    REPORT_COLUMNS,
    SchemaError,
    InsufficientDataError,
    adjust_extreme_rates,
    compute_d_prime,
    compute_d_prime_table,
    cohens_d,
    welch_df,
    analyze_trials,
)
from .data_io import LoaderConfig, load_experiments, format_report, write_report, read_report

__all__ = [
    # Schema
    'CONDITIONS',
    'RATE_COLUMNS',
    'D_PRIME_PAIRS',
    'REPORT_COLUMNS',
    # Errors
    'SchemaError',
    'InsufficientDataError',
    # Analysis
    'adjust_extreme_rates',
    'compute_d_prime',
    'compute_d_prime_table',
    'cohens_d',
    'welch_df',
    'analyze_trials',
    # I/O
    'LoaderConfig',
    'load_experiments',
    'format_report',
    'write_report',
    'read_report',
]
