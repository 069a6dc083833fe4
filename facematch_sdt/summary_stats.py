"""
Summary statistics for the Simultaneous vs Sequential face-matching experiments.

This module computes the report table:
1. Descriptive statistics (mean, SD, N) of each identification rate per Condition
2. Welch's t-test and pooled-SD Cohen's d between the two Conditions
3. Sensitivity (d-prime) from hit / false-alarm rate pairs, with the
   log-linear correction for perfect and zero scores
4. The same comparison applied to d-prime
5. Assembly of both families into one six-row table
"""

import math

import numpy as np
import pandas as pd
from scipy import stats

# The two presentation conditions, in report order
CONDITIONS = ['Simultaneous', 'Sequential']

# Raw identification-rate columns, in report order
RATE_COLUMNS = [
    'Matching Member',
    'Non-Matching Member',
    'Matching Morph',
    'Non-Matching Morph',
]

# d-prime label -> (hit-rate column, false-alarm-rate column)
D_PRIME_PAIRS = {
    "d' Member": ('Matching Member', 'Non-Matching Member'),
    "d' Morph": ('Matching Morph', 'Non-Matching Morph'),
}

ID_COLUMNS = ['Condition', 'ParticipantsID']

REPORT_COLUMNS = [
    'StimulusType',
    *[f'Mean_{c}' for c in CONDITIONS],
    *[f'SD_{c}' for c in CONDITIONS],
    *[f'N_{c}' for c in CONDITIONS],
    'Cohens_d', 't_value', 'p_value', 'df',
]

# Trials per stimulus type in one experimental block
DEFAULT_N_TRIALS = 4


class SchemaError(ValueError):
    """Input table does not follow the trial-record schema."""


class InsufficientDataError(ValueError):
    """A Condition group is too small (or too uniform) to compare."""


def validate_trials(data):
    """Check that a trial table can be analyzed.

    Args:
        data: DataFrame with Condition, ParticipantsID and the four rate columns

    Raises:
        SchemaError: if a column is missing or mistyped, a rate lies outside
            [0, 1], or the Condition labels are not exactly the expected two
    """
    missing = [col for col in ID_COLUMNS + RATE_COLUMNS if col not in data.columns]
    if missing:
        raise SchemaError(f"Missing required columns: {', '.join(missing)}")

    for col in RATE_COLUMNS:
        if not pd.api.types.is_numeric_dtype(data[col]):
            raise SchemaError(f"Column '{col}' must be numeric, got {data[col].dtype}")
        values = data[col].dropna()
        if ((values < 0) | (values > 1)).any():
            raise SchemaError(f"Column '{col}' has rates outside [0, 1]")

    labels = set(data['Condition'].dropna().unique())
    absent = [c for c in CONDITIONS if c not in labels]
    if absent:
        raise SchemaError(f"No trials for Condition: {', '.join(absent)}")
    unexpected = sorted(str(label) for label in labels - set(CONDITIONS))
    if unexpected:
        raise SchemaError(f"Unexpected Condition labels: {', '.join(unexpected)}")


def check_n_trials(n_trials):
    """Raise ValueError unless n_trials is a whole number of trials, at least 1."""
    is_number = isinstance(n_trials, (int, float, np.integer, np.floating)) and not isinstance(n_trials, bool)
    if not is_number or not float(n_trials).is_integer() or n_trials < 1:
        raise ValueError(f"n_trials must be a whole number >= 1, got {n_trials!r}")


def round_sig(x, sig=2):
    """Round x to `sig` significant figures."""
    if x == 0 or not math.isfinite(x):
        return x
    return round(x, sig - 1 - int(math.floor(math.log10(abs(x)))))


def adjust_extreme_rates(rates, n_trials):
    """Shrink rates of exactly 0 or 1 into the open interval.

    A rate of 1 becomes (n_trials - 0.5) / n_trials and a rate of 0 becomes
    0.5 / n_trials; every other value is returned unchanged.

    Args:
        rates: Scalar, array or Series of rates in [0, 1]
        n_trials: Number of trials each rate was computed from

    Returns:
        Adjusted rates, with the same shape (and index, for a Series)
    """
    check_n_trials(n_trials)

    values = np.asarray(rates, dtype=float)
    adjusted = np.where(values == 1, (n_trials - 0.5) / n_trials, values)
    adjusted = np.where(values == 0, 0.5 / n_trials, adjusted)

    if isinstance(rates, pd.Series):
        return pd.Series(adjusted, index=rates.index, name=rates.name)
    if adjusted.ndim == 0:
        return float(adjusted)
    return adjusted


def compute_d_prime(hit_rates, fa_rates, n_trials, label=None):
    """Compute d-prime = z(hit) - z(false alarm) after the extreme-rate correction.

    Args:
        hit_rates: Hit rates (scalar, array or Series)
        fa_rates: False-alarm rates, aligned with hit_rates
        n_trials: Number of trials each rate was computed from
        label: Name given to the returned Series

    Returns:
        float for scalar input, otherwise a Series of d-prime values
    """
    hit = adjust_extreme_rates(hit_rates, n_trials)
    fa = adjust_extreme_rates(fa_rates, n_trials)
    d_prime = stats.norm.ppf(hit) - stats.norm.ppf(fa)

    if np.ndim(d_prime) == 0:
        return float(d_prime)

    index = hit_rates.index if isinstance(hit_rates, pd.Series) else None
    return pd.Series(d_prime, index=index, name=label or 'd_prime')


def compute_d_prime_table(data, n_trials=DEFAULT_N_TRIALS):
    """Long-form d-prime records, one per participant per d-prime type."""
    frames = []
    for label, (hit_col, fa_col) in D_PRIME_PAIRS.items():
        scores = compute_d_prime(data[hit_col], data[fa_col], n_trials, label)
        frames.append(pd.DataFrame({
            'Condition': data['Condition'],
            'ParticipantsID': data['ParticipantsID'],
            'StimulusType': label,
            'd_prime': scores,
        }))
    return pd.concat(frames, ignore_index=True)


def welch_df(sample_a, sample_b):
    """Welch-Satterthwaite degrees of freedom for two independent samples."""
    a = np.asarray(sample_a, dtype=float)
    b = np.asarray(sample_b, dtype=float)
    n_a, n_b = len(a), len(b)
    se_a = np.var(a, ddof=1) / n_a
    se_b = np.var(b, ddof=1) / n_b

    denom = se_a ** 2 / (n_a - 1) + se_b ** 2 / (n_b - 1)
    if denom == 0:
        raise InsufficientDataError("Both samples have zero variance")
    return float((se_a + se_b) ** 2 / denom)


def cohens_d(sample_a, sample_b):
    """
    Cohen's d for two independent samples, using the pooled standard deviation.

    Args:
        sample_a: First sample (Simultaneous)
        sample_b: Second sample (Sequential)

    Returns:
        (mean_a - mean_b) / pooled SD
    """
    a = np.asarray(sample_a, dtype=float)
    b = np.asarray(sample_b, dtype=float)
    n_a, n_b = len(a), len(b)

    pooled_var = ((n_a - 1) * np.var(a, ddof=1) + (n_b - 1) * np.var(b, ddof=1)) / (n_a + n_b - 2)
    if pooled_var == 0:
        raise InsufficientDataError("Pooled standard deviation is zero")
    return float((np.mean(a) - np.mean(b)) / math.sqrt(pooled_var))


def describe_conditions(long_data, value_col):
    """Mean, SD (2 decimals) and N of value_col per (Condition, StimulusType)."""
    summary = (
        long_data.groupby(['Condition', 'StimulusType'], observed=True)[value_col]
        .agg(Mean='mean', SD='std', N='count')
        .reset_index()
    )
    summary[['Mean', 'SD']] = summary[['Mean', 'SD']].round(2)
    return summary


def compare_conditions(long_data, value_col, type_col='StimulusType'):
    """
    Compare Simultaneous vs Sequential for each stimulus type.

    Args:
        long_data: Long-form DataFrame with Condition, type_col and value_col
        value_col: Column holding the measure (rate or d-prime)
        type_col: Column naming the stimulus type

    Returns:
        DataFrame with StimulusType, Cohens_d, t_value, p_value, df

    Raises:
        InsufficientDataError: if a Condition has fewer than 2 observations
    """
    rows = []
    for stimulus_type in long_data[type_col].unique():
        subset = long_data[long_data[type_col] == stimulus_type]
        samples = {}
        for condition in CONDITIONS:
            values = subset.loc[subset['Condition'] == condition, value_col].dropna()
            if len(values) < 2:
                raise InsufficientDataError(
                    f"'{stimulus_type}' has {len(values)} {condition} observation(s); "
                    "at least 2 are needed"
                )
            samples[condition] = values.to_numpy(dtype=float)

        sim, seq = samples['Simultaneous'], samples['Sequential']
        d = cohens_d(sim, seq)
        df = welch_df(sim, seq)
        result = stats.ttest_ind(sim, seq, equal_var=False)

        rows.append({
            'StimulusType': stimulus_type,
            'Cohens_d': round(d, 2),
            't_value': round(float(result.statistic), 2),
            'p_value': round_sig(float(result.pvalue), 2),
            'df': int(round(df)),
        })

    return pd.DataFrame(rows, columns=['StimulusType', 'Cohens_d', 't_value', 'p_value', 'df'])


def _assemble(summary, comparison, order):
    """Pivot descriptives to condition-suffixed columns and join the comparison."""
    wide = summary.pivot(index='StimulusType', columns='Condition', values=['Mean', 'SD', 'N'])
    wide.columns = [f'{stat}_{condition}' for stat, condition in wide.columns]
    wide = wide.reindex(order)
    wide.index.name = 'StimulusType'
    wide = wide.reset_index()

    for condition in CONDITIONS:
        wide[f'N_{condition}'] = wide[f'N_{condition}'].astype(int)

    return wide.merge(comparison, on='StimulusType', how='left')


def analyze_trials(data, n_trials=DEFAULT_N_TRIALS):
    """
    Build the summary report for a table of trial records.

    Args:
        data: DataFrame with Condition, ParticipantsID and the four rate columns
        n_trials: Trials per stimulus type, used by the d-prime correction

    Returns:
        Six-row DataFrame with REPORT_COLUMNS: the four raw rates in schema
        order, then "d' Member" and "d' Morph"
    """
    validate_trials(data)
    check_n_trials(n_trials)

    # Raw identification rates
    long_rates = data.melt(
        id_vars=ID_COLUMNS,
        value_vars=RATE_COLUMNS,
        var_name='StimulusType',
        value_name='Rate',
    )
    rate_table = _assemble(
        describe_conditions(long_rates, 'Rate'),
        compare_conditions(long_rates, 'Rate'),
        RATE_COLUMNS,
    )

    # Sensitivity
    d_prime_long = compute_d_prime_table(data, n_trials)
    d_prime_table = _assemble(
        describe_conditions(d_prime_long, 'd_prime'),
        compare_conditions(d_prime_long, 'd_prime'),
        list(D_PRIME_PAIRS),
    )

    report = pd.concat([rate_table, d_prime_table], ignore_index=True)
    return report[REPORT_COLUMNS]
