"""
Hierarchical Bayesian SDT model of the presentation-condition effect.

A cross-check on the Welch's t-test of d-prime: instead of correcting extreme
rates and comparing point estimates, the hit and false-alarm counts are
modelled directly, with a group-level effect of Sequential (vs Simultaneous)
presentation on sensitivity and on criterion.
"""

import numpy as np
import pandas as pd
import pymc as pm
import arviz as az

from .summary_stats import (
    D_PRIME_PAIRS,
    DEFAULT_N_TRIALS,
    SchemaError,
    check_n_trials,
    validate_trials,
)

# Parameters reported in the effect summary
EFFECT_PARAMETERS = [
    'baseline_d_prime',
    'condition_effect_d_prime',
    'baseline_criterion',
    'condition_effect_criterion',
]

RHAT_THRESHOLD = 1.01
ESS_THRESHOLD = 400

# rate * n_trials must be this close to a whole trial count
COUNT_TOLERANCE = 1e-6


def rates_to_counts(data, hit_col, fa_col, n_trials=DEFAULT_N_TRIALS):
    """Convert one hit / false-alarm rate pair into integer trial counts.

    Args:
        data: Trial table with Condition, ParticipantsID and the rate columns
        hit_col: Column with hit rates
        fa_col: Column with false-alarm rates
        n_trials: Number of trials each rate was computed from

    Returns:
        DataFrame with one row per participant: Condition, ParticipantsID,
        condition_code (Simultaneous=0, Sequential=1), hits, false_alarms

    Raises:
        SchemaError: if a rate is not a whole number of trials out of n_trials
    """
    check_n_trials(n_trials)
    complete = data.dropna(subset=[hit_col, fa_col])

    counts = {}
    for name, col in (('hits', hit_col), ('false_alarms', fa_col)):
        scaled = complete[col].to_numpy(dtype=float) * n_trials
        whole = np.rint(scaled)
        if not np.allclose(scaled, whole, atol=COUNT_TOLERANCE):
            raise SchemaError(
                f"Column '{col}' has rates that are not multiples of 1/{n_trials}; "
                "check n_trials"
            )
        counts[name] = whole.astype(int)

    return pd.DataFrame({
        'Condition': complete['Condition'].to_numpy(),
        'ParticipantsID': complete['ParticipantsID'].to_numpy(),
        'condition_code': (complete['Condition'] == 'Sequential').astype(int).to_numpy(),
        **counts,
    })


def build_condition_sdt_model(counts, n_trials=DEFAULT_N_TRIALS):
    """
    Hierarchical SDT model with a Condition effect on d-prime and criterion.

    Each participant gets their own d-prime and criterion, drawn around a
    Condition-specific group mean:
        mean = baseline + condition_effect * condition_code

    Args:
        counts: Output of rates_to_counts
        n_trials: Trials per stimulus type (binomial n)

    Returns:
        PyMC model object
    """
    P = len(counts)
    condition_code = counts['condition_code'].to_numpy()

    with pm.Model() as condition_sdt_model:
        # Group-level baseline (Simultaneous)
        baseline_d_prime = pm.Normal('baseline_d_prime', mu=1.0, sigma=1.0)
        baseline_criterion = pm.Normal('baseline_criterion', mu=0.0, sigma=1.0)

        # Sequential - Simultaneous
        condition_effect_d_prime = pm.Normal('condition_effect_d_prime', mu=0.0, sigma=0.5)
        condition_effect_criterion = pm.Normal('condition_effect_criterion', mu=0.0, sigma=0.5)

        # Individual-level variance
        sigma_d_prime = pm.HalfNormal('sigma_d_prime', sigma=0.5)
        sigma_criterion = pm.HalfNormal('sigma_criterion', sigma=0.5)

        mean_d_prime = baseline_d_prime + condition_effect_d_prime * condition_code
        mean_criterion = baseline_criterion + condition_effect_criterion * condition_code

        d_prime = pm.Normal('d_prime', mu=mean_d_prime, sigma=sigma_d_prime, shape=P)
        criterion = pm.Normal('criterion', mu=mean_criterion, sigma=sigma_criterion, shape=P)

        hit_rate = pm.math.invlogit(d_prime / 2 - criterion)
        false_alarm_rate = pm.math.invlogit(-d_prime / 2 - criterion)

        pm.Binomial('hit_obs', n=n_trials, p=hit_rate,
                    observed=counts['hits'].to_numpy())
        pm.Binomial('false_alarm_obs', n=n_trials, p=false_alarm_rate,
                    observed=counts['false_alarms'].to_numpy())

    return condition_sdt_model


def fit_condition_model(model, draws=2000, tune=1000, chains=4, random_seed=42):
    """Sample the posterior of a condition model."""
    with model:
        trace = pm.sample(draws, tune=tune, chains=chains, cores=chains,
                          target_accept=0.95, random_seed=random_seed,
                          progressbar=False)
    return trace


def check_convergence(trace, var_names=None, display=True):
    """Check MCMC convergence with R-hat, effective sample size and divergences.

    Args:
        trace: arviz InferenceData with a posterior group
        var_names: Variables to check (default: all)
        display: Whether to print the diagnostics

    Returns:
        (DataFrame of per-variable diagnostics, number of divergent transitions)
    """
    rhat = az.rhat(trace, var_names=var_names)
    ess = az.ess(trace, var_names=var_names)

    rows = {}
    for var in rhat.data_vars:
        rhat_values = np.asarray(rhat[var].values).flatten()
        ess_values = np.asarray(ess[var].values).flatten()
        rows[var] = {
            'rhat_mean': float(np.mean(rhat_values)),
            'rhat_max': float(np.max(rhat_values)),
            'ess_mean': float(np.mean(ess_values)),
            'ess_min': float(np.min(ess_values)),
        }
    diagnostics = pd.DataFrame(rows).T
    diagnostics['converged'] = (
        (diagnostics['rhat_max'] < RHAT_THRESHOLD) & (diagnostics['ess_min'] > ESS_THRESHOLD)
    )

    divergent = 0
    if 'sample_stats' in trace.groups() and 'diverging' in trace.sample_stats:
        divergent = int(trace.sample_stats['diverging'].sum().item())

    if display:
        print(f"R-hat (should be < {RHAT_THRESHOLD}) and ESS (should be > {ESS_THRESHOLD}):")
        print(diagnostics.round(3))
        print(f"Divergent transitions: {divergent}")
        if not diagnostics['converged'].all() or divergent > 0:
            print("WARNING: sampler did not converge cleanly")

    return diagnostics, divergent


def summarize_condition_effects(trace, var_names=None):
    """Posterior mean, SD, central 95% interval and P(>0) for each effect parameter."""
    effects = {}
    for var in var_names or EFFECT_PARAMETERS:
        samples = trace.posterior[var].values.flatten()
        effects[var] = {
            'mean': np.mean(samples),
            'std': np.std(samples),
            'ci_2.5': np.percentile(samples, 2.5),
            'ci_97.5': np.percentile(samples, 97.5),
            'prob_positive': np.mean(samples > 0),
        }

    df_effects = pd.DataFrame(effects).T
    df_effects.columns = ['Mean', 'SD', 'CI 2.5%', 'CI 97.5%', 'P(>0)']
    df_effects.index.name = 'Parameter'
    return df_effects


def run_bayesian_check(data, n_trials=DEFAULT_N_TRIALS, draws=2000, tune=1000,
                       chains=4, random_seed=42):
    """Fit one condition model per d-prime type and stack the effect summaries."""
    validate_trials(data)
    tables = []
    for label, (hit_col, fa_col) in D_PRIME_PAIRS.items():
        print(f"\nFitting condition model for {label}...")
        counts = rates_to_counts(data, hit_col, fa_col, n_trials)
        model = build_condition_sdt_model(counts, n_trials)
        trace = fit_condition_model(model, draws=draws, tune=tune, chains=chains,
                                    random_seed=random_seed)
        check_convergence(trace, var_names=EFFECT_PARAMETERS)

        effects = summarize_condition_effects(trace).reset_index()
        effects.insert(0, 'StimulusType', label)
        tables.append(effects)

    return pd.concat(tables, ignore_index=True)
