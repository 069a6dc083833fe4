"""
Tests for the hierarchical Bayesian condition model.

The model is built but not sampled; diagnostics and summaries run on
synthetic posterior draws.

Run with: python -m pytest tests/test_bayes_sdt.py -v
"""

import arviz as az
import numpy as np
import pytest

from conftest import make_trials
from facematch_sdt.bayes_sdt import (
    EFFECT_PARAMETERS,
    build_condition_sdt_model,
    check_convergence,
    rates_to_counts,
    run_bayesian_check,
    summarize_condition_effects,
)
from facematch_sdt.summary_stats import SchemaError


@pytest.fixture
def synthetic_trace():
    rng = np.random.default_rng(42)
    posterior = {
        'baseline_d_prime': rng.normal(1.5, 0.2, size=(4, 500)),
        'condition_effect_d_prime': rng.normal(-0.8, 0.1, size=(4, 500)),
        'baseline_criterion': rng.normal(0.0, 0.2, size=(4, 500)),
        'condition_effect_criterion': rng.normal(0.1, 0.3, size=(4, 500)),
    }
    return az.from_dict(posterior=posterior)


class TestRatesToCounts:

    def test_counts(self, trials):
        counts = rates_to_counts(trials, 'Matching Member', 'Non-Matching Member', n_trials=4)
        assert len(counts) == len(trials)
        assert counts['hits'].tolist()[:5] == [4, 3, 4, 3, 2]
        assert counts['false_alarms'].tolist()[:5] == [0, 1, 0, 1, 2]
        assert counts['condition_code'].tolist() == [0] * 5 + [1] * 5

    def test_missing_rates_dropped(self, trials):
        trials.loc[2, 'Matching Morph'] = np.nan
        counts = rates_to_counts(trials, 'Matching Morph', 'Non-Matching Morph', n_trials=4)
        assert len(counts) == len(trials) - 1
        assert 'P03' not in counts.loc[counts['Condition'] == 'Simultaneous', 'ParticipantsID'].tolist()

    def test_rates_off_the_trial_grid_rejected(self, trials):
        trials.loc[:4, 'Matching Member'] = [0.125, 0.375, 0.625, 0.875, 0.5]
        with pytest.raises(SchemaError, match='Matching Member'):
            rates_to_counts(trials, 'Matching Member', 'Non-Matching Member', n_trials=4)

    def test_eighths_accepted_with_eight_trials(self, trials):
        trials.loc[:4, 'Matching Member'] = [0.125, 0.375, 0.625, 0.875, 0.5]
        counts = rates_to_counts(trials, 'Matching Member', 'Non-Matching Member', n_trials=8)
        assert counts['hits'].tolist()[:5] == [1, 3, 5, 7, 4]

    def test_fractional_trial_count_rejected(self, trials):
        with pytest.raises(ValueError, match='n_trials'):
            rates_to_counts(trials, 'Matching Member', 'Non-Matching Member', n_trials=0.5)


class TestConditionModel:

    def test_model_structure(self, trials):
        counts = rates_to_counts(trials, 'Matching Member', 'Non-Matching Member', n_trials=4)
        model = build_condition_sdt_model(counts, n_trials=4)

        free = {rv.name for rv in model.free_RVs}
        assert set(EFFECT_PARAMETERS) <= free
        assert {'d_prime', 'criterion', 'sigma_d_prime', 'sigma_criterion'} <= free

        observed = {rv.name for rv in model.observed_RVs}
        assert observed == {'hit_obs', 'false_alarm_obs'}

    def test_initial_point_finite(self, trials):
        counts = rates_to_counts(trials, 'Matching Morph', 'Non-Matching Morph', n_trials=4)
        model = build_condition_sdt_model(counts, n_trials=4)
        logp = model.point_logps()
        assert all(np.isfinite(value) for value in logp.values())


class TestPosteriorSummaries:

    def test_effect_summary(self, synthetic_trace):
        effects = summarize_condition_effects(synthetic_trace)
        assert list(effects.index) == EFFECT_PARAMETERS
        assert list(effects.columns) == ['Mean', 'SD', 'CI 2.5%', 'CI 97.5%', 'P(>0)']

        row = effects.loc['condition_effect_d_prime']
        assert row['Mean'] == pytest.approx(-0.8, abs=0.02)
        assert row['P(>0)'] == pytest.approx(0.0)
        assert row['CI 2.5%'] < row['Mean'] < row['CI 97.5%']

    def test_convergence_of_independent_draws(self, synthetic_trace, capsys):
        diagnostics, divergent = check_convergence(synthetic_trace)
        assert set(diagnostics.index) == set(EFFECT_PARAMETERS)
        assert (diagnostics['rhat_max'] < 1.01).all()
        assert diagnostics['converged'].all()
        assert divergent == 0
        assert 'Divergent transitions: 0' in capsys.readouterr().out

    def test_poor_mixing_flagged(self, capsys):
        # Chains stuck at different values
        stuck = np.repeat(np.arange(4.0)[:, None], 200, axis=1)
        stuck += np.random.default_rng(0).normal(0, 0.01, size=stuck.shape)
        trace = az.from_dict(posterior={'baseline_d_prime': stuck})

        diagnostics, _ = check_convergence(trace)
        assert not diagnostics.loc['baseline_d_prime', 'converged']
        assert 'WARNING' in capsys.readouterr().out


class TestBayesianCheck:
    """Short end-to-end fits; far too few draws to converge, enough to exercise sampling."""

    def test_stacked_effects(self):
        effects = run_bayesian_check(make_trials(), n_trials=4, draws=50, tune=50,
                                     chains=1, random_seed=1)
        assert len(effects) == 2 * len(EFFECT_PARAMETERS)
        assert list(effects.columns) == [
            'StimulusType', 'Parameter', 'Mean', 'SD', 'CI 2.5%', 'CI 97.5%', 'P(>0)',
        ]
        assert effects['StimulusType'].unique().tolist() == ["d' Member", "d' Morph"]
        assert effects['Parameter'].tolist()[:4] == EFFECT_PARAMETERS
        assert effects['P(>0)'].between(0, 1).all()

    def test_unexpected_condition_rejected(self, trials):
        trials.loc[0, 'Condition'] = 'Lineup'
        with pytest.raises(SchemaError, match='Lineup'):
            run_bayesian_check(trials, draws=50, tune=50, chains=1)
