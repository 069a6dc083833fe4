"""Shared fixtures for the face-matching report tests."""

import sys
from pathlib import Path

import matplotlib
matplotlib.use('Agg')

import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Rates are multiples of 1/4 (n_trials = 4), including perfect and zero scores
SIMULTANEOUS = {
    'Matching Member': [1.0, 0.75, 1.0, 0.75, 0.5],
    'Non-Matching Member': [0.0, 0.25, 0.0, 0.25, 0.5],
    'Matching Morph': [0.75, 0.5, 1.0, 0.5, 0.75],
    'Non-Matching Morph': [0.25, 0.5, 0.0, 0.25, 0.5],
}
SEQUENTIAL = {
    'Matching Member': [0.5, 0.75, 0.25, 0.5, 0.75],
    'Non-Matching Member': [0.25, 0.5, 0.5, 0.0, 0.25],
    'Matching Morph': [0.5, 0.25, 0.75, 0.5, 0.25],
    'Non-Matching Morph': [0.5, 0.75, 0.25, 0.5, 0.5],
}


def make_trials(simultaneous=SIMULTANEOUS, sequential=SEQUENTIAL):
    """Build a trial table from per-condition rate lists."""
    frames = []
    for condition, rates in (('Simultaneous', simultaneous), ('Sequential', sequential)):
        n = len(next(iter(rates.values())))
        frame = pd.DataFrame(rates)
        frame.insert(0, 'ParticipantsID', [f'P{i + 1:02d}' for i in range(n)])
        frame.insert(0, 'Condition', condition)
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def trials():
    return make_trials()


@pytest.fixture
def experiment_dir(tmp_path, trials):
    """Two experiment files with slightly different header spellings."""
    data_dir = tmp_path / 'data'
    data_dir.mkdir()

    first = trials.iloc[[0, 1, 2, 5, 6, 7]]
    first.to_csv(data_dir / 'experiment1.csv', index=False)

    second = trials.iloc[[3, 4, 8, 9]].rename(columns={
        'Non-Matching Member': 'Non-matching Member',
        'Non-Matching Morph': ' Non-matching Morph ',
    })
    # Different column order plus an unrelated column
    second = second[['ParticipantsID', 'Non-matching Member', 'Condition',
                     'Matching Member', ' Non-matching Morph ', 'Matching Morph']]
    second = second.assign(Age=[21, 22, 23, 24])
    second.to_csv(data_dir / 'experiment2.csv', index=False)

    return data_dir
