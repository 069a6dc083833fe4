"""
Reading experiment files and writing the summary report.

The loader takes its paths from an explicit LoaderConfig; nothing here depends
on the current working directory beyond what the caller passes in.
"""

from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from .summary_stats import ID_COLUMNS, RATE_COLUMNS, REPORT_COLUMNS, CONDITIONS, SchemaError

# One CSV per experiment
DEFAULT_FILES = ['experiment1.csv', 'experiment2.csv', 'experiment3.csv', 'experiment4.csv']

# Lower-cased header -> schema name ("Non-matching Member" and "Non-Matching Member" both occur)
CANONICAL_COLUMNS = {name.lower(): name for name in ID_COLUMNS + RATE_COLUMNS}


@dataclass
class LoaderConfig:
    """Where the experiment files live."""
    data_dir: Path = Path('data')
    file_names: list[str] = field(default_factory=lambda: list(DEFAULT_FILES))
    encoding: str = 'utf-8'

    def paths(self) -> list[Path]:
        return [Path(self.data_dir) / name for name in self.file_names]


def _canonical_name(column):
    stripped = str(column).strip()
    return CANONICAL_COLUMNS.get(stripped.lower(), stripped)


def read_experiment(file_path, encoding='utf-8', display=False):
    """Read one experiment CSV into the trial-record schema.

    Args:
        file_path: Path to the CSV file
        encoding: Text encoding of the file
        display: Whether to print a sample of the data

    Returns:
        DataFrame with Condition, ParticipantsID, the four rate columns and
        an Experiment column naming the source file
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Experiment file not found: {file_path.resolve()}")

    data = pd.read_csv(file_path, encoding=encoding)
    data.columns = [_canonical_name(col) for col in data.columns]

    missing = [col for col in ID_COLUMNS + RATE_COLUMNS if col not in data.columns]
    if missing:
        raise SchemaError(f"{file_path.name} is missing columns: {', '.join(missing)}")

    # Select by name so column order in the file does not matter
    data = data[ID_COLUMNS + RATE_COLUMNS].copy()
    if pd.api.types.is_string_dtype(data['Condition']):
        data['Condition'] = data['Condition'].str.strip()
    data['Experiment'] = file_path.stem

    if display:
        print(f"\n{file_path.name}: {len(data)} participants")
        print(data.head())

    return data


def load_experiments(config, display=False):
    """Read every configured experiment file and stack them into one table."""
    paths = config.paths()
    if not paths:
        raise ValueError("LoaderConfig lists no experiment files")

    frames = [read_experiment(path, encoding=config.encoding, display=display) for path in paths]
    data = pd.concat(frames, ignore_index=True)

    if display:
        print("\nParticipants per Condition:")
        print(data.groupby(['Experiment', 'Condition']).size().unstack(fill_value=0))

    return data


def format_report(table):
    """Render the summary table as fixed-width text."""
    two_decimals = '{:.2f}'.format
    formatters = {
        col: two_decimals
        for col in REPORT_COLUMNS
        if col.startswith(('Mean_', 'SD_')) or col in ('Cohens_d', 't_value')
    }
    formatters['p_value'] = '{:.2g}'.format
    return table.to_string(index=False, formatters=formatters)


def write_report(table, file_path):
    """Write a result table to CSV, creating the parent directory."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    table.to_csv(file_path, index=False)
    return file_path


def read_report(file_path):
    """Read a summary table written by write_report."""
    table = pd.read_csv(file_path)
    missing = [col for col in REPORT_COLUMNS if col not in table.columns]
    if missing:
        raise SchemaError(f"Report is missing columns: {', '.join(missing)}")

    for col in [f'N_{c}' for c in CONDITIONS] + ['df']:
        table[col] = table[col].astype(int)
    return table[REPORT_COLUMNS]
