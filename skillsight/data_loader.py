"""
Data Loader Module
==================

Handles configuration loading, CSV ingestion and record conversion.

Functions:
    - load_config: Load YAML configuration file
    - load_records: Load student records from CSV
    - records_to_frame / records_from_frame: Convert between records and DataFrames
    - get_data_summary: Generate basic statistics
"""

import logging
from pathlib import Path
from typing import Dict, Any, List, NamedTuple, Sequence

import pandas as pd
import numpy as np
import yaml

logger = logging.getLogger(__name__)

COGNITIVE_FEATURES = ['comprehension', 'attention', 'focus', 'retention']
REGRESSION_FEATURES = COGNITIVE_FEATURES + ['engagement_time']
OUTCOME = 'assessment_score'

REQUIRED_COLUMNS = COGNITIVE_FEATURES + [OUTCOME, 'engagement_time']


class Record(NamedTuple):
    """
    A single student observation.

    Numeric fields default to 0 so a partially known student can be built
    from keyword arguments and passed to ``predict``.
    """
    student_id: str = ''
    name: str = ''
    group: str = ''
    comprehension: float = 0.0
    attention: float = 0.0
    focus: float = 0.0
    retention: float = 0.0
    assessment_score: float = 0.0
    engagement_time: float = 0.0


def load_config(config_path: str = "config/config.yaml") -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Dictionary containing configuration parameters

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f) or {}

    logger.info(f"Loaded configuration from {config_path}")
    return config


def records_from_frame(df: pd.DataFrame) -> List[Record]:
    """
    Convert a DataFrame into a list of records.

    Columns ``student_id``, ``name`` and ``class`` (or ``group``) are optional;
    the cognitive features, engagement time and assessment score are required.

    Raises:
        ValueError: If a required column is missing
    """
    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}. Columns: {list(df.columns)}")

    group_col = 'class' if 'class' in df.columns else 'group' if 'group' in df.columns else None

    records = []
    for i, values in enumerate(df.to_dict('records')):
        records.append(Record(
            student_id=str(values.get('student_id', f"STU{i + 1:04d}")),
            name=str(values.get('name', '')),
            group=str(values[group_col]) if group_col else '',
            comprehension=float(values['comprehension']),
            attention=float(values['attention']),
            focus=float(values['focus']),
            retention=float(values['retention']),
            assessment_score=float(values['assessment_score']),
            engagement_time=float(values['engagement_time']),
        ))
    return records


def records_to_frame(records: Sequence[Record]) -> pd.DataFrame:
    """Convert records to a DataFrame using the CSV column layout."""
    df = pd.DataFrame(list(records), columns=list(Record._fields))
    return df.rename(columns={'group': 'class'})


def load_records(file_path: str) -> List[Record]:
    """
    Load student records from a CSV file.

    Args:
        file_path: Path to the CSV file

    Returns:
        List of records in file order

    Raises:
        FileNotFoundError: If data file doesn't exist
        ValueError: If a required column is missing
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")

    df = pd.read_csv(file_path)
    logger.info(f"Loaded data from {file_path}: {df.shape[0]} rows × {df.shape[1]} columns")

    return records_from_frame(df)


def save_records(records: Sequence[Record], file_path: str) -> str:
    """Write records to CSV and return the path."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    records_to_frame(records).to_csv(file_path, index=False)
    logger.info(f"Saved {len(records)} records to {file_path}")
    return str(file_path)


def get_data_summary(records: Sequence[Record]) -> Dict[str, Any]:
    """
    Generate summary statistics for the numeric record fields.

    Args:
        records: Records to summarize

    Returns:
        Dictionary containing summary statistics
    """
    df = records_to_frame(records)
    numeric = df[REQUIRED_COLUMNS]

    summary = {
        "n_records": len(df),
        "groups": sorted(df['class'].unique().tolist()) if len(df) else [],
        "statistics": {}
    }

    for col in numeric.columns:
        summary["statistics"][col] = {
            "mean": float(numeric[col].mean()),
            "std": float(numeric[col].std()),
            "min": float(numeric[col].min()),
            "50%": float(numeric[col].quantile(0.50)),
            "max": float(numeric[col].max()),
        }

    return summary


def print_data_summary(records: Sequence[Record]) -> None:
    """
    Print a formatted summary of the cohort to console.

    Args:
        records: Records to summarize
    """
    df = records_to_frame(records)

    print("\n" + "=" * 60)
    print("DATASET SUMMARY")
    print("=" * 60)
    print(f"Students: {len(df)}")
    print(f"Classes: {df['class'].nunique()}")
    print("\nBasic Statistics:")
    print("-" * 40)
    print(df[REQUIRED_COLUMNS].describe().round(2).to_string())
    print("=" * 60 + "\n")


def feature_matrix(records: Sequence[Record], features: Sequence[str]) -> np.ndarray:
    """Stack the named fields of each record into an (n, len(features)) array."""
    return np.array(
        [[float(getattr(record, f)) for f in features] for record in records],
        dtype=float,
    ).reshape(len(records), len(features))
