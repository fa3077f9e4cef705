"""
Model Evaluation Module
=======================

Measures how well the regression predictor explains assessment scores.

Features:
    - Train/holdout splitting
    - R², MSE, RMSE, MAE calculation
    - Reliability label for dashboards
    - JSON metrics export and console report
"""

import logging
import json
from pathlib import Path
from typing import Dict, Any, List, Optional, Sequence, Tuple

import numpy as np
from sklearn.model_selection import train_test_split

from .data_loader import Record, OUTCOME
from .metrics import r2_score, mse, rmse, mae
from .regression import RegressionModel

logger = logging.getLogger(__name__)


def split_records(
    records: Sequence[Record],
    test_size: float = 0.2,
    random_state: Optional[int] = None
) -> Tuple[List[Record], List[Record]]:
    """
    Split records into training and holdout sets.

    Args:
        records: Full cohort
        test_size: Fraction of records held out
        random_state: Seed for the shuffle

    Returns:
        Tuple of (train_records, test_records)
    """
    train, test = train_test_split(list(records), test_size=test_size, random_state=random_state)
    logger.info(f"Split {len(records)} records into {len(train)} train / {len(test)} test")
    return list(train), list(test)


def calculate_metrics(actual, predicted) -> Dict[str, Any]:
    """
    Calculate evaluation metrics for one target.

    Args:
        actual: Ground truth values
        predicted: Predicted values

    Returns:
        Dictionary with r2, mse, rmse, mae and n_samples
    """
    return {
        'r2': r2_score(actual, predicted),
        'mse': mse(actual, predicted),
        'rmse': rmse(actual, predicted),
        'mae': mae(actual, predicted),
        'n_samples': int(len(actual)),
    }


def reliability_label(r2: float) -> str:
    """Coarse reliability label for an R² score."""
    if r2 > 0.8:
        return 'High'
    elif r2 > 0.6:
        return 'Good'
    elif r2 > 0.4:
        return 'Moderate'
    return 'Low'


def evaluate_model(
    model: RegressionModel,
    records: Sequence[Record],
    output_dir: Optional[str] = None
) -> Dict[str, Any]:
    """
    Evaluate a fitted model on the given records.

    Args:
        model: Fitted regression model
        records: Records with known assessment scores
        output_dir: Directory for the metrics JSON (optional)

    Returns:
        Dictionary containing metrics, predictions and the metrics file path
    """
    logger.info("=" * 60)
    logger.info("STARTING MODEL EVALUATION")
    logger.info("=" * 60)

    actual = np.array([getattr(r, OUTCOME) for r in records], dtype=float)
    predicted = model.predict_many(records)

    metrics = calculate_metrics(actual, predicted)
    metrics['reliability'] = reliability_label(metrics['r2'])

    result = {
        'metrics': metrics,
        'actual': actual,
        'predicted': predicted,
        'metrics_file': None,
    }

    if output_dir is not None:
        metrics_dir = Path(output_dir) / "metrics"
        metrics_dir.mkdir(parents=True, exist_ok=True)
        metrics_file = metrics_dir / "evaluation_metrics.json"
        with open(metrics_file, 'w') as f:
            json.dump({'metrics': metrics, 'model': model.summary()}, f, indent=2)
        logger.info(f"Metrics saved to {metrics_file}")
        result['metrics_file'] = str(metrics_file)

    logger.info("=" * 60)
    logger.info("EVALUATION COMPLETE")
    logger.info(f"  R²: {metrics['r2']:.4f}")
    logger.info(f"  MSE: {metrics['mse']:.4f}")
    logger.info(f"  MAE: {metrics['mae']:.4f}")
    logger.info("=" * 60)

    return result


def print_evaluation_report(metrics: Dict[str, Any]) -> None:
    """
    Print a formatted evaluation report to console.

    Args:
        metrics: Metrics dictionary from evaluate_model
    """
    print("\n" + "=" * 60)
    print("MODEL EVALUATION REPORT")
    print("=" * 60)
    print(f"  • R²: {metrics['r2']:.4f}")
    print(f"  • MSE: {metrics['mse']:.4f}")
    print(f"  • RMSE: {metrics['rmse']:.4f}")
    print(f"  • MAE: {metrics['mae']:.4f}")
    print(f"  • Samples evaluated: {metrics['n_samples']}")

    r2 = metrics['r2']
    print("\nInterpretation:")
    if r2 > 0.8:
        print("  ✓ High model reliability (R² > 0.8)")
    elif r2 > 0.6:
        print("  ✓ Good model reliability (R² > 0.6)")
    elif r2 > 0.4:
        print("  ⚠ Moderate model reliability (R² > 0.4)")
    else:
        print("  ✗ Low model reliability (R² ≤ 0.4)")

    print("=" * 60 + "\n")
