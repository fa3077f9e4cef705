"""
Regression Module
=================

Predicts assessment scores with a multivariate linear model fitted by the
normal equation, ``beta = (X^T X)^-1 X^T y``.

Features:
    - Intercept plus four cognitive skills and scaled engagement time
    - Optional ridge term when the design matrix is close to singular
    - Clipped predictions with a heuristic confidence score
    - Per-feature importance normalized to percentages
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Any, Optional, Sequence

import numpy as np

from .data_loader import Record, REGRESSION_FEATURES, OUTCOME, feature_matrix
from .exceptions import EmptyDatasetError, NotTrainedError
from .linalg import transpose, multiply, mat_vec, invert

logger = logging.getLogger(__name__)

# Engagement minutes are divided by this to keep magnitudes comparable with skills
ENGAGEMENT_SCALE = 100.0

SCORE_MIN = 0.0
SCORE_MAX = 100.0

CONFIDENCE_CENTER = 75.0
CONFIDENCE_MIN = 0.6
CONFIDENCE_MAX = 0.95

IMPORTANCE_MODES = ('coefficient', 'contribution')


def _feature_row(record: Record) -> np.ndarray:
    row = feature_matrix([record], REGRESSION_FEATURES)[0]
    row[-1] /= ENGAGEMENT_SCALE
    return row


def heuristic_confidence(prediction: float) -> float:
    """
    Confidence rewarding predictions near the typical score of 75.

    This is a fixed heuristic, not a statistical interval.
    """
    confidence = 1.0 - abs(prediction - CONFIDENCE_CENTER) / 100.0
    return float(min(CONFIDENCE_MAX, max(CONFIDENCE_MIN, confidence)))


def normalize_importance(weights: Dict[str, float]) -> Dict[str, float]:
    """Scale non-negative weights so they sum to 100."""
    total = sum(weights.values())
    if total == 0 or not np.isfinite(total):
        share = 100.0 / len(weights)
        return {name: share for name in weights}
    return {name: value / total * 100.0 for name, value in weights.items()}


@dataclass(frozen=True)
class Prediction:
    """Result of a single regression prediction."""
    predicted_score: float
    confidence: float
    feature_importance: Dict[str, float]


@dataclass(frozen=True)
class RegressionModel:
    """
    Fitted linear model.

    Instances are immutable and can be shared between threads for inference.
    """
    coefficients: Dict[str, float]
    intercept: float
    n_samples: int = 0
    ridge: float = 0.0
    trained: bool = field(default=True, init=False)

    def __post_init__(self):
        object.__setattr__(self, 'coefficients', MappingProxyType(dict(self.coefficients)))

    def raw_predict(self, record: Record) -> float:
        """Unclipped linear prediction."""
        row = _feature_row(record)
        weights = np.array([self.coefficients[f] for f in REGRESSION_FEATURES])
        return float(self.intercept + np.dot(weights, row))

    def feature_importance(
        self,
        record: Optional[Record] = None,
        mode: str = 'coefficient'
    ) -> Dict[str, float]:
        """
        Relative influence of each feature as percentages summing to 100.

        Args:
            record: Record used for contribution weighting
            mode: 'coefficient' uses |coefficient| (same for every record);
                'contribution' uses |coefficient * value| for ``record``
        """
        if mode not in IMPORTANCE_MODES:
            raise ValueError(f"Unknown importance mode: {mode}. Choose from: {IMPORTANCE_MODES}")

        if mode == 'contribution':
            if record is None:
                raise ValueError("Contribution importance needs a record")
            row = _feature_row(record)
            weights = {
                name: abs(self.coefficients[name] * value)
                for name, value in zip(REGRESSION_FEATURES, row)
            }
        else:
            weights = {name: abs(self.coefficients[name]) for name in REGRESSION_FEATURES}

        return normalize_importance(weights)

    def cohort_importance(self, records: Sequence[Record], mode: str = 'coefficient') -> Dict[str, float]:
        """Feature importance averaged over ``records``; still sums to 100."""
        if mode not in IMPORTANCE_MODES:
            raise ValueError(f"Unknown importance mode: {mode}. Choose from: {IMPORTANCE_MODES}")
        if mode == 'coefficient' or not records:
            return self.feature_importance()
        per_record = [self.feature_importance(record, mode) for record in records]
        return {
            name: float(np.mean([importance[name] for importance in per_record]))
            for name in REGRESSION_FEATURES
        }

    def predict(self, record: Record, importance: str = 'coefficient') -> Prediction:
        """
        Predict the assessment score for one (possibly partial) record.

        Args:
            record: Record with the feature values; missing fields read as 0
            importance: Feature importance mode, see ``feature_importance``

        Returns:
            Prediction with the score clipped to [0, 100]
        """
        raw = self.raw_predict(record)
        return Prediction(
            predicted_score=min(SCORE_MAX, max(SCORE_MIN, raw)),
            confidence=heuristic_confidence(raw),
            feature_importance=self.feature_importance(record, importance),
        )

    def predict_many(self, records: Sequence[Record]) -> np.ndarray:
        """Clipped predicted scores for several records."""
        if not records:
            return np.zeros(0)
        X = feature_matrix(records, REGRESSION_FEATURES)
        X[:, -1] /= ENGAGEMENT_SCALE
        weights = np.array([self.coefficients[f] for f in REGRESSION_FEATURES])
        return np.clip(self.intercept + X @ weights, SCORE_MIN, SCORE_MAX)

    def summary(self) -> Dict[str, Any]:
        return {
            'type': 'Linear Regression',
            'coefficients': dict(self.coefficients),
            'intercept': self.intercept,
            'trained': self.trained,
        }


def fit_normal_equation(X: np.ndarray, y: np.ndarray, ridge: float = 0.0) -> np.ndarray:
    """
    Solve least squares through the normal equation.

    Args:
        X: Design matrix whose first column is the intercept
        y: Target vector
        ridge: Value added to the diagonal of X^T X, except the intercept entry

    Returns:
        Coefficient vector, intercept first
    """
    Xt = transpose(X)
    XtX = multiply(Xt, X)
    if ridge > 0:
        penalty = np.eye(XtX.shape[0]) * ridge
        penalty[0, 0] = 0.0
        XtX = XtX + penalty
    return mat_vec(invert(XtX), mat_vec(Xt, y))


class RegressionPredictor:
    """
    Stateful facade over ``RegressionModel``.

    ``train`` stores the fitted model and also returns it; concurrent calls to
    ``train`` and ``predict`` on the same instance must be serialized by the
    caller.
    """

    def __init__(self, ridge: float = 0.0, importance: str = 'coefficient'):
        """
        Initialize the predictor.

        Args:
            ridge: Ridge penalty added before inversion (0 solves exactly)
            importance: Default feature importance mode
        """
        if ridge < 0:
            raise ValueError(f"ridge must be non-negative, got {ridge}")
        if importance not in IMPORTANCE_MODES:
            raise ValueError(f"Unknown importance mode: {importance}. Choose from: {IMPORTANCE_MODES}")

        self.ridge = ridge
        self.importance = importance
        self.model: Optional[RegressionModel] = None
        self.training_info: Dict[str, Any] = {}

    @property
    def is_trained(self) -> bool:
        return self.model is not None

    def train(self, records: Sequence[Record]) -> RegressionModel:
        """
        Fit the model on the given records.

        Args:
            records: Training records

        Returns:
            The fitted, immutable model

        Raises:
            EmptyDatasetError: If no records are given
            SingularMatrixError: If X^T X cannot be inverted
        """
        if len(records) == 0:
            raise EmptyDatasetError("Cannot train regression model on an empty dataset")

        start_time = datetime.now()

        logger.info("=" * 60)
        logger.info("STARTING REGRESSION TRAINING")
        logger.info("=" * 60)
        logger.info(f"Training samples: {len(records)}, ridge: {self.ridge}")

        features = feature_matrix(records, REGRESSION_FEATURES)
        features[:, -1] /= ENGAGEMENT_SCALE
        X = np.hstack([np.ones((len(records), 1)), features])
        y = feature_matrix(records, [OUTCOME])[:, 0]

        beta = fit_normal_equation(X, y, ridge=self.ridge)

        model = RegressionModel(
            coefficients={name: float(b) for name, b in zip(REGRESSION_FEATURES, beta[1:])},
            intercept=float(beta[0]),
            n_samples=len(records),
            ridge=self.ridge,
        )
        self.model = model

        end_time = datetime.now()
        duration = (end_time - start_time).total_seconds()
        self.training_info = {
            'training_duration_seconds': duration,
            'n_samples': len(records),
            'trained_at': end_time.isoformat(),
            'ridge': self.ridge,
        }

        logger.info(f"Intercept: {model.intercept:.4f}")
        for name, coef in model.coefficients.items():
            logger.info(f"  - {name}: {coef:.4f}")
        logger.info(f"REGRESSION TRAINING COMPLETE in {duration:.3f} seconds")

        return model

    def _require_model(self) -> RegressionModel:
        if self.model is None:
            raise NotTrainedError("Model must be trained before making predictions. Call train() first.")
        return self.model

    def predict(self, record: Record, importance: Optional[str] = None) -> Prediction:
        return self._require_model().predict(record, importance or self.importance)

    def predict_many(self, records: Sequence[Record]) -> np.ndarray:
        return self._require_model().predict_many(records)

    def summary(self) -> Dict[str, Any]:
        if self.model is None:
            return {'type': 'Linear Regression', 'coefficients': {}, 'intercept': 0.0, 'trained': False}
        return self.model.summary()


def print_model_summary(predictor: RegressionPredictor) -> None:
    """
    Print a summary of the trained model.

    Args:
        predictor: Trained predictor instance
    """
    summary = predictor.summary()

    print("\n" + "=" * 50)
    print("MODEL SUMMARY")
    print("=" * 50)
    print(f"Model Type: {summary['type']}")
    print(f"Trained: {summary['trained']}")
    if summary['trained']:
        print(f"Intercept: {summary['intercept']:.4f}")
        print("\nCoefficients:")
        for name, coef in summary['coefficients'].items():
            print(f"  - {name}: {coef:.4f}")
        importance = predictor.model.feature_importance()
        print("\nFeature Importance (%):")
        for name, value in sorted(importance.items(), key=lambda kv: -kv[1]):
            print(f"  - {name}: {value:.1f}")

    if predictor.training_info:
        print(f"\nTraining Info:")
        print(f"  - Duration: {predictor.training_info['training_duration_seconds']:.3f}s")
        print(f"  - Samples: {predictor.training_info['n_samples']}")

    print("=" * 50 + "\n")
