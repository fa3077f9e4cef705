"""
Feature Normalizer Module
=========================

Z-score standardization of feature vectors for clustering.

The fitted mean and standard deviation are kept in an immutable
``NormalizationStats`` so the exact same scaling can be applied when a new
student is classified after training.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .exceptions import EmptyDatasetError, NotTrainedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizationStats:
    """Per-feature mean and standard deviation learned from training data."""
    mean: np.ndarray
    std: np.ndarray

    def __post_init__(self):
        for name in ('mean', 'std'):
            array = np.array(getattr(self, name), dtype=float)
            array.setflags(write=False)
            object.__setattr__(self, name, array)

    def transform(self, data) -> np.ndarray:
        return (np.asarray(data, dtype=float) - self.mean) / self.std

    def inverse_transform(self, data) -> np.ndarray:
        return np.asarray(data, dtype=float) * self.std + self.mean


class FeatureNormalizer:
    """
    Standardizes features to zero mean and unit variance.

    A feature with zero variance gets a standard deviation of 1 so it
    transforms to zeros instead of dividing by zero.
    """

    def __init__(self):
        self.stats: Optional[NormalizationStats] = None
        self._is_fitted = False

    def fit(self, data) -> 'FeatureNormalizer':
        """
        Learn per-feature mean and population standard deviation.

        Args:
            data: Array of shape (n_samples, n_features)

        Returns:
            Self for method chaining
        """
        data = np.asarray(data, dtype=float)
        if data.ndim != 2 or data.shape[0] == 0:
            raise EmptyDatasetError("Cannot fit normalizer on an empty dataset")

        mean = data.mean(axis=0)
        std = data.std(axis=0)
        std = np.where(std == 0, 1.0, std)

        self.stats = NormalizationStats(mean=mean, std=std)
        self._is_fitted = True
        logger.debug(f"Fitted normalizer: mean={np.round(mean, 3)}, std={np.round(std, 3)}")
        return self

    def transform(self, data) -> np.ndarray:
        """
        Convert values to z-scores using the fitted statistics.

        Args:
            data: Array of shape (n_samples, n_features) or a single vector

        Returns:
            Normalized numpy array of the same shape
        """
        if not self._is_fitted:
            raise NotTrainedError("Normalizer must be fitted before transform. Call fit() first.")
        return self.stats.transform(data)

    def fit_transform(self, data) -> np.ndarray:
        self.fit(data)
        return self.transform(data)

    def inverse_transform(self, data) -> np.ndarray:
        """Convert z-scores back to original units."""
        if not self._is_fitted:
            raise NotTrainedError("Normalizer must be fitted before inverse_transform.")
        return self.stats.inverse_transform(data)
