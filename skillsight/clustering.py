"""
Cluster Engine Module
=====================

K-means partitioning of normalized feature vectors.

Centroids are initialized from k data points drawn with replacement. The
random source is injectable so runs can be reproduced.
"""

import logging
from dataclasses import dataclass

import numpy as np
from sklearn.utils import check_random_state

from .exceptions import EmptyDatasetError

logger = logging.getLogger(__name__)

DEFAULT_CLUSTERS = 4
DEFAULT_MAX_ITER = 100


@dataclass(frozen=True)
class KMeansResult:
    """Final centroids and the nearest-centroid label of every input point."""
    centroids: np.ndarray
    labels: np.ndarray
    n_iter: int
    converged: bool


def euclidean_distances(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Distance from every point to every centroid, shape (n_points, k)."""
    diff = points[:, np.newaxis, :] - centroids[np.newaxis, :, :]
    return np.sqrt(np.sum(diff * diff, axis=2))


def assign_clusters(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Label each point with its nearest centroid; ties go to the lowest index."""
    return np.argmin(euclidean_distances(points, centroids), axis=1)


def update_centroids(points: np.ndarray, labels: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    """Move each centroid to the mean of its members; empty clusters stay put."""
    new_centroids = centroids.copy()
    for cluster in range(centroids.shape[0]):
        members = points[labels == cluster]
        if len(members) > 0:
            new_centroids[cluster] = members.mean(axis=0)
    return new_centroids


def kmeans(
    data,
    k: int = DEFAULT_CLUSTERS,
    max_iter: int = DEFAULT_MAX_ITER,
    random_state=None
) -> KMeansResult:
    """
    Run Lloyd's k-means.

    Args:
        data: Array of shape (n_samples, n_features)
        k: Number of clusters
        max_iter: Maximum number of assignment passes
        random_state: None, int seed or numpy RandomState for initialization

    Returns:
        KMeansResult with centroids, labels and convergence info

    Raises:
        ValueError: If k or max_iter is not positive
        EmptyDatasetError: If there are fewer points than clusters
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")
    if max_iter < 1:
        raise ValueError(f"max_iter must be at least 1, got {max_iter}")

    points = np.asarray(data, dtype=float)
    if points.ndim != 2 or points.shape[0] < k:
        n = points.shape[0] if points.ndim == 2 else 0
        raise EmptyDatasetError(f"Need at least {k} records to form {k} clusters, got {n}")

    rng = check_random_state(random_state)
    centroids = points[rng.randint(0, points.shape[0], size=k)].copy()

    labels = None
    converged = False
    n_iter = 0

    for n_iter in range(1, max_iter + 1):
        new_labels = assign_clusters(points, centroids)

        if labels is not None and np.array_equal(new_labels, labels):
            converged = True
            break

        labels = new_labels
        centroids = update_centroids(points, labels, centroids)

    if not converged:
        # Labels must match the centroids that are returned
        labels = assign_clusters(points, centroids)
        logger.warning(f"k-means did not converge within {max_iter} iterations")
    else:
        logger.debug(f"k-means converged after {n_iter} iterations")

    return KMeansResult(
        centroids=centroids,
        labels=labels,
        n_iter=n_iter,
        converged=converged,
    )
