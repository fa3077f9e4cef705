"""
Test Suite for Cluster Engine
=============================

Tests for k-means initialization, convergence and assignment.
"""

import pytest
import numpy as np

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from skillsight.clustering import (
    kmeans, assign_clusters, update_centroids, euclidean_distances, KMeansResult,
)
from skillsight.exceptions import EmptyDatasetError


class FirstPointsRandomState(np.random.RandomState):
    """Random source that always picks the first k points as centroids."""

    def randint(self, low, high=None, size=None, dtype=int):
        return np.arange(size)


@pytest.fixture
def blobs():
    """Three well separated groups in 4 dimensions."""
    rng = np.random.RandomState(11)
    centers = np.array([[-3.0] * 4, [0.0] * 4, [3.0] * 4])
    return np.vstack([c + rng.randn(30, 4) * 0.3 for c in centers])


class TestAssignment:
    """Tests for the assignment and update steps."""

    def test_distances(self):
        points = np.array([[0.0, 0.0], [3.0, 4.0]])
        centroids = np.array([[0.0, 0.0]])
        np.testing.assert_allclose(euclidean_distances(points, centroids), [[0.0], [5.0]])

    def test_ties_go_to_lowest_index(self):
        points = np.array([[0.0, 0.0]])
        centroids = np.array([[1.0, 0.0], [-1.0, 0.0]])
        assert assign_clusters(points, centroids)[0] == 0

    def test_empty_cluster_keeps_position(self):
        points = np.array([[0.0], [1.0]])
        centroids = np.array([[0.5], [10.0]])
        labels = np.array([0, 0])

        updated = update_centroids(points, labels, centroids)
        np.testing.assert_allclose(updated, [[0.5], [10.0]])


class TestKMeans:
    """Tests for the kmeans function."""

    def test_returns_result(self, blobs):
        result = kmeans(blobs, k=3, random_state=0)

        assert isinstance(result, KMeansResult)
        assert result.centroids.shape == (3, 4)
        assert result.labels.shape == (90,)
        assert 1 <= result.n_iter <= 100

    @pytest.mark.parametrize("seed", range(10))
    def test_assignment_optimality(self, blobs, seed):
        """Test every point is at least as close to its centroid as to any other."""
        result = kmeans(blobs, k=3, random_state=seed)
        distances = euclidean_distances(blobs, result.centroids)
        assigned = distances[np.arange(len(blobs)), result.labels]

        assert np.all(assigned[:, np.newaxis] <= distances + 1e-9)

    def test_centroids_are_member_means_after_convergence(self, blobs):
        result = kmeans(blobs, k=3, random_state=FirstPointsRandomState())

        assert result.converged
        for cluster in np.unique(result.labels):
            np.testing.assert_allclose(
                result.centroids[cluster],
                blobs[result.labels == cluster].mean(axis=0)
            )

    def test_seed_is_reproducible(self, blobs):
        first = kmeans(blobs, k=3, random_state=5)
        second = kmeans(blobs, k=3, random_state=5)

        np.testing.assert_array_equal(first.labels, second.labels)
        np.testing.assert_array_equal(first.centroids, second.centroids)

    def test_accepts_random_state_instance(self, blobs):
        result = kmeans(blobs, k=2, random_state=np.random.RandomState(1))
        assert result.centroids.shape == (2, 4)

    def test_separates_two_points(self):
        data = np.array([[-1.0, -1.0], [1.0, 1.0]])
        result = kmeans(data, k=2, random_state=FirstPointsRandomState())

        assert result.converged
        np.testing.assert_array_equal(result.labels, [0, 1])
        np.testing.assert_allclose(result.centroids, data)

    def test_iteration_cap(self, blobs):
        """Test labels still match the returned centroids when capped."""
        result = kmeans(blobs, k=3, max_iter=1, random_state=FirstPointsRandomState())

        assert result.n_iter == 1
        assert not result.converged
        np.testing.assert_array_equal(result.labels, assign_clusters(blobs, result.centroids))

    def test_single_cluster(self, blobs):
        result = kmeans(blobs, k=1, random_state=0)

        assert np.all(result.labels == 0)
        np.testing.assert_allclose(result.centroids[0], blobs.mean(axis=0))

    def test_too_few_points(self):
        with pytest.raises(EmptyDatasetError):
            kmeans(np.zeros((2, 4)), k=3)

    @pytest.mark.parametrize("kwargs", [{'k': 0}, {'k': 2, 'max_iter': 0}])
    def test_invalid_parameters(self, blobs, kwargs):
        with pytest.raises(ValueError):
            kmeans(blobs, **kwargs)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
