"""
Persona Assignment Module
=========================

Turns k-means clusters of students into ranked learning personas.

Clusters are ranked by the mean of their normalized centroid, so the label a
cluster receives never depends on the numeric id k-means happened to give it.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from .clustering import kmeans, assign_clusters, DEFAULT_CLUSTERS, DEFAULT_MAX_ITER
from .data_loader import Record, COGNITIVE_FEATURES, OUTCOME, feature_matrix
from .exceptions import EmptyDatasetError
from .normalizer import FeatureNormalizer, NormalizationStats

logger = logging.getLogger(__name__)


class Persona(NamedTuple):
    name: str
    description: str


DEFAULT_PERSONAS = (
    Persona("High Achievers", "Excellent performance across all cognitive skills"),
    Persona("Balanced Learners", "Good overall performance with consistent skills"),
    Persona("Developing Students", "Average performance with room for improvement"),
    Persona("Struggling Learners", "Lower performance requiring targeted support"),
)


@dataclass(frozen=True)
class ClusterSummary:
    """Persona label and aggregate profile of one cluster."""
    cluster_id: int
    rank: int
    persona: str
    description: str
    count: int
    avg_assessment_score: float
    characteristics: Dict[str, float]

    def __post_init__(self):
        object.__setattr__(self, 'characteristics', MappingProxyType(dict(self.characteristics)))


@dataclass(frozen=True)
class ClusterModel:
    """
    Fitted clustering state.

    ``centroids`` live in normalized space; ``summaries`` are ordered from the
    top-ranked persona down. Arrays are stored as read-only copies so a fitted
    model can be shared between threads.
    """
    centroids: np.ndarray
    stats: NormalizationStats
    labels: np.ndarray
    summaries: Tuple[ClusterSummary, ...]
    trained: bool = True

    def __post_init__(self):
        for name in ('centroids', 'labels'):
            array = np.array(getattr(self, name))
            array.setflags(write=False)
            object.__setattr__(self, name, array)
        object.__setattr__(self, 'summaries', tuple(self.summaries))

    def summary_for(self, cluster_id: int) -> ClusterSummary:
        for summary in self.summaries:
            if summary.cluster_id == cluster_id:
                return summary
        raise KeyError(cluster_id)

    def predict_cluster(self, record: Record) -> ClusterSummary:
        """Summary of the cluster whose centroid is nearest to ``record``."""
        point = self.stats.transform(feature_matrix([record], COGNITIVE_FEATURES))
        cluster_id = int(assign_clusters(point, self.centroids)[0])
        return self.summary_for(cluster_id)


def persona_index(rank: int, n_clusters: int, n_personas: int) -> int:
    """
    Map a cluster rank onto the ordered persona list.

    The top rank always gets the first persona and, with two or more
    clusters, the bottom rank gets the last one.
    """
    if n_clusters == 1:
        return 0
    return int(round(rank * (n_personas - 1) / (n_clusters - 1)))


def assign_personas(
    centroids: np.ndarray,
    labels: np.ndarray,
    records: Sequence[Record],
    stats: NormalizationStats,
    personas: Sequence[Persona] = DEFAULT_PERSONAS
) -> List[ClusterSummary]:
    """
    Rank clusters and build a summary for each one.

    Args:
        centroids: Normalized centroids of shape (k, 4)
        labels: Cluster id of each record
        records: Records that were clustered
        stats: Normalization used for clustering, to scale centroids back
        personas: Ordered persona definitions, best first

    Returns:
        Cluster summaries ordered from best to worst persona
    """
    k = centroids.shape[0]
    if k > len(personas):
        raise ValueError(f"Cannot label {k} clusters with {len(personas)} personas")

    averages = centroids.mean(axis=1)
    ranking = sorted(range(k), key=lambda cluster: -averages[cluster])
    original_units = stats.inverse_transform(centroids)
    outcomes = np.array([getattr(r, OUTCOME) for r in records], dtype=float)

    summaries = []
    for rank, cluster in enumerate(ranking):
        persona = personas[persona_index(rank, k, len(personas))]
        members = outcomes[labels == cluster]

        summaries.append(ClusterSummary(
            cluster_id=cluster,
            rank=rank,
            persona=persona.name,
            description=persona.description,
            count=int(len(members)),
            avg_assessment_score=float(members.mean()) if len(members) else 0.0,
            characteristics={
                name: float(value)
                for name, value in zip(COGNITIVE_FEATURES, original_units[cluster])
            },
        ))

    return summaries


class StudentClusterer:
    """
    Groups students into learning personas.

    Stateful facade around ``ClusterModel``; ``cluster`` replaces the stored
    model on every call.
    """

    def __init__(
        self,
        max_iter: int = DEFAULT_MAX_ITER,
        random_state=None,
        personas: Sequence[Persona] = DEFAULT_PERSONAS
    ):
        """
        Initialize the clusterer.

        Args:
            max_iter: Iteration cap for k-means
            random_state: None, int seed or numpy RandomState for initialization
            personas: Ordered persona definitions, best first
        """
        self.max_iter = max_iter
        self.random_state = random_state
        self.personas = tuple(personas)
        self.model: Optional[ClusterModel] = None

    def fit(self, records: Sequence[Record], k: int = DEFAULT_CLUSTERS) -> ClusterModel:
        """
        Cluster the records and return the fitted model.

        Raises:
            EmptyDatasetError: If there are fewer records than clusters
            ValueError: If k is not positive or exceeds the persona count
        """
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        if len(records) < k:
            raise EmptyDatasetError(f"Need at least {k} records to form {k} clusters, got {len(records)}")
        if k > len(self.personas):
            raise ValueError(f"Cannot label {k} clusters with {len(self.personas)} personas")

        logger.info("=" * 60)
        logger.info(f"CLUSTERING {len(records)} STUDENTS INTO {k} PERSONAS")
        logger.info("=" * 60)

        normalizer = FeatureNormalizer()
        points = normalizer.fit_transform(feature_matrix(records, COGNITIVE_FEATURES))

        result = kmeans(points, k=k, max_iter=self.max_iter, random_state=self.random_state)
        summaries = assign_personas(
            result.centroids, result.labels, records, normalizer.stats, self.personas
        )

        self.model = ClusterModel(
            centroids=result.centroids,
            stats=normalizer.stats,
            labels=result.labels,
            summaries=summaries,
        )

        logger.info(f"k-means finished after {result.n_iter} iterations (converged={result.converged})")
        for summary in summaries:
            logger.info(
                f"  - {summary.persona}: {summary.count} students, "
                f"avg score {summary.avg_assessment_score:.1f}"
            )

        return self.model

    def cluster(self, records: Sequence[Record], k: int = DEFAULT_CLUSTERS) -> List[ClusterSummary]:
        """Cluster the records and return the persona summaries."""
        return list(self.fit(records, k).summaries)

    def predict_cluster(self, record: Record) -> Optional[ClusterSummary]:
        """Persona of a new student, or None if nothing has been clustered yet."""
        if self.model is None:
            return None
        return self.model.predict_cluster(record)

    def get_clusters(self) -> List[ClusterSummary]:
        return list(self.model.summaries) if self.model is not None else []


def print_cluster_summary(summaries: Sequence[ClusterSummary]) -> None:
    """
    Print the persona table to console.

    Args:
        summaries: Cluster summaries from ``StudentClusterer.cluster``
    """
    print("\n" + "=" * 70)
    print("LEARNING PERSONAS")
    print("=" * 70)
    print(f"{'Persona':<22} {'Count':<8} {'Avg Score':<11} " +
          " ".join(f"{name[:5].title():<7}" for name in COGNITIVE_FEATURES))
    print("-" * 70)
    for summary in summaries:
        values = " ".join(f"{summary.characteristics[name]:<7.1f}" for name in COGNITIVE_FEATURES)
        print(f"{summary.persona:<22} {summary.count:<8} {summary.avg_assessment_score:<11.1f} {values}")
    print("=" * 70 + "\n")
