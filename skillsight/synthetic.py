"""
Synthetic Cohort Module
=======================

Generates realistic student records with correlated cognitive skills, used
for demos and tests when no CSV is available.
"""

import logging
from typing import List

import numpy as np
from sklearn.utils import check_random_state

from .data_loader import Record

logger = logging.getLogger(__name__)

FIRST_NAMES = [
    'Emma', 'Liam', 'Olivia', 'Noah', 'Ava', 'Oliver', 'Isabella', 'Elijah',
    'Sophia', 'William', 'Charlotte', 'James', 'Amelia', 'Benjamin', 'Mia',
    'Lucas', 'Harper', 'Henry', 'Evelyn', 'Alexander', 'Abigail', 'Mason',
    'Emily', 'Michael', 'Elizabeth', 'Ethan', 'Mila', 'Daniel', 'Ella',
    'Jacob', 'Avery', 'Logan', 'Sofia', 'Jackson', 'Camila', 'Levi',
]

LAST_NAMES = [
    'Smith', 'Johnson', 'Williams', 'Brown', 'Jones', 'Garcia', 'Miller',
    'Davis', 'Rodriguez', 'Martinez', 'Hernandez', 'Lopez', 'Gonzalez',
    'Wilson', 'Anderson', 'Thomas', 'Taylor', 'Moore', 'Jackson', 'Martin',
    'Lee', 'Perez', 'Thompson', 'White', 'Harris', 'Sanchez', 'Clark',
]

CLASSES = [
    'Computer Science A', 'Computer Science B', 'Mathematics A', 'Mathematics B',
    'Physics A', 'Physics B', 'Chemistry A', 'Chemistry B', 'Biology A', 'Biology B',
    'English Literature A', 'English Literature B', 'History A', 'History B',
]


def _clip(value: float, low: float, high: float) -> float:
    return float(min(high, max(low, value)))


def correlated_value(
    base: float,
    correlation: float,
    rng: np.random.RandomState,
    variance: float = 15.0
) -> float:
    """Value in [0, 100] that follows ``base`` with the given strength plus noise."""
    noise = (rng.random_sample() - 0.5) * variance * 2
    anchored = base * correlation
    value = anchored + noise + (rng.random_sample() - 0.5) * (100 - anchored)
    return _clip(value, 0, 100)


def generate_student(index: int, rng: np.random.RandomState) -> Record:
    """Generate the ``index``-th (zero based) synthetic student."""
    name = f"{FIRST_NAMES[rng.randint(len(FIRST_NAMES))]} {LAST_NAMES[rng.randint(len(LAST_NAMES))]}"
    group = CLASSES[rng.randint(len(CLASSES))]

    base_ability = _clip(rng.normal(65, 20), 20, 95)

    comprehension = _clip(rng.normal(base_ability, 12), 10, 100)
    attention = correlated_value(comprehension, 0.7, rng, 18)
    focus = correlated_value(attention, 0.8, rng, 15)
    retention = correlated_value(comprehension, 0.75, rng, 16)

    engagement = _clip(attention * 1.5 + rng.normal(20, 25), 30, 300)

    cognitive_average = (comprehension + attention + focus + retention) / 4
    assessment = _clip(
        cognitive_average * 0.8 + rng.normal(0, 8) + (engagement / 120) * 10,
        0, 100
    )

    return Record(
        student_id=f"STU{index + 1:04d}",
        name=name,
        group=group,
        comprehension=round(comprehension, 1),
        attention=round(attention, 1),
        focus=round(focus, 1),
        retention=round(retention, 1),
        assessment_score=round(assessment, 1),
        engagement_time=float(round(engagement)),
    )


def generate_cohort(count: int = 200, random_state=None) -> List[Record]:
    """
    Generate a synthetic cohort of students.

    Args:
        count: Number of students
        random_state: None, int seed or numpy RandomState

    Returns:
        List of records with ids STU0001, STU0002, ...
    """
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")

    rng = check_random_state(random_state)
    cohort = [generate_student(i, rng) for i in range(count)]
    logger.info(f"Generated synthetic cohort of {count} students")
    return cohort
