"""
Insights Module
===============

Cohort statistics and rule-based recommendations for educators.

Functions:
    - cohort_statistics: Averages, top/struggling counts and skill correlations
    - skill_correlations: Pearson correlation of each skill with the outcome
    - performance_level: Band an assessment score
    - performance_distribution: Student count per performance band
    - generate_insights: Rule-based insight list
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Sequence

import pandas as pd

from .data_loader import Record, REGRESSION_FEATURES, OUTCOME, records_to_frame
from .metrics import correlation
from .personas import ClusterSummary

logger = logging.getLogger(__name__)

TOP_PERFORMER_SCORE = 85
STRUGGLING_SCORE = 60

PERFORMANCE_LEVELS = [
    (90, 'Excellent'),
    (80, 'Good'),
    (70, 'Average'),
    (60, 'Below Average'),
]


@dataclass(frozen=True)
class Insight:
    id: str
    type: str
    title: str
    description: str
    recommendation: str
    actionable: bool = False


def performance_level(score: float) -> str:
    for threshold, level in PERFORMANCE_LEVELS:
        if score >= threshold:
            return level
    return 'Poor'


def performance_distribution(records: Sequence[Record]) -> Dict[str, int]:
    """Number of students in each performance band, best band first."""
    counts = {level: 0 for _, level in PERFORMANCE_LEVELS}
    counts['Poor'] = 0
    for record in records:
        counts[performance_level(getattr(record, OUTCOME))] += 1
    return counts


def skill_correlations(records: Sequence[Record]) -> Dict[str, float]:
    """Pearson correlation between each feature and the assessment score."""
    scores = [getattr(r, OUTCOME) for r in records]
    return {
        feature: correlation([getattr(r, feature) for r in records], scores)
        for feature in REGRESSION_FEATURES
    }


def cohort_statistics(records: Sequence[Record]) -> Dict[str, Any]:
    """
    Summary statistics of a cohort.

    An empty cohort yields zeros everywhere.
    """
    if not records:
        return {
            'total_students': 0,
            'average_score': 0.0,
            'averages': {feature: 0.0 for feature in REGRESSION_FEATURES},
            'top_performers': 0,
            'struggling_students': 0,
            'correlations': {feature: 0.0 for feature in REGRESSION_FEATURES},
            'performance_distribution': performance_distribution([]),
        }

    df = records_to_frame(records)
    return {
        'total_students': len(df),
        'average_score': float(df[OUTCOME].mean()),
        'averages': {feature: float(df[feature].mean()) for feature in REGRESSION_FEATURES},
        'top_performers': int((df[OUTCOME] >= TOP_PERFORMER_SCORE).sum()),
        'struggling_students': int((df[OUTCOME] < STRUGGLING_SCORE).sum()),
        'correlations': skill_correlations(records),
        'performance_distribution': performance_distribution(records),
    }


def class_averages(records: Sequence[Record]) -> pd.Series:
    """Mean assessment score per class, highest first."""
    df = records_to_frame(records)
    return df.groupby('class')[OUTCOME].mean().sort_values(ascending=False)


def _overall_performance(average: float) -> Insight:
    if average >= 85:
        return Insight(
            id='performance-excellent',
            type='success',
            title='Excellent Overall Performance',
            description=f"The class maintains an outstanding average score of {average:.1f}.",
            recommendation='Continue current teaching methodologies and share them with other classes.',
        )
    elif average >= 75:
        return Insight(
            id='performance-good',
            type='info',
            title='Good Performance with Growth Potential',
            description=f"Average score of {average:.1f} shows solid performance with room for improvement.",
            recommendation='Focus on strengthening weaker cognitive skills to push average above 85.',
            actionable=True,
        )
    return Insight(
        id='performance-needs-attention',
        type='warning',
        title='Performance Requires Attention',
        description=f"Average score of {average:.1f} indicates significant room for improvement.",
        recommendation='Implement targeted interventions and additional support programs.',
        actionable=True,
    )


def generate_insights(
    records: Sequence[Record],
    clusters: Optional[Sequence[ClusterSummary]] = None
) -> List[Insight]:
    """
    Derive rule-based insights from a cohort and, optionally, its personas.

    Args:
        records: Cohort records
        clusters: Persona summaries from the clusterer

    Returns:
        Insights in a fixed order: performance, key driver, struggling share,
        top performers, personas, engagement, class gap
    """
    if not records:
        return []

    stats = cohort_statistics(records)
    total = stats['total_students']
    insights = [_overall_performance(stats['average_score'])]

    skills = {k: v for k, v in stats['correlations'].items() if k != 'engagement_time'}
    key_skill = max(skills, key=skills.get)
    if skills[key_skill] > 0.7:
        r = skills[key_skill]
        insights.append(Insight(
            id='correlation-strong',
            type='success',
            title=f"{key_skill.title()} is Key Performance Driver",
            description=f"Strong correlation ({r:.3f}) between {key_skill} and assessment scores.",
            recommendation=f"Prioritize {key_skill} skill development in curriculum and teaching strategies.",
        ))

    struggling = stats['struggling_students']
    struggling_pct = struggling / total * 100
    if struggling_pct > 20:
        insights.append(Insight(
            id='struggling-high',
            type='danger',
            title='High Number of Struggling Students',
            description=f"{struggling} students ({struggling_pct:.1f}%) are performing below {STRUGGLING_SCORE}.",
            recommendation='Implement individualized learning plans and additional tutoring support.',
            actionable=True,
        ))
    elif struggling_pct > 10:
        insights.append(Insight(
            id='struggling-moderate',
            type='warning',
            title='Moderate Intervention Needed',
            description=f"{struggling} students ({struggling_pct:.1f}%) need additional support.",
            recommendation='Provide targeted support and monitor progress closely.',
            actionable=True,
        ))

    top_pct = stats['top_performers'] / total * 100
    if top_pct > 30:
        insights.append(Insight(
            id='top-performers-high',
            type='success',
            title='Strong Cohort of High Achievers',
            description=f"{stats['top_performers']} students ({top_pct:.1f}%) score {TOP_PERFORMER_SCORE} or above.",
            recommendation='Consider advanced enrichment programs to further challenge high achievers.',
        ))

    if clusters:
        largest = max(clusters, key=lambda c: c.count)
        insights.append(Insight(
            id='learning-personas',
            type='info',
            title='Diverse Learning Personas Identified',
            description=(
                f"Analysis reveals {len(clusters)} learning personas, with \"{largest.persona}\" "
                f"being the predominant group ({largest.count} students)."
            ),
            recommendation='Tailor teaching approaches to the different learning personas.',
        ))

    engagement = stats['correlations']['engagement_time']
    if abs(engagement) > 0.5:
        positive = engagement > 0
        insights.append(Insight(
            id='engagement-impact',
            type='success' if positive else 'warning',
            title=f"Study Engagement {'Positively' if positive else 'Negatively'} Impacts Performance",
            description=(
                f"{'Strong positive' if positive else 'Concerning negative'} correlation "
                f"({engagement:.3f}) between study time and assessment scores."
            ),
            recommendation=(
                'Encourage increased study engagement through interactive learning methods.' if positive
                else 'Investigate factors causing negative engagement-performance relationship.'
            ),
            actionable=True,
        ))

    averages = class_averages(records)
    if len(averages) > 1:
        gap = float(averages.iloc[0] - averages.iloc[-1])
        if gap > 15:
            best, worst = averages.index[0], averages.index[-1]
            insights.append(Insight(
                id='class-performance-gap',
                type='warning',
                title='Significant Performance Gap Between Classes',
                description=(
                    f"{gap:.1f} point difference between highest ({best}: {averages.iloc[0]:.1f}) "
                    f"and lowest ({worst}: {averages.iloc[-1]:.1f}) performing classes."
                ),
                recommendation=f"Analyze teaching methods in {best} and apply successful strategies to {worst}.",
                actionable=True,
            ))

    logger.info(f"Generated {len(insights)} insights for {total} students")
    return insights


def print_insights(
    insights: Sequence[Insight],
    correlations: Dict[str, float],
    distribution: Optional[Dict[str, int]] = None
) -> None:
    """
    Print skill correlations, performance bands and insights to console.

    Args:
        insights: Insights from generate_insights
        correlations: Skill correlations from skill_correlations
        distribution: Band counts from performance_distribution (optional)
    """
    print("\n" + "=" * 70)
    print("SKILL CORRELATIONS WITH ASSESSMENT SCORE")
    print("=" * 70)
    for feature, r in sorted(correlations.items(), key=lambda kv: -abs(kv[1])):
        bar = "█" * int(round(abs(r) * 20))
        print(f"  {feature:<17} {r:>7.3f}  {bar}")

    if distribution:
        total = sum(distribution.values())
        print("\nPERFORMANCE LEVELS")
        print("-" * 70)
        for level, count in distribution.items():
            share = count / total * 100 if total else 0.0
            print(f"  {level:<17} {count:>5}  ({share:.1f}%)")

    print("\nINSIGHTS")
    print("-" * 70)
    for insight in insights:
        marker = "!" if insight.actionable else "•"
        print(f"  {marker} [{insight.type}] {insight.title}")
        print(f"      {insight.description}")
        print(f"      → {insight.recommendation}")
    print("=" * 70 + "\n")
