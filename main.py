#!/usr/bin/env python3
"""
SkillSight Learning Analytics - Main Pipeline
=============================================

Orchestrates the learning analytics pipeline over a cohort of students.

Phases:
    1. Data - Load a CSV cohort or generate a synthetic one
    2. Training - Fit the linear regression predictor
    3. Clustering - Group students into learning personas
    4. Evaluation - Holdout evaluation of the predictor
    5. Insights - Skill correlations and recommendations

Usage:
    # Run complete pipeline on a synthetic cohort
    python main.py

    # Run on your own data
    python main.py --data data/raw/students.csv

    # Run specific phase
    python main.py --data data/raw/students.csv --phase cluster
"""

import argparse
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Dict, Any, List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from skillsight.data_loader import Record, load_config, load_records, save_records, print_data_summary
from skillsight.synthetic import generate_cohort
from skillsight.regression import RegressionPredictor, print_model_summary
from skillsight.personas import StudentClusterer, print_cluster_summary
from skillsight.evaluation import split_records, evaluate_model, print_evaluation_report
from skillsight.insights import generate_insights, cohort_statistics, print_insights
from skillsight.reporting import generate_report

PHASES = ['data', 'train', 'cluster', 'evaluate', 'insights', 'all']


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None) -> None:
    """Configure logging for the pipeline."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir is not None:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(
            Path(log_dir) / f'pipeline_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        ))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def run_data(
    config: Dict[str, Any],
    data_path: Optional[str] = None,
    seed: Optional[int] = None
) -> List[Record]:
    """
    Execute Phase 1: load or generate the cohort.

    Args:
        config: Configuration dictionary
        data_path: CSV file with student records (optional)
        seed: Overrides the configured random state for generation

    Returns:
        List of student records
    """
    print("\n" + "=" * 70)
    print("PHASE 1: DATA")
    print("=" * 70)

    data_config = config.get('data', {})

    if data_path:
        records = load_records(data_path)
    else:
        random_state = seed if seed is not None else data_config.get('random_state')
        records = generate_cohort(data_config.get('synthetic_count', 200), random_state=random_state)
        generated_path = data_config.get('generated_path')
        if generated_path:
            save_records(records, generated_path)

    print_data_summary(records)
    return records


def run_training(records: List[Record], config: Dict[str, Any]) -> RegressionPredictor:
    """
    Execute Phase 2: fit the regression predictor on all records.

    Args:
        records: Training records
        config: Configuration dictionary

    Returns:
        Trained predictor
    """
    print("\n" + "=" * 70)
    print("PHASE 2: REGRESSION TRAINING")
    print("=" * 70)

    reg_config = config.get('regression', {})
    predictor = RegressionPredictor(
        ridge=reg_config.get('ridge', 0.0),
        importance=reg_config.get('importance', 'coefficient')
    )
    predictor.train(records)
    print_model_summary(predictor)

    sample = records[0]
    prediction = predictor.predict(sample)
    print(f"Sample prediction for {sample.student_id} ({sample.name or 'unnamed'}):")
    print(f"  • Predicted score: {prediction.predicted_score:.1f} (actual {sample.assessment_score:.1f})")
    print(f"  • Confidence: {prediction.confidence * 100:.0f}%")

    return predictor


def run_clustering(
    records: List[Record],
    config: Dict[str, Any],
    seed: Optional[int] = None
) -> StudentClusterer:
    """
    Execute Phase 3: group students into learning personas.

    Args:
        records: Cohort records
        config: Configuration dictionary
        seed: Overrides the configured random state for initialization

    Returns:
        Fitted clusterer
    """
    print("\n" + "=" * 70)
    print("PHASE 3: PERSONA CLUSTERING")
    print("=" * 70)

    cluster_config = config.get('clustering', {})
    clusterer = StudentClusterer(
        max_iter=cluster_config.get('max_iter', 100),
        random_state=seed if seed is not None else cluster_config.get('random_state')
    )
    summaries = clusterer.cluster(records, k=cluster_config.get('n_clusters', 4))
    print_cluster_summary(summaries)

    return clusterer


def run_evaluation(
    records: List[Record],
    config: Dict[str, Any],
    clusterer: Optional[StudentClusterer] = None
) -> Dict[str, Any]:
    """
    Execute Phase 4: train on a split and evaluate on the holdout.

    Args:
        records: Cohort records
        config: Configuration dictionary
        clusterer: Fitted clusterer whose personas are added to the report

    Returns:
        Evaluation result dictionary
    """
    print("\n" + "=" * 70)
    print("PHASE 4: MODEL EVALUATION")
    print("=" * 70)

    eval_config = config.get('evaluation', {})
    reg_config = config.get('regression', {})
    output_config = config.get('output', {})

    train, test = split_records(
        records,
        test_size=eval_config.get('test_size', 0.2),
        random_state=eval_config.get('random_state')
    )

    importance_mode = reg_config.get('importance', 'coefficient')
    predictor = RegressionPredictor(ridge=reg_config.get('ridge', 0.0), importance=importance_mode)
    model = predictor.train(train)

    result = evaluate_model(model, test, output_dir=output_config.get('reports_path', 'reports/'))
    print_evaluation_report(result['metrics'])

    result['figures'] = generate_report(
        output_config.get('figures_path', 'reports/figures/'),
        records,
        actual=result['actual'],
        predicted=result['predicted'],
        importance=model.cohort_importance(test, importance_mode),
        summaries=clusterer.get_clusters() if clusterer is not None else None
    )
    print(f"✓ {len(result['figures'])} figures saved to {output_config.get('figures_path', 'reports/figures/')}")

    return result


def run_insights(records: List[Record], clusterer: Optional[StudentClusterer] = None) -> Dict[str, Any]:
    """
    Execute Phase 5: correlations and recommendations.

    Args:
        records: Cohort records
        clusterer: Fitted clusterer (optional)

    Returns:
        Dictionary with correlations, performance bands and insights
    """
    print("\n" + "=" * 70)
    print("PHASE 5: INSIGHTS")
    print("=" * 70)

    clusters = clusterer.get_clusters() if clusterer is not None else None
    stats = cohort_statistics(records)
    insights = generate_insights(records, clusters)
    print_insights(insights, stats['correlations'], stats['performance_distribution'])

    return {
        'correlations': stats['correlations'],
        'performance_distribution': stats['performance_distribution'],
        'insights': insights,
    }


def run_full_pipeline(
    config: Dict[str, Any],
    data_path: Optional[str] = None,
    seed: Optional[int] = None
) -> Dict[str, Any]:
    """
    Execute all phases.

    Args:
        config: Configuration dictionary
        data_path: CSV file with student records (optional)
        seed: Random seed override

    Returns:
        Dictionary containing all phase results
    """
    print("\n" + "=" * 70)
    print("SKILLSIGHT LEARNING ANALYTICS PIPELINE")
    print(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    results = {'config': config}

    records = run_data(config, data_path, seed)
    results['records'] = records
    results['predictor'] = run_training(records, config)
    results['clusterer'] = run_clustering(records, config, seed)
    results['evaluation'] = run_evaluation(records, config, results['clusterer'])
    results['insights'] = run_insights(records, results['clusterer'])

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)
    print(f"  • Students: {len(records)}")
    print(f"  • Holdout R²: {results['evaluation']['metrics']['r2']:.4f}")
    print(f"  • Personas: {len(results['clusterer'].get_clusters())}")
    print(f"  • Insights: {len(results['insights']['insights'])}")
    print(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70 + "\n")

    return results


def run_single_phase(
    phase: str,
    config: Dict[str, Any],
    data_path: Optional[str] = None,
    seed: Optional[int] = None
) -> Any:
    """
    Execute a single phase, running the data phase first.

    Args:
        phase: Phase to run ('data', 'train', 'cluster', 'evaluate', 'insights')
        config: Configuration dictionary
        data_path: CSV file with student records (optional)
        seed: Random seed override

    Returns:
        Phase result
    """
    records = run_data(config, data_path, seed)

    if phase == 'data':
        return records
    elif phase == 'train':
        return run_training(records, config)
    elif phase == 'cluster':
        return run_clustering(records, config, seed)
    elif phase == 'evaluate':
        return run_evaluation(records, config)
    elif phase == 'insights':
        return run_insights(records, run_clustering(records, config, seed))
    else:
        raise ValueError(f"Unknown phase: {phase}. Choose from: {', '.join(PHASES)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Learning analytics pipeline: score prediction and learning personas",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  python main.py --data data/raw/students.csv
  python main.py --data data/raw/students.csv --phase cluster --seed 7
        """
    )

    parser.add_argument(
        '--data', '-d',
        type=str,
        default=None,
        help='Path to a student CSV file (default: generate a synthetic cohort)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default='config/config.yaml',
        help='Path to configuration file (default: config/config.yaml)'
    )

    parser.add_argument(
        '--phase', '-p',
        type=str,
        choices=PHASES,
        default='all',
        help='Phase to run (default: all)'
    )

    parser.add_argument(
        '--seed', '-s',
        type=int,
        default=None,
        help='Random seed for data generation and clustering'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point with argument parsing."""
    args = build_parser().parse_args(argv)

    if args.data and not Path(args.data).exists():
        print(f"Error: Data file not found: {args.data}")
        print("\nExpected format: CSV with comprehension, attention, focus, retention,")
        print("assessment_score and engagement_time columns")
        return 1

    if not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        return 1

    try:
        config = load_config(args.config)
        level = 'DEBUG' if args.verbose else config.get('logging', {}).get('level', 'INFO')
        setup_logging(level, config.get('logging', {}).get('log_dir'))

        if args.phase == 'all':
            run_full_pipeline(config, args.data, args.seed)
        else:
            run_single_phase(args.phase, config, args.data, args.seed)

        return 0

    except Exception as e:
        logging.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Pipeline failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
