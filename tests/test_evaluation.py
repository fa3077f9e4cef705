"""
Test Suite for Model Evaluation
===============================

Tests for splitting, metric calculation and the evaluation report.
"""

import json

import pytest
import numpy as np
from sklearn.metrics import r2_score as sk_r2, mean_squared_error

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from skillsight.evaluation import (
    split_records, calculate_metrics, evaluate_model, reliability_label, print_evaluation_report,
)
from skillsight.regression import RegressionPredictor
from skillsight.synthetic import generate_cohort


@pytest.fixture
def cohort():
    return generate_cohort(100, random_state=9)


class TestEvaluation:
    """Tests for evaluation helpers."""

    def test_split_sizes(self, cohort):
        train, test = split_records(cohort, test_size=0.2, random_state=0)

        assert len(train) == 80
        assert len(test) == 20
        assert set(r.student_id for r in train).isdisjoint(r.student_id for r in test)

    def test_split_reproducible(self, cohort):
        assert split_records(cohort, random_state=3) == split_records(cohort, random_state=3)

    def test_calculate_metrics(self):
        actual = np.array([50.0, 60.0, 70.0, 80.0])
        predicted = np.array([52.0, 58.0, 71.0, 79.0])
        metrics = calculate_metrics(actual, predicted)

        assert metrics['r2'] == pytest.approx(sk_r2(actual, predicted))
        assert metrics['mse'] == pytest.approx(mean_squared_error(actual, predicted))
        assert metrics['rmse'] == pytest.approx(np.sqrt(2.5))
        assert metrics['mae'] == pytest.approx(1.5)
        assert metrics['n_samples'] == 4

    @pytest.mark.parametrize("r2,label", [
        (0.95, 'High'), (0.7, 'Good'), (0.5, 'Moderate'), (0.1, 'Low'), (-2.0, 'Low'),
    ])
    def test_reliability_label(self, r2, label):
        assert reliability_label(r2) == label

    def test_evaluate_model(self, cohort, tmp_path):
        train, test = split_records(cohort, random_state=1)
        model = RegressionPredictor().train(train)

        result = evaluate_model(model, test, output_dir=str(tmp_path))

        assert result['metrics']['n_samples'] == len(test)
        assert result['predicted'].shape == (len(test),)
        assert result['metrics']['reliability'] in ('High', 'Good', 'Moderate', 'Low')

        with open(result['metrics_file']) as f:
            saved = json.load(f)
        assert saved['metrics']['r2'] == pytest.approx(result['metrics']['r2'])
        assert saved['model']['trained'] is True

    def test_evaluate_without_output(self, cohort):
        model = RegressionPredictor().train(cohort)
        result = evaluate_model(model, cohort)

        assert result['metrics_file'] is None
        assert result['metrics']['r2'] > 0

    def test_print_report(self, capsys):
        print_evaluation_report({'r2': 0.85, 'mse': 4.0, 'rmse': 2.0, 'mae': 1.5, 'n_samples': 10})
        out = capsys.readouterr().out

        assert "MODEL EVALUATION REPORT" in out
        assert "High model reliability" in out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
