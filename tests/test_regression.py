"""
Test Suite for Regression Predictor
===================================

Tests for normal-equation training, prediction bounds and feature importance.
"""

import pytest
import numpy as np
from sklearn.linear_model import LinearRegression

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from skillsight.data_loader import Record, REGRESSION_FEATURES
from skillsight.regression import (
    RegressionPredictor, RegressionModel, Prediction,
    heuristic_confidence, normalize_importance,
)
from skillsight.exceptions import NotTrainedError, EmptyDatasetError, SingularMatrixError
from skillsight.metrics import r2_score
from skillsight.synthetic import generate_cohort


def make_record(comprehension, attention, focus, retention, engagement_time, score=0.0, i=0):
    return Record(
        student_id=f"STU{i + 1:04d}",
        comprehension=comprehension,
        attention=attention,
        focus=focus,
        retention=retention,
        engagement_time=engagement_time,
        assessment_score=score,
    )


@pytest.fixture
def linear_records():
    """Noise-free records following score = 2*comprehension + 3*attention + 1."""
    rng = np.random.RandomState(7)
    records = []
    for i in range(12):
        c, a = rng.uniform(0, 15, 2)
        f, r = rng.uniform(0, 100, 2)
        e = rng.uniform(30, 300)
        records.append(make_record(c, a, f, r, e, score=2 * c + 3 * a + 1, i=i))
    return records


@pytest.fixture
def cohort():
    return generate_cohort(150, random_state=3)


class TestTraining:
    """Tests for RegressionPredictor.train."""

    def test_exact_recovery(self, linear_records):
        """Test noise-free linear data is recovered exactly."""
        model = RegressionPredictor().train(linear_records)

        assert model.intercept == pytest.approx(1.0, abs=1e-6)
        assert model.coefficients['comprehension'] == pytest.approx(2.0, abs=1e-6)
        assert model.coefficients['attention'] == pytest.approx(3.0, abs=1e-6)
        assert model.coefficients['focus'] == pytest.approx(0.0, abs=1e-6)
        assert model.coefficients['retention'] == pytest.approx(0.0, abs=1e-6)
        assert model.coefficients['engagement_time'] == pytest.approx(0.0, abs=1e-6)

    def test_perfect_r2(self, linear_records):
        model = RegressionPredictor().train(linear_records)
        predicted = model.predict_many(linear_records)
        actual = [r.assessment_score for r in linear_records]

        assert r2_score(actual, predicted) == pytest.approx(1.0, abs=1e-9)

    def test_matches_sklearn(self, cohort):
        """Test coefficients agree with scikit-learn's least squares."""
        model = RegressionPredictor().train(cohort)

        X = np.array([[getattr(r, f) for f in REGRESSION_FEATURES] for r in cohort])
        X[:, -1] /= 100.0
        y = np.array([r.assessment_score for r in cohort])
        reference = LinearRegression().fit(X, y)

        assert model.intercept == pytest.approx(reference.intercept_, abs=1e-5)
        np.testing.assert_allclose(
            [model.coefficients[f] for f in REGRESSION_FEATURES],
            reference.coef_,
            atol=1e-5
        )

    def test_train_returns_stored_model(self, cohort):
        predictor = RegressionPredictor()
        model = predictor.train(cohort)

        assert isinstance(model, RegressionModel)
        assert predictor.model is model
        assert predictor.is_trained
        assert model.trained
        assert model.n_samples == len(cohort)

    def test_retrain_replaces_model(self, cohort, linear_records):
        predictor = RegressionPredictor()
        first = predictor.train(cohort)
        second = predictor.train(linear_records)

        assert predictor.model is second
        assert first.coefficients != second.coefficients

    def test_model_is_immutable(self, linear_records):
        model = RegressionPredictor().train(linear_records)
        with pytest.raises(AttributeError):
            model.intercept = 5.0
        with pytest.raises(TypeError):
            model.coefficients['focus'] = 100.0

    def test_empty_dataset(self):
        with pytest.raises(EmptyDatasetError):
            RegressionPredictor().train([])

    def test_duplicate_rows_are_singular(self):
        """Test identical records make X^T X singular."""
        records = [make_record(50, 60, 70, 80, 120, score=75, i=i) for i in range(10)]
        with pytest.raises(SingularMatrixError):
            RegressionPredictor().train(records)

    def test_collinear_features_are_singular(self, cohort):
        """Test a feature copied from another one is rejected."""
        records = [r._replace(focus=r.attention) for r in cohort]
        with pytest.raises(SingularMatrixError):
            RegressionPredictor().train(records)

    def test_ridge_handles_collinear_features(self, cohort):
        """Test a ridge penalty makes collinear data trainable."""
        records = [r._replace(focus=r.attention) for r in cohort]
        model = RegressionPredictor(ridge=1.0).train(records)

        assert model.ridge == 1.0
        assert all(np.isfinite(v) for v in model.coefficients.values())
        assert model.coefficients['focus'] == pytest.approx(model.coefficients['attention'], rel=1e-6)

    def test_negative_ridge(self):
        with pytest.raises(ValueError, match="non-negative"):
            RegressionPredictor(ridge=-1.0)


class TestPrediction:
    """Tests for RegressionPredictor.predict."""

    def test_predict_before_train(self):
        """Test that predict raises error before train."""
        with pytest.raises(NotTrainedError, match="must be trained"):
            RegressionPredictor().predict(Record(comprehension=50))

    def test_predict_many_before_train(self):
        with pytest.raises(NotTrainedError):
            RegressionPredictor().predict_many([Record()])

    def test_untrained_summary(self):
        summary = RegressionPredictor().summary()
        assert summary['trained'] is False
        assert summary['coefficients'] == {}

    def test_predict_value(self, linear_records):
        predictor = RegressionPredictor()
        predictor.train(linear_records)
        prediction = predictor.predict(Record(comprehension=10, attention=5))

        assert isinstance(prediction, Prediction)
        assert prediction.predicted_score == pytest.approx(36.0, abs=1e-6)

    def test_partial_record_defaults_to_zero(self, linear_records):
        """Test missing features read as zero."""
        predictor = RegressionPredictor()
        predictor.train(linear_records)

        assert predictor.predict(Record()).predicted_score == pytest.approx(1.0, abs=1e-6)

    @pytest.mark.parametrize("value", [-1000.0, -5.0, 0.0, 37.0, 100.0, 250.0, 1e6])
    def test_bounds(self, cohort, value):
        """Test score and confidence stay in range for any input magnitude."""
        predictor = RegressionPredictor()
        predictor.train(cohort)
        record = Record(comprehension=value, attention=value, focus=value,
                        retention=value, engagement_time=value)
        prediction = predictor.predict(record)

        assert 0.0 <= prediction.predicted_score <= 100.0
        assert 0.6 <= prediction.confidence <= 0.95

    def test_importance_sums_to_100(self, cohort):
        predictor = RegressionPredictor()
        predictor.train(cohort)
        importance = predictor.predict(cohort[0]).feature_importance

        assert set(importance) == set(REGRESSION_FEATURES)
        assert all(v >= 0 for v in importance.values())
        assert sum(importance.values()) == pytest.approx(100.0, abs=1e-6)

    def test_coefficient_importance_is_global(self, cohort):
        """Test coefficient importance does not depend on the record."""
        predictor = RegressionPredictor()
        predictor.train(cohort)

        assert predictor.predict(cohort[0]).feature_importance == \
            predictor.predict(cohort[1]).feature_importance

    def test_contribution_importance(self, linear_records):
        """Test contribution importance weights by the record's own values."""
        predictor = RegressionPredictor(importance='contribution')
        predictor.train(linear_records)
        importance = predictor.predict(Record(comprehension=30, attention=0)).feature_importance

        assert importance['comprehension'] == pytest.approx(100.0, abs=1e-3)
        assert sum(importance.values()) == pytest.approx(100.0, abs=1e-6)

    def test_cohort_importance(self, cohort):
        model = RegressionPredictor().train(cohort)

        assert model.cohort_importance(cohort[:5]) == model.feature_importance()

        averaged = model.cohort_importance(cohort[:5], mode='contribution')
        expected = np.mean(
            [model.feature_importance(r, 'contribution')['focus'] for r in cohort[:5]]
        )
        assert averaged['focus'] == pytest.approx(expected)
        assert sum(averaged.values()) == pytest.approx(100.0)

    def test_unknown_importance_mode(self):
        with pytest.raises(ValueError, match="importance mode"):
            RegressionPredictor(importance='shap')

    def test_model_predict_matches_facade(self, cohort):
        predictor = RegressionPredictor()
        model = predictor.train(cohort)

        assert model.predict(cohort[5]) == predictor.predict(cohort[5])
        np.testing.assert_allclose(
            model.predict_many(cohort[:10]),
            [predictor.predict(r).predicted_score for r in cohort[:10]]
        )


class TestHelpers:
    """Tests for confidence and importance helpers."""

    @pytest.mark.parametrize("prediction,expected", [
        (75.0, 0.95),
        (70.0, 0.95),
        (50.0, 0.75),
        (100.0, 0.75),
        (0.0, 0.6),
        (10.0, 0.6),
    ])
    def test_heuristic_confidence(self, prediction, expected):
        assert heuristic_confidence(prediction) == pytest.approx(expected)

    def test_normalize_importance(self):
        assert normalize_importance({'a': 1.0, 'b': 3.0}) == {'a': 25.0, 'b': 75.0}

    def test_normalize_all_zero_weights(self):
        """Test all-zero weights are split equally."""
        result = normalize_importance({'a': 0.0, 'b': 0.0, 'c': 0.0, 'd': 0.0})
        assert result == {'a': 25.0, 'b': 25.0, 'c': 25.0, 'd': 25.0}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
