"""Tests for per-face aggregation and hard-case classification."""

import pytest

from alignscan.exceptions import EmptyMatchError, NormalizationError
from alignscan.metrics import NormalizedErrors
from alignscan.thresholds import (
    DEFAULT_THRESHOLD,
    ThresholdRule,
    classify,
    hard_case_threshold,
    score_errors,
)
from alignscan.types import Measure


class TestHardCaseThreshold:
    @pytest.mark.parametrize(
        "measure, database, expected",
        [
            (Measure.PUPILS, "wflw", 10.0),
            (Measure.HEIGHT, "wflw", 10.0),
            (Measure.DIAGONAL, "wflw", 10.0),
            (Measure.HEIGHT, "aflw", 4.0),
            (Measure.DIAGONAL, "aflw", 3.0),
            (Measure.PUPILS, "aflw", 8.0),
            (Measure.CORNERS, "300w_public", 8.0),
        ],
    )
    def test_default_table(self, measure, database, expected):
        assert hard_case_threshold(measure, database) == expected

    def test_unknown_database_uses_measure_rules(self):
        assert hard_case_threshold(Measure.HEIGHT, "not-a-dataset") == 4.0
        assert hard_case_threshold(Measure.CORNERS, "not-a-dataset") == DEFAULT_THRESHOLD

    def test_first_match_wins(self):
        rules = (
            ThresholdRule(threshold=1.0, measure=Measure.HEIGHT),
            ThresholdRule(threshold=2.0, database="wflw"),
        )
        assert hard_case_threshold(Measure.HEIGHT, "wflw", rules) == 1.0
        assert hard_case_threshold(Measure.PUPILS, "wflw", rules) == 2.0

    def test_rule_with_both_conditions(self):
        rule = ThresholdRule(threshold=5.0, database="cofw", measure=Measure.PUPILS)
        assert rule.matches(Measure.PUPILS, "cofw")
        assert not rule.matches(Measure.PUPILS, "aflw")
        assert not rule.matches(Measure.CORNERS, "cofw")

    def test_empty_rules_fall_back_to_default(self):
        assert hard_case_threshold(Measure.HEIGHT, "wflw", ()) == DEFAULT_THRESHOLD


class TestScoreErrors:
    def test_wflw_pupils_mean_12_is_hard(self):
        errors = NormalizedErrors(indices=(1, 2), errors=(11.0, 13.0))
        threshold = hard_case_threshold(Measure.PUPILS, "wflw")
        score = score_errors(errors, threshold)
        assert score.mean_error == pytest.approx(12.0)
        assert score.threshold == 10.0
        assert score.is_hard

    def test_equal_to_threshold_is_not_hard(self):
        score = score_errors(NormalizedErrors(indices=(1,), errors=(4.0,)), 4.0)
        assert not score.is_hard

    def test_empty_faults(self):
        with pytest.raises(EmptyMatchError):
            score_errors(NormalizedErrors(), 4.0)

    @pytest.mark.parametrize("k", [1.5, 2.0, 10.0])
    def test_monotonic_in_scale(self, k):
        base = NormalizedErrors(indices=(1, 2, 3), errors=(0.5, 2.0, 3.5))
        scaled = NormalizedErrors(indices=base.indices, errors=tuple(e * k for e in base.errors))
        a = score_errors(base, 3.0)
        b = score_errors(scaled, 3.0)
        assert b.mean_error >= a.mean_error
        assert b.is_hard or not a.is_hard


class TestClassify:
    def test_height_scenario(self, prediction, ground_truth):
        score = classify(prediction, ground_truth, Measure.HEIGHT, "aflw")
        assert score.errors.indices == (1, 2)
        assert score.mean_error == pytest.approx(0.01)
        assert score.threshold == 4.0
        assert not score.is_hard

    def test_diagonal_scenario(self, prediction, ground_truth):
        score = classify(prediction, ground_truth, Measure.DIAGONAL, "aflw")
        assert score.mean_error == pytest.approx(0.01)
        assert score.threshold == 3.0
        assert not score.is_hard

    def test_single_match_mean(self, make_face, ground_truth):
        pred = make_face("img/0001.jpg", [(1, (1, 0), 0.0)])
        score = classify(pred, ground_truth, Measure.HEIGHT, "aflw")
        assert score.errors.indices == (1,)
        assert score.mean_error == pytest.approx(0.01)

    def test_hard_face(self, make_face, ground_truth):
        # 500 px off on a 100 px face -> mean error 5.0 > 4.0
        pred = make_face("img/0001.jpg", [(1, (500, 0), 0.0), (2, (10, 500), 0.0)])
        score = classify(pred, ground_truth, Measure.HEIGHT, "aflw")
        assert score.mean_error == pytest.approx(5.0)
        assert score.is_hard

    def test_no_match_faults(self, make_face, ground_truth):
        pred = make_face("img/0001.jpg", [(77, (1, 0), 0.0)])
        with pytest.raises(EmptyMatchError):
            classify(pred, ground_truth, Measure.HEIGHT, "aflw")

    def test_undefined_measure_faults(self, prediction, ground_truth):
        with pytest.raises(NormalizationError):
            classify(prediction, ground_truth, Measure.CORNERS, "aflw")

    def test_each_hypothesis_is_independent(self, make_face, ground_truth):
        good = make_face("img/0001.jpg", [(1, (0, 0), 0.0), (2, (10, 0), 0.0)])
        bad = make_face("img/0001.jpg", [(1, (900, 0), 0.0), (2, (10, 900), 0.0)])
        assert not classify(good, ground_truth, Measure.HEIGHT, "aflw").is_hard
        assert classify(bad, ground_truth, Measure.HEIGHT, "aflw").is_hard
