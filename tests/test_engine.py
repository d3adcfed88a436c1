"""Tests for the batch Evaluator."""

import io
import threading

import pytest

from alignscan.config import EvalConfig
from alignscan.engine import STATUS_SCORED, STATUS_UNSCOREABLE, EvaluationSummary, Evaluator
from alignscan.report import parse_report_line
from alignscan.types import Measure


def _far(make_face, filename):
    """Prediction far enough from ``ground_truth`` to be a hard case."""
    return make_face(filename, [(1, (500, 0), 0.0), (2, (10, 500), 0.0)], bbox=(0, 0, 0, 100))


class _FailingStream(io.StringIO):
    def write(self, s):
        raise OSError("disk full")


class TestScoreFace:
    def test_scored(self, prediction, ground_truth):
        result, score = Evaluator().score_face(prediction, ground_truth)
        assert result.status == STATUS_SCORED
        assert result.scored
        assert result.mean_error == pytest.approx(0.01)
        assert result.num_landmarks == 2
        assert result.threshold == 4.0
        assert not result.is_hard
        assert score.mean_error == result.mean_error

    def test_pupils_without_eyes_is_unscoreable(self, prediction, ground_truth):
        stream = io.StringIO()
        evaluator = Evaluator(EvalConfig(measure=Measure.PUPILS), report_stream=stream)
        result, score = evaluator.score_face(prediction, ground_truth)
        assert score is None
        assert result.status == STATUS_UNSCOREABLE
        assert "13" in result.reason or "9" in result.reason
        assert stream.getvalue() == ""

    def test_empty_match_not_reported(self, make_face, ground_truth):
        stream = io.StringIO()
        pred = make_face("img/0001.jpg", [(42, (0, 0), 0.0)])
        result, score = Evaluator(report_stream=stream).score_face(pred, ground_truth)
        assert score is None
        assert result.status == STATUS_UNSCOREABLE
        assert result.num_landmarks == 0
        assert stream.getvalue() == ""

    def test_report_failure_is_face_scoped(self, prediction, ground_truth):
        result, score = Evaluator(report_stream=_FailingStream()).score_face(prediction, ground_truth)
        assert result.scored
        assert score is not None
        assert "disk full" in result.report_error

    def test_threshold_follows_config(self):
        assert Evaluator(EvalConfig(measure=Measure.PUPILS, database="wflw")).threshold == 10.0
        assert Evaluator(EvalConfig(measure=Measure.DIAGONAL, database="aflw")).threshold == 3.0


class TestEvaluate:
    def test_one_result_per_face_in_order(self, make_face, prediction, ground_truth):
        faces = [prediction, _far(make_face, "img/0001.jpg")]
        result = Evaluator().evaluate(faces, ground_truth)
        assert result.filename == "img/0001.jpg"
        assert [f.is_hard for f in result.faces] == [False, True]

    def test_no_predictions(self, ground_truth):
        result = Evaluator().evaluate([], ground_truth)
        assert result.faces == []

    def test_report_records_in_order(self, make_face, ground_truth):
        stream = io.StringIO()
        faces = [
            make_face("img/0001.jpg", [(2, (10, 1), 0.0)]),
            make_face("img/0001.jpg", [(1, (1, 0), 0.0)]),
        ]
        Evaluator(report_stream=stream).evaluate(faces, ground_truth)
        records = [parse_report_line(l) for l in stream.getvalue().splitlines()]
        assert [r.entries[0].feature_idx for r in records] == [2, 1]

    def test_hard_case_written(self, tmp_path, make_face, image_file):
        path = image_file("0001.jpg")
        gt = make_face(path, [(1, (0, 0), 0.0), (2, (10, 0), 0.0)], bbox=(0, 0, 0, 100))
        out = tmp_path / "hard"
        result = Evaluator(EvalConfig(output_dir=str(out))).evaluate([_far(make_face, path)], gt)
        face = result.faces[0]
        assert face.is_hard
        assert face.saved_path == (out / "0_0001.jpg").resolve()
        assert face.saved_path.exists()

    def test_missing_image_does_not_abort(self, tmp_path, make_face, prediction):
        gt = make_face(tmp_path / "missing.jpg", [(1, (0, 0), 0.0), (2, (10, 0), 0.0)], bbox=(0, 0, 0, 100))
        stream = io.StringIO()
        evaluator = Evaluator(EvalConfig(output_dir=str(tmp_path / "hard")), report_stream=stream)
        result = evaluator.evaluate([_far(make_face, gt.filename), prediction], gt)
        assert result.faces[0].is_hard
        assert result.faces[0].saved_path is None
        assert "Cannot read image" in result.faces[0].image_error
        assert result.faces[1].image_error == ""
        assert len(stream.getvalue().splitlines()) == 2

    def test_no_output_dir_writes_nothing(self, tmp_path, make_face, image_file):
        path = image_file("0001.jpg")
        gt = make_face(path, [(1, (0, 0), 0.0), (2, (10, 0), 0.0)], bbox=(0, 0, 0, 100))
        result = Evaluator().evaluate([_far(make_face, path)], gt)
        assert result.faces[0].is_hard
        assert result.faces[0].saved_path is None


class TestRun:
    def test_summary_counts(self, make_face, prediction, ground_truth):
        other_gt = make_face("img/0002.jpg", [(1, (0, 0), 0.0)], bbox=(0, 0, 0, 100))
        samples = [
            ([prediction, _far(make_face, "img/0001.jpg")], ground_truth),
            ([make_face("img/0002.jpg", [(9, (0, 0), 0.0)])], other_gt),
            ([], make_face("img/0003.jpg", [], bbox=(0, 0, 0, 100))),
        ]
        summary = Evaluator().run(samples)
        assert summary.images == 3
        assert summary.faces == 3
        assert summary.scored == 2
        assert summary.unscoreable == 1
        assert summary.hard == 1
        assert summary.mean_error == pytest.approx((0.01 + 5.0) / 2)
        assert not summary.cancelled

    def test_report_failure_does_not_abort(self, tmp_path, make_face, image_file, prediction, ground_truth, caplog):
        path = image_file("0001.jpg")
        gt = make_face(path, [(1, (0, 0), 0.0), (2, (10, 0), 0.0)], bbox=(0, 0, 0, 100))
        out = tmp_path / "hard"
        evaluator = Evaluator(EvalConfig(output_dir=str(out)), report_stream=_FailingStream())
        summary = evaluator.run([([_far(make_face, path)], gt), ([prediction], ground_truth)])
        assert summary.images == 2
        assert summary.scored == 2
        assert summary.hard == 1
        assert summary.report_errors == 2
        assert summary.saved_paths == [(out / "0_0001.jpg").resolve()]
        assert summary.saved_paths[0].exists()
        assert "Report record" in caplog.text

    def test_cancel_before_next_image(self, prediction, ground_truth):
        cancel = threading.Event()
        evaluated = []

        def samples():
            for _ in range(5):
                evaluated.append(1)
                if len(evaluated) == 2:
                    cancel.set()
                yield [prediction], ground_truth

        summary = Evaluator().run(samples(), cancel=cancel)
        assert summary.cancelled
        assert summary.images == 1

    def test_empty_batch(self):
        summary = Evaluator().run([])
        assert summary.images == 0
        assert summary.mean_error is None

    def test_summary_logged(self, prediction, ground_truth, caplog):
        with caplog.at_level("INFO", logger="alignscan.engine"):
            Evaluator().run([([prediction], ground_truth)])
        assert "Evaluated 1 faces in 1 images" in caplog.text


class TestEvaluationSummary:
    def test_defaults(self):
        summary = EvaluationSummary()
        assert summary.faces == 0
        assert summary.saved_paths == []
        assert summary.mean_error is None
