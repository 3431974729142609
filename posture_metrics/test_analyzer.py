import numpy as np
import pytest

from posture_metrics.analyzer import PostureAnalyzer
from posture_metrics.angle_calculator import calculate_angles
from posture_metrics.improvement import FixedReferenceEstimator, TrendImprovementEstimator
from posture_metrics.keypoint_decoder import SchemaMismatchError
from posture_metrics.models import (
    KEYPOINT_ORDER,
    AngleValidity,
    IssueSeverity,
    KeypointName,
    PostureIssueType,
    PostureType,
)
from posture_metrics.sample_poses import SITTING_LAYOUT, build_baseline, build_pose
from posture_metrics.scoring_engine import get_default_optimal_angles

GRID = 20


def own_baseline(pose):
    return build_baseline(**calculate_angles(pose).model_dump())


def peaked_heatmaps(layout=SITTING_LAYOUT, peak=10.0, floor=-10.0):
    volume = np.full((GRID, GRID, len(KEYPOINT_ORDER)), floor)
    for channel, name in enumerate(KEYPOINT_ORDER):
        x, y = layout[name]
        volume[round(y * GRID), round(x * GRID), channel] = peak
    return volume


def test_metrics_without_baseline(sitting_pose):
    analyzer = PostureAnalyzer()

    metrics = analyzer.analyze_pose(sitting_pose)

    assert metrics.current_posture.posture_type == PostureType.SITTING
    assert metrics.angles.neck_angle == pytest.approx(180.0)
    assert metrics.angles.spine_angle == pytest.approx(180.0)
    assert [i.type for i in metrics.issues] == [PostureIssueType.SLOUCHING, PostureIssueType.FORWARD_HEAD]
    assert all(i.severity == IssueSeverity.SEVERE for i in metrics.issues)
    assert metrics.improvement == 0.0
    assert metrics.duration == 0.0
    assert metrics.angle_validity == int(AngleValidity.ALL)


def test_baseline_matching_the_pose_scores_perfectly(sitting_pose):
    analyzer = PostureAnalyzer()

    metrics = analyzer.analyze_pose(sitting_pose, own_baseline(sitting_pose))

    assert metrics.current_posture.overall == 100
    assert metrics.issues == []
    # placeholder estimator: gain over the reference score of 70
    assert metrics.improvement == 30.0


def test_fixed_reference_never_negative(sitting_pose):
    estimator = FixedReferenceEstimator()
    score = PostureAnalyzer(enable_smoothing=False).evaluate_posture(sitting_pose)
    low = score.model_copy(update={"overall": 40})
    assert estimator.estimate(low, build_baseline(), []) == 0.0


def test_smoothing_carries_across_frames():
    analyzer = PostureAnalyzer(smoothing_factor=0.5)

    analyzer.analyze_pose(build_pose())
    analyzer.analyze_pose(build_pose(overrides={KeypointName.TOP: (0.7, 0.1)}))

    assert analyzer.smoother.previous.get(KeypointName.TOP).x == pytest.approx(0.6)


def test_smoothing_disabled_uses_raw_pose():
    analyzer = PostureAnalyzer(enable_smoothing=False)

    analyzer.analyze_pose(build_pose())
    analyzer.analyze_pose(build_pose(overrides={KeypointName.TOP: (0.7, 0.1)}))

    assert analyzer.smoother.previous is None


def test_missing_joints_are_reported_in_validity():
    analyzer = PostureAnalyzer()

    metrics = analyzer.analyze_pose(build_pose(drop=(KeypointName.LEFT_ELBOW,)))

    assert metrics.angles.shoulder_angle == 0.0
    assert metrics.angle_validity == int(AngleValidity.ALL & ~AngleValidity.SHOULDER)
    assert not metrics.angle_validity & AngleValidity.SHOULDER


def test_unknown_posture_when_core_joints_missing():
    analyzer = PostureAnalyzer()
    metrics = analyzer.analyze_pose(build_pose(drop=(KeypointName.LEFT_KNEE, KeypointName.RIGHT_KNEE)))
    assert metrics.current_posture.posture_type == PostureType.UNKNOWN


def test_low_confidence_heatmaps_are_skipped():
    analyzer = PostureAnalyzer()

    assert analyzer.analyze_heatmaps(np.zeros((GRID, GRID, 14))) is None
    assert analyzer.smoother.previous is None


def test_strong_heatmaps_are_analyzed():
    analyzer = PostureAnalyzer()

    metrics = analyzer.analyze_heatmaps(peaked_heatmaps())

    assert metrics is not None
    assert metrics.current_posture.posture_type == PostureType.SITTING
    assert metrics.angle_validity == int(AngleValidity.ALL)
    assert analyzer.smoother.previous.score > 0.99


def test_malformed_heatmaps_raise():
    analyzer = PostureAnalyzer()
    with pytest.raises(SchemaMismatchError):
        analyzer.analyze_heatmaps(np.zeros((GRID, GRID, 17)))


def test_joint_lost_mid_stream_degrades(sitting_pose):
    analyzer = PostureAnalyzer()
    analyzer.analyze_pose(sitting_pose)

    metrics = analyzer.analyze_pose(build_pose(drop=(KeypointName.LEFT_ELBOW,)))

    assert metrics.angles.shoulder_angle == 0.0
    assert metrics.angle_validity == int(AngleValidity.ALL & ~AngleValidity.SHOULDER)
    assert metrics.angles.neck_angle == pytest.approx(180.0)

    recovered = analyzer.analyze_pose(sitting_pose)
    assert recovered.angle_validity == int(AngleValidity.ALL)


def test_trend_estimator_follows_history(sitting_pose):
    analyzer = PostureAnalyzer(enable_smoothing=False, improvement_estimator=TrendImprovementEstimator())
    baseline = own_baseline(sitting_pose)
    worse = build_pose(overrides={KeypointName.TOP: (0.6, 0.15)})
    worse_score = analyzer.evaluate_posture(worse, baseline).overall

    first = analyzer.analyze_pose(worse, baseline)
    second = analyzer.analyze_pose(sitting_pose, baseline)

    assert worse_score < 100
    assert first.improvement == 0.0
    assert second.improvement == pytest.approx(100 - worse_score)


def test_evaluate_posture_leaves_state_untouched(sitting_pose):
    analyzer = PostureAnalyzer()

    score = analyzer.evaluate_posture(sitting_pose)

    assert score.posture_type == PostureType.SITTING
    assert analyzer.smoother.previous is None


def test_detect_issues_is_prioritized(sitting_pose):
    analyzer = PostureAnalyzer()
    issues = analyzer.detect_issues(sitting_pose)
    assert [i.type for i in issues] == [PostureIssueType.SLOUCHING, PostureIssueType.FORWARD_HEAD]


def test_get_optimal_angles():
    analyzer = PostureAnalyzer()
    baseline = build_baseline(neck_angle=8.0)

    assert analyzer.get_optimal_angles(PostureType.STANDING) == get_default_optimal_angles(PostureType.STANDING)
    assert analyzer.get_optimal_angles(PostureType.STANDING, baseline).neck_angle == 8.0


def test_start_calibration_clears_window_and_tracking(sitting_pose):
    analyzer = PostureAnalyzer(calibration_samples=2)
    analyzer.calibration.add_sample(sitting_pose)
    analyzer.analyze_pose(sitting_pose)

    analyzer.start_calibration()

    assert analyzer.calibration.get_samples() == []
    assert analyzer.smoother.previous is None


def test_reset_keeps_calibration(sitting_pose):
    analyzer = PostureAnalyzer(calibration_samples=2)
    analyzer.calibration.add_sample(sitting_pose)
    analyzer.analyze_pose(sitting_pose)

    analyzer.reset()

    assert len(analyzer.calibration.get_samples()) == 1
    assert analyzer.smoother.previous is None
