# Posture Analyzer - per-frame keypoint-to-metrics pipeline
from collections import deque
from typing import Deque, List, Optional

from posture_metrics import config
from posture_metrics import logger
from posture_metrics.angle_calculator import calculate_angles, calculate_angles_with_validity
from posture_metrics.calibration import CalibrationManager
from posture_metrics.improvement import FixedReferenceEstimator, ImprovementEstimator
from posture_metrics.issue_detector import detect_posture_issues, prioritize_issues
from posture_metrics.keypoint_decoder import calculate_pose_score, decode_heatmaps
from posture_metrics.models import (
    AngleMetrics,
    AngleValidity,
    Pose,
    PostureIssue,
    PostureMetrics,
    PostureScore,
    PostureType,
    UserBaseline,
)
from posture_metrics.posture_classifier import detect_posture_type
from posture_metrics.scoring_engine import calculate_posture_score, get_default_optimal_angles
from posture_metrics.smoother import Smoother


class PostureAnalyzer:
    """
    One analysis session: owns the smoother state, the calibration window and
    the recent score history. Not safe for concurrent frame producers, use one
    analyzer per camera stream.

    The baseline is never stored here; callers pass their UserBaseline (or None)
    with every frame.
    """

    def __init__(
        self,
        enable_smoothing: bool = config.ENABLE_SMOOTHING,
        smoothing_factor: float = config.SMOOTHING_FACTOR,
        issue_detection_threshold: float = config.ISSUE_DETECTION_THRESHOLD,
        calibration_samples: int = config.CALIBRATION_MIN_SAMPLES,
        min_pose_confidence: float = config.MIN_POSE_CONFIDENCE,
        improvement_estimator: Optional[ImprovementEstimator] = None,
    ) -> None:
        self.enable_smoothing = enable_smoothing
        self.issue_detection_threshold = issue_detection_threshold
        self.min_pose_confidence = min_pose_confidence
        self.smoother = Smoother(smoothing_factor)
        self.calibration = CalibrationManager(calibration_samples)
        self.improvement_estimator = improvement_estimator or FixedReferenceEstimator()
        self._history: Deque[PostureScore] = deque(maxlen=config.TREND_WINDOW)

    def analyze_pose(self, pose: Pose, baseline: Optional[UserBaseline] = None) -> PostureMetrics:
        """
        Run smoothing, angles, classification, scoring and issue detection on one pose

        Args:
            pose: Decoded pose for this frame
            baseline: Caller-owned personal baseline, or None

        Returns:
            PostureMetrics with prioritized issues; duration is left for the caller
        """
        if self.enable_smoothing:
            pose = self.smoother.smooth(pose)

        posture_type = detect_posture_type(pose)
        angles, validity = calculate_angles_with_validity(pose)
        score = calculate_posture_score(pose, angles, baseline, posture_type)
        issues = prioritize_issues(
            detect_posture_issues(pose, angles, baseline, self.issue_detection_threshold)
        )

        improvement = self.improvement_estimator.estimate(score, baseline, list(self._history))
        self._history.append(score)

        if validity != AngleValidity.ALL:
            logger.log_debug("Angles Defaulted", {
                "missing": str(AngleValidity.ALL & ~validity),
                "keypoints": len(pose.keypoints),
            })

        return PostureMetrics(
            current_posture=score,
            issues=issues,
            angles=angles,
            angle_validity=int(validity),
            improvement=improvement,
        )

    def analyze_heatmaps(self, heatmaps, baseline: Optional[UserBaseline] = None) -> Optional[PostureMetrics]:
        """
        Decode a [height][width][14] heatmap volume and analyze it

        Returns None (frame skipped, smoother untouched) when pose confidence is
        below min_pose_confidence.

        Raises:
            SchemaMismatchError: malformed heatmap volume
        """
        pose = decode_heatmaps(heatmaps)
        pose = pose.model_copy(update={"score": calculate_pose_score(pose.keypoints)})

        if pose.score < self.min_pose_confidence:
            logger.log_debug("Frame Skipped - low pose confidence", {
                "score": f"{pose.score:.3f}",
                "min_pose_confidence": self.min_pose_confidence,
            })
            return None

        return self.analyze_pose(pose, baseline)

    def evaluate_posture(self, pose: Pose, baseline: Optional[UserBaseline] = None) -> PostureScore:
        """Score a single pose without touching the smoother or history"""
        angles = calculate_angles(pose)
        return calculate_posture_score(pose, angles, baseline)

    def detect_issues(self, pose: Pose, baseline: Optional[UserBaseline] = None) -> List[PostureIssue]:
        angles = calculate_angles(pose)
        return prioritize_issues(
            detect_posture_issues(pose, angles, baseline, self.issue_detection_threshold)
        )

    def get_optimal_angles(self, posture_type: PostureType,
                           baseline: Optional[UserBaseline] = None) -> AngleMetrics:
        if baseline is not None:
            return baseline.optimal_angles
        return get_default_optimal_angles(posture_type)

    def start_calibration(self) -> None:
        """New calibration session: empty the sample window and restart tracking"""
        self.calibration.reset()
        self.reset()
        logger.log_engine("Calibration Started", {
            "min_samples": self.calibration.min_samples,
            "smoothing": self.enable_smoothing,
        })

    def reset(self) -> None:
        """Restart tracking: clears the smoother and score history, keeps calibration"""
        self.smoother.reset()
        self._history.clear()
