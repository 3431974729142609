# Issue Detector - rule-based posture defect detection and prioritization
import uuid
from typing import List, Optional, Sequence, Tuple

from posture_metrics import config
from posture_metrics import logger
from posture_metrics.models import (
    AngleMetrics,
    IssueSeverity,
    KeypointName,
    Pose,
    PostureIssue,
    PostureIssueType,
    UserBaseline,
)
from posture_metrics.utils import calculate_angle_deviation


def classify_severity(value: float, bands: Sequence[Tuple[float, IssueSeverity]]) -> IssueSeverity:
    """Bands are (strict lower bound, severity), checked from most severe down"""
    for bound, severity in bands:
        if value > bound:
            return severity
    return IssueSeverity.MILD


def _build_issue(issue_type: PostureIssueType, severity: IssueSeverity,
                 angle: Optional[float] = None, threshold: Optional[float] = None) -> PostureIssue:
    rule = config.ISSUE_RULES[issue_type]
    return PostureIssue(
        id=f"{issue_type.value}-{uuid.uuid4().hex}",
        type=issue_type,
        severity=severity,
        body_part=rule["body_part"],
        description=rule["description"],
        recommendation=rule["recommendation"],
        angle=angle,
        threshold=threshold,
    )


def detect_forward_head(angles: AngleMetrics, baseline: Optional[UserBaseline]) -> Optional[PostureIssue]:
    optimal = baseline.optimal_angles.neck_angle if baseline is not None else config.DEFAULT_OPTIMAL_NECK_ANGLE
    deviation = calculate_angle_deviation(angles.neck_angle, optimal)

    if deviation <= config.ANGLE_ISSUE_TRIGGER:
        return None

    severity = classify_severity(deviation, config.ANGLE_SEVERITY_BANDS)
    return _build_issue(PostureIssueType.FORWARD_HEAD, severity, angles.neck_angle, optimal)


def detect_rounded_shoulders(pose: Pose) -> Optional[PostureIssue]:
    left_shoulder = pose.get(KeypointName.LEFT_SHOULDER)
    right_shoulder = pose.get(KeypointName.RIGHT_SHOULDER)
    neck = pose.get(KeypointName.NECK)

    if not (left_shoulder and right_shoulder and neck):
        return None

    # Horizontal offset of the shoulder midpoint from the neck
    offset = abs((left_shoulder.x + right_shoulder.x) / 2 - neck.x)

    if offset <= config.OFFSET_ISSUE_TRIGGER:
        return None

    severity = classify_severity(offset, config.OFFSET_SEVERITY_BANDS)
    return _build_issue(PostureIssueType.ROUNDED_SHOULDERS, severity)


def detect_slouching(angles: AngleMetrics, baseline: Optional[UserBaseline]) -> Optional[PostureIssue]:
    optimal = baseline.optimal_angles.spine_angle if baseline is not None else config.DEFAULT_OPTIMAL_SPINE_ANGLE
    deviation = calculate_angle_deviation(angles.spine_angle, optimal)

    if deviation <= config.ANGLE_ISSUE_TRIGGER:
        return None

    severity = classify_severity(deviation, config.ANGLE_SEVERITY_BANDS)
    return _build_issue(PostureIssueType.SLOUCHING, severity, angles.spine_angle, optimal)


def _detect_uneven_pair(pose: Pose, left: KeypointName, right: KeypointName,
                        issue_type: PostureIssueType) -> Optional[PostureIssue]:
    left_kp = pose.get(left)
    right_kp = pose.get(right)

    if not (left_kp and right_kp):
        return None

    difference = abs(left_kp.y - right_kp.y)

    if difference <= config.OFFSET_ISSUE_TRIGGER:
        return None

    severity = classify_severity(difference, config.OFFSET_SEVERITY_BANDS)
    return _build_issue(issue_type, severity)


def detect_uneven_hips(pose: Pose) -> Optional[PostureIssue]:
    return _detect_uneven_pair(pose, KeypointName.LEFT_HIP, KeypointName.RIGHT_HIP,
                               PostureIssueType.UNEVEN_HIPS)


def detect_uneven_shoulders(pose: Pose) -> Optional[PostureIssue]:
    return _detect_uneven_pair(pose, KeypointName.LEFT_SHOULDER, KeypointName.RIGHT_SHOULDER,
                               PostureIssueType.UNEVEN_SHOULDERS)


def passes_threshold(issue: PostureIssue, threshold: float) -> bool:
    # Inclusive cascade: moderate passes at <= 0.5, everything at <= 0.3
    return (
        issue.severity == IssueSeverity.SEVERE
        or (issue.severity == IssueSeverity.MODERATE and threshold <= config.MODERATE_PASS_THRESHOLD)
        or threshold <= config.ALL_PASS_THRESHOLD
    )


def filter_by_threshold(issues: List[PostureIssue], threshold: float) -> List[PostureIssue]:
    return [issue for issue in issues if passes_threshold(issue, threshold)]


def detect_posture_issues(pose: Pose, angles: AngleMetrics,
                          baseline: Optional[UserBaseline],
                          threshold: float = config.ISSUE_DETECTION_THRESHOLD) -> List[PostureIssue]:
    """
    Run every rule check and keep the issues passing the threshold filter

    Args:
        pose: Current pose (raw keypoint offsets)
        angles: AngleMetrics of the pose
        baseline: Personal baseline, or None for the fixed defaults
        threshold: 0-1 sensitivity filter

    Returns:
        Issues in detection order (not prioritized)
    """
    candidates = [
        detect_forward_head(angles, baseline),
        detect_rounded_shoulders(pose),
        detect_slouching(angles, baseline),
        detect_uneven_hips(pose),
        detect_uneven_shoulders(pose),
    ]
    detected = [issue for issue in candidates if issue is not None]
    issues = filter_by_threshold(detected, threshold)

    if detected:
        logger.log_debug("Issues Detected", {
            "detected": len(detected),
            "after_filter": len(issues),
            "threshold": threshold,
        })

    return issues


def prioritize_issues(issues: List[PostureIssue]) -> List[PostureIssue]:
    """Severity first, then type priority; ties keep detection order"""
    return sorted(
        issues,
        key=lambda issue: (config.SEVERITY_ORDER[issue.severity], config.ISSUE_PRIORITY[issue.type]),
    )
