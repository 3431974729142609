"""
posture_metrics - keypoint-to-metrics posture analysis.

Turns per-frame heatmaps or decoded 2D keypoints into a bounded posture score,
prioritized posture issues and a personal calibration baseline.
"""

__version__ = "1.0.0"

from posture_metrics.analyzer import PostureAnalyzer
from posture_metrics.calibration import CalibrationManager, update_baseline
from posture_metrics.keypoint_decoder import SchemaMismatchError, decode_heatmaps
from posture_metrics.models import (
    AngleMetrics,
    AngleValidity,
    IssueSeverity,
    Keypoint,
    KeypointName,
    Pose,
    PostureIssue,
    PostureIssueType,
    PostureMetrics,
    PostureScore,
    PostureType,
    UserBaseline,
)

__all__ = [
    "PostureAnalyzer",
    "CalibrationManager",
    "update_baseline",
    "SchemaMismatchError",
    "decode_heatmaps",
    "AngleMetrics",
    "AngleValidity",
    "IssueSeverity",
    "Keypoint",
    "KeypointName",
    "Pose",
    "PostureIssue",
    "PostureIssueType",
    "PostureMetrics",
    "PostureScore",
    "PostureType",
    "UserBaseline",
    "__version__",
]
