"""
Data models shared by every stage of the keypoint-to-metrics pipeline.
"""
import time
from datetime import datetime, timezone
from enum import Enum, IntFlag
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class KeypointName(str, Enum):
    TOP = "top"
    NECK = "neck"
    LEFT_SHOULDER = "leftShoulder"
    RIGHT_SHOULDER = "rightShoulder"
    LEFT_ELBOW = "leftElbow"
    RIGHT_ELBOW = "rightElbow"
    LEFT_WRIST = "leftWrist"
    RIGHT_WRIST = "rightWrist"
    LEFT_HIP = "leftHip"
    RIGHT_HIP = "rightHip"
    LEFT_KNEE = "leftKnee"
    RIGHT_KNEE = "rightKnee"
    LEFT_ANKLE = "leftAnkle"
    RIGHT_ANKLE = "rightAnkle"


# Canonical joint order: heatmap channel k decodes to KEYPOINT_ORDER[k]
KEYPOINT_ORDER = tuple(KeypointName)


class PostureType(str, Enum):
    SITTING = "sitting"
    STANDING = "standing"
    EXERCISING = "exercising"
    UNKNOWN = "unknown"


class PostureIssueType(str, Enum):
    FORWARD_HEAD = "forward_head"
    ROUNDED_SHOULDERS = "rounded_shoulders"
    SLOUCHING = "slouching"
    UNEVEN_HIPS = "uneven_hips"
    UNEVEN_SHOULDERS = "uneven_shoulders"
    EXCESSIVE_LORDOSIS = "excessive_lordosis"
    EXCESSIVE_KYPHOSIS = "excessive_kyphosis"


class IssueSeverity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class AngleValidity(IntFlag):
    """Which angles of an AngleMetrics were actually computed (unset bit = defaulted to 0)."""
    NONE = 0
    NECK = 1
    SHOULDER = 2
    SPINE = 4
    HIP = 8
    KNEE = 16
    ALL = NECK | SHOULDER | SPINE | HIP | KNEE


class Keypoint(BaseModel):
    """Single 2D joint location in normalized image coordinates"""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    score: float
    name: KeypointName


class Pose(BaseModel):
    """One frame's keypoints, in canonical joint order"""
    keypoints: List[Keypoint]
    score: float = 0.0
    timestamp: float = Field(default_factory=time.monotonic)

    def get(self, name: KeypointName) -> Optional[Keypoint]:
        for keypoint in self.keypoints:
            if keypoint.name == name:
                return keypoint
        return None

    @property
    def is_complete(self) -> bool:
        if len(self.keypoints) != len(KEYPOINT_ORDER):
            return False
        return all(kp.name == name for kp, name in zip(self.keypoints, KEYPOINT_ORDER))


class AngleMetrics(BaseModel):
    """Skeletal angles in degrees, each in [0, 180]"""
    model_config = ConfigDict(frozen=True)

    neck_angle: float = 0.0
    shoulder_angle: float = 0.0
    spine_angle: float = 0.0
    hip_angle: float = 0.0
    knee_angle: float = 0.0


class ScoreComponents(BaseModel):
    head: int
    shoulders: int
    spine: int
    hips: int


class PostureScore(BaseModel):
    overall: int
    components: ScoreComponents
    timestamp: float
    posture_type: PostureType


class PostureIssue(BaseModel):
    id: str
    type: PostureIssueType
    severity: IssueSeverity
    body_part: str
    description: str
    recommendation: str
    angle: Optional[float] = None
    threshold: Optional[float] = None


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UserBaseline(BaseModel):
    user_id: str
    posture_type: PostureType
    optimal_angles: AngleMetrics
    samples: List[Pose] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class PostureMetrics(BaseModel):
    current_posture: PostureScore
    issues: List[PostureIssue]
    angles: AngleMetrics
    angle_validity: int = int(AngleValidity.ALL)  # AngleValidity bitmask
    improvement: float = 0.0
    duration: float = 0.0  # populated by the caller
