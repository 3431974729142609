# Helper utilities
import math
import time
from typing import NamedTuple, Union

from posture_metrics.models import Keypoint, Pose


class Point(NamedTuple):
    """Derived location (midpoint, reference point) that is not a tracked joint"""
    x: float
    y: float


Location = Union[Keypoint, Point]


def sigmoid(x: float) -> float:
    # split on sign so exp() never overflows
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


def calculate_angle(p1: Location, p2: Location, p3: Location) -> float:
    """Planar angle at p2 in degrees, folded into [0, 180]"""
    radians = math.atan2(p3.y - p2.y, p3.x - p2.x) - math.atan2(p1.y - p2.y, p1.x - p2.x)
    degrees = abs(math.degrees(radians))
    if degrees > 180:
        degrees = 360 - degrees
    return degrees


def calculate_distance(p1: Location, p2: Location) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def calculate_angle_deviation(actual: float, optimal: float) -> float:
    return abs(actual - optimal)


def midpoint(a: Location, b: Location) -> Point:
    return Point((a.x + b.x) / 2, (a.y + b.y) / 2)


def interpolate_keypoints(pose1: Pose, pose2: Pose, factor: float) -> Pose:
    """
    Linear blend between two poses (factor 0 -> pose1, 1 -> pose2)

    Unlike smoothing, the keypoint confidence is blended too.
    """
    keypoints = [
        kp1.model_copy(update={
            "x": kp1.x * (1 - factor) + kp2.x * factor,
            "y": kp1.y * (1 - factor) + kp2.y * factor,
            "score": kp1.score * (1 - factor) + kp2.score * factor,
        })
        for kp1, kp2 in zip(pose1.keypoints, pose2.keypoints)
    ]
    return Pose(
        keypoints=keypoints,
        score=pose1.score * (1 - factor) + pose2.score * factor,
        timestamp=time.monotonic(),
    )
