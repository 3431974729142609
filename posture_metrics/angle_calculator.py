# Angle Calculator - Pose -> named skeletal angles
from typing import Tuple

from posture_metrics import config
from posture_metrics.models import AngleMetrics, AngleValidity, KeypointName, Pose
from posture_metrics.utils import Point, calculate_angle, midpoint


def calculate_angles_with_validity(pose: Pose) -> Tuple[AngleMetrics, AngleValidity]:
    """
    Compute the five posture angles, each independently best-effort

    An angle whose joints are missing stays 0 and its bit is left out of the
    returned validity mask.

    Args:
        pose: Decoded (and optionally smoothed) pose

    Returns:
        Tuple of (AngleMetrics, AngleValidity)
    """
    head = pose.get(KeypointName.TOP)
    neck = pose.get(KeypointName.NECK)
    left_shoulder = pose.get(KeypointName.LEFT_SHOULDER)
    right_shoulder = pose.get(KeypointName.RIGHT_SHOULDER)
    left_elbow = pose.get(KeypointName.LEFT_ELBOW)
    left_hip = pose.get(KeypointName.LEFT_HIP)
    right_hip = pose.get(KeypointName.RIGHT_HIP)
    left_knee = pose.get(KeypointName.LEFT_KNEE)
    left_ankle = pose.get(KeypointName.LEFT_ANKLE)

    angles = {}
    validity = AngleValidity.NONE

    # Neck: head top - neck - shoulder midpoint
    if head and neck and left_shoulder and right_shoulder:
        shoulder_mid = midpoint(left_shoulder, right_shoulder)
        angles["neck_angle"] = calculate_angle(head, neck, shoulder_mid)
        validity |= AngleValidity.NECK

    if neck and left_shoulder and left_elbow:
        angles["shoulder_angle"] = calculate_angle(neck, left_shoulder, left_elbow)
        validity |= AngleValidity.SHOULDER

    # Spine: neck - hip midpoint - point straight below the hips (gravity reference)
    if neck and left_hip and right_hip:
        hip_mid = midpoint(left_hip, right_hip)
        vertical_ref = Point(hip_mid.x, hip_mid.y + config.SPINE_REFERENCE_OFFSET)
        angles["spine_angle"] = calculate_angle(neck, hip_mid, vertical_ref)
        validity |= AngleValidity.SPINE

    if left_shoulder and left_hip and left_knee:
        angles["hip_angle"] = calculate_angle(left_shoulder, left_hip, left_knee)
        validity |= AngleValidity.HIP

    if left_hip and left_knee and left_ankle:
        angles["knee_angle"] = calculate_angle(left_hip, left_knee, left_ankle)
        validity |= AngleValidity.KNEE

    return AngleMetrics(**angles), validity


def calculate_angles(pose: Pose) -> AngleMetrics:
    angles, _ = calculate_angles_with_validity(pose)
    return angles
