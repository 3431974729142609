# Posture Classifier - single-frame sitting/standing heuristic
from posture_metrics import config
from posture_metrics.models import KeypointName, Pose, PostureType


def detect_posture_type(pose: Pose) -> PostureType:
    """
    Classify the pose from hip/knee geometry

    EXERCISING needs pose velocity history and is never returned here; callers
    with such history may override the result.
    """
    left_hip = pose.get(KeypointName.LEFT_HIP)
    right_hip = pose.get(KeypointName.RIGHT_HIP)
    left_knee = pose.get(KeypointName.LEFT_KNEE)
    right_knee = pose.get(KeypointName.RIGHT_KNEE)
    neck = pose.get(KeypointName.NECK)

    if not (left_hip and right_hip and left_knee and right_knee and neck):
        return PostureType.UNKNOWN

    avg_hip_y = (left_hip.y + right_hip.y) / 2
    avg_knee_y = (left_knee.y + right_knee.y) / 2

    # Knees roughly level with the hips -> thighs horizontal
    if abs(avg_hip_y - avg_knee_y) < config.SITTING_HIP_KNEE_GAP:
        return PostureType.SITTING

    return PostureType.STANDING
