"""Hand-placed sitting and standing figures for exercising the pipeline without a detector."""
from posture_metrics.models import KEYPOINT_ORDER, AngleMetrics, Keypoint, KeypointName, Pose, PostureType, UserBaseline

# Upright seated figure, thighs roughly horizontal (knees level with hips)
SITTING_LAYOUT = {
    KeypointName.TOP: (0.5, 0.1),
    KeypointName.NECK: (0.5, 0.2),
    KeypointName.LEFT_SHOULDER: (0.4, 0.25),
    KeypointName.RIGHT_SHOULDER: (0.6, 0.25),
    KeypointName.LEFT_ELBOW: (0.4, 0.4),
    KeypointName.RIGHT_ELBOW: (0.6, 0.4),
    KeypointName.LEFT_WRIST: (0.4, 0.5),
    KeypointName.RIGHT_WRIST: (0.6, 0.5),
    KeypointName.LEFT_HIP: (0.45, 0.6),
    KeypointName.RIGHT_HIP: (0.55, 0.6),
    KeypointName.LEFT_KNEE: (0.3, 0.65),
    KeypointName.RIGHT_KNEE: (0.7, 0.65),
    KeypointName.LEFT_ANKLE: (0.3, 0.85),
    KeypointName.RIGHT_ANKLE: (0.7, 0.85),
}

STANDING_LAYOUT = {
    **SITTING_LAYOUT,
    KeypointName.LEFT_KNEE: (0.45, 0.85),
    KeypointName.RIGHT_KNEE: (0.55, 0.85),
    KeypointName.LEFT_ANKLE: (0.45, 0.98),
    KeypointName.RIGHT_ANKLE: (0.55, 0.98),
}


def build_pose(layout=None, overrides=None, drop=(), score=0.9, timestamp=0.0):
    """Pose in canonical joint order; overrides maps KeypointName -> (x, y)"""
    positions = dict(layout or SITTING_LAYOUT)
    positions.update(overrides or {})
    keypoints = [
        Keypoint(x=positions[name][0], y=positions[name][1], score=score, name=name)
        for name in KEYPOINT_ORDER
        if name not in drop
    ]
    return Pose(keypoints=keypoints, score=score, timestamp=timestamp)


def build_baseline(**angles):
    values = {"neck_angle": 15.0, "shoulder_angle": 90.0, "spine_angle": 95.0,
              "hip_angle": 90.0, "knee_angle": 90.0}
    values.update(angles)
    return UserBaseline(
        user_id="user-1",
        posture_type=PostureType.SITTING,
        optimal_angles=AngleMetrics(**values),
    )

