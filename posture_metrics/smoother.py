# Smoother - exponential temporal filter over consecutive poses
from typing import List, Optional

from posture_metrics import config
from posture_metrics import logger
from posture_metrics.models import Keypoint, Pose


def smooth_keypoints(current: List[Keypoint], previous: Optional[List[Keypoint]],
                     smoothing_factor: float = config.SMOOTHING_FACTOR) -> List[Keypoint]:
    """
    Blend x/y of each keypoint with the same joint in the previous frame

    Confidence is always the current frame's, a stale score would hide a joint
    that was just lost. A joint the previous frame lacks passes through as is;
    a joint the current frame lacks stays missing.

    Args:
        current: This frame's keypoints
        previous: Last accepted keypoints, or None on the first frame
        smoothing_factor: Weight of the current frame (alpha)

    Returns:
        Smoothed keypoints (current keypoints unchanged when previous is None)
    """
    if previous is None:
        return current

    previous_by_name = {kp.name: kp for kp in previous}
    smoothed = []
    for cur in current:
        prev = previous_by_name.get(cur.name)
        if prev is None:
            smoothed.append(cur)
            continue
        smoothed.append(cur.model_copy(update={
            "x": cur.x * smoothing_factor + prev.x * (1 - smoothing_factor),
            "y": cur.y * smoothing_factor + prev.y * (1 - smoothing_factor),
        }))

    return smoothed


class Smoother:
    """
    Holds the last accepted pose of one tracking session.

    Call reset() whenever tracking restarts (new calibration, camera re-acquired).
    """

    def __init__(self, smoothing_factor: float = config.SMOOTHING_FACTOR) -> None:
        if not 0.0 <= smoothing_factor <= 1.0:
            raise ValueError(f"smoothing_factor must be in [0, 1], got {smoothing_factor}")
        self.smoothing_factor = smoothing_factor
        self._previous: Optional[Pose] = None

    @property
    def previous(self) -> Optional[Pose]:
        return self._previous

    def smooth(self, pose: Pose) -> Pose:
        if self._previous is None:
            smoothed = pose
        else:
            keypoints = smooth_keypoints(pose.keypoints, self._previous.keypoints, self.smoothing_factor)
            smoothed = pose.model_copy(update={"keypoints": keypoints})

        self._previous = smoothed
        return smoothed

    def reset(self) -> None:
        logger.log_debug("Smoother Reset", {"had_previous": self._previous is not None})
        self._previous = None
