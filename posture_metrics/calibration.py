# Calibration Manager - personal baseline from a bounded sample window
from collections import Counter, deque
from datetime import datetime, timezone
from typing import Deque, List, Optional

from posture_metrics import config
from posture_metrics import logger
from posture_metrics.angle_calculator import calculate_angles
from posture_metrics.models import AngleMetrics, Pose, PostureType, UserBaseline
from posture_metrics.posture_classifier import detect_posture_type

ANGLE_FIELDS = ("neck_angle", "shoulder_angle", "spine_angle", "hip_angle", "knee_angle")


def average_angles(all_angles: List[AngleMetrics]) -> AngleMetrics:
    count = len(all_angles)
    return AngleMetrics(**{
        field: sum(getattr(angles, field) for angles in all_angles) / count
        for field in ANGLE_FIELDS
    })


def most_common_posture_type(types: List[PostureType]) -> PostureType:
    # Counter keeps first-encountered order among equal counts
    return Counter(types).most_common(1)[0][0]


class CalibrationManager:
    """
    Collects calibration poses and derives a UserBaseline.

    Two states: collecting (fewer than min_samples) and complete. The window
    holds at most 2 * min_samples poses, the oldest is evicted first.
    """

    def __init__(self, min_samples: int = config.CALIBRATION_MIN_SAMPLES) -> None:
        if min_samples < 1:
            raise ValueError(f"min_samples must be at least 1, got {min_samples}")
        self.min_samples = min_samples
        self.max_samples = min_samples * 2
        self._samples: Deque[Pose] = deque(maxlen=self.max_samples)

    def add_sample(self, pose: Pose) -> bool:
        """Append a pose (evicting the oldest when full); returns True once complete"""
        was_complete = self.is_calibration_complete()
        self._samples.append(pose)
        complete = self.is_calibration_complete()

        if complete and not was_complete:
            logger.log_calibration("Complete - sample window filled", {
                "samples": len(self._samples),
                "min_samples": self.min_samples,
            })

        return complete

    def is_calibration_complete(self) -> bool:
        return len(self._samples) >= self.min_samples

    def get_progress(self) -> float:
        return min(100.0, len(self._samples) / self.min_samples * 100)

    def create_baseline(self, user_id: str) -> Optional[UserBaseline]:
        """
        Derive a baseline from the current window

        Args:
            user_id: Owner of the baseline

        Returns:
            UserBaseline, or None while still collecting
        """
        if not self.is_calibration_complete():
            logger.log_warning("Baseline Requested Too Early", {
                "user_id": user_id,
                "progress": f"{self.get_progress():.0f}%",
            })
            return None

        samples = list(self._samples)
        posture_type = most_common_posture_type([detect_posture_type(pose) for pose in samples])
        optimal_angles = average_angles([calculate_angles(pose) for pose in samples])

        baseline = UserBaseline(
            user_id=user_id,
            posture_type=posture_type,
            optimal_angles=optimal_angles,
            samples=samples,
        )

        logger.log_calibration("Baseline Created", {
            "user_id": user_id,
            "posture_type": posture_type.value,
            "samples": len(samples),
            "neck_angle": f"{optimal_angles.neck_angle:.1f}",
            "spine_angle": f"{optimal_angles.spine_angle:.1f}",
        })

        return baseline

    def reset(self) -> None:
        self._samples.clear()
        logger.log_calibration("Reset", {"min_samples": self.min_samples})

    def get_samples(self) -> List[Pose]:
        return list(self._samples)


def update_baseline(baseline: UserBaseline, new_poses: List[Pose], weight: float = 0.1) -> UserBaseline:
    """
    Blend the mean angles of new poses into an existing baseline (EMA)

    updated = existing * (1 - weight) + mean(new) * weight, per angle.

    Raises:
        ValueError: no poses, or weight outside [0, 1]
    """
    if not new_poses:
        raise ValueError("update_baseline needs at least one pose")
    if not 0.0 <= weight <= 1.0:
        raise ValueError(f"weight must be in [0, 1], got {weight}")

    new_mean = average_angles([calculate_angles(pose) for pose in new_poses])
    existing = baseline.optimal_angles

    updated_angles = AngleMetrics(**{
        field: getattr(existing, field) * (1 - weight) + getattr(new_mean, field) * weight
        for field in ANGLE_FIELDS
    })

    updated = baseline.model_copy(update={
        "optimal_angles": updated_angles,
        "updated_at": datetime.now(timezone.utc),
    })

    logger.log_calibration("Baseline Updated", {
        "user_id": baseline.user_id,
        "poses": len(new_poses),
        "weight": weight,
    })

    return updated
