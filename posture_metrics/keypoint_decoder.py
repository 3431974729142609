# Keypoint Decoder - heatmap volume -> fixed-schema Pose
import time
from typing import List

import numpy as np

from posture_metrics import config
from posture_metrics import logger
from posture_metrics.models import KEYPOINT_ORDER, Keypoint, Pose
from posture_metrics.utils import sigmoid


class SchemaMismatchError(ValueError):
    """Heatmap volume does not match the fixed 14-joint keypoint schema."""


def _as_volume(heatmaps) -> np.ndarray:
    try:
        volume = np.asarray(heatmaps, dtype=np.float64)
    except ValueError as e:
        # ragged nested lists
        logger.log_error("Heatmap Rejected", e)
        raise SchemaMismatchError(f"Heatmap is not a regular volume: {e}") from e

    if volume.ndim != 3:
        error = SchemaMismatchError(
            f"Expected a [height][width][keypoints] volume, got {volume.ndim} dimension(s)"
        )
        logger.log_error("Heatmap Rejected", error, {"shape": volume.shape})
        raise error

    height, width, channels = volume.shape
    if channels != config.NUM_KEYPOINTS:
        error = SchemaMismatchError(
            f"Heatmap has {channels} keypoint channels, schema requires {config.NUM_KEYPOINTS}"
        )
        logger.log_error("Heatmap Rejected", error, {"shape": volume.shape})
        raise error

    if height == 0 or width == 0:
        error = SchemaMismatchError(f"Heatmap has empty spatial extent {height}x{width}")
        logger.log_error("Heatmap Rejected", error, {"shape": volume.shape})
        raise error

    # NaN never wins the argmax and decodes to zero confidence
    return np.where(np.isnan(volume), -np.inf, volume)


def extract_keypoints(heatmaps) -> List[Keypoint]:
    """
    Locate the peak activation of every channel

    Args:
        heatmaps: [height][width][14] raw activations (nested lists or ndarray)

    Returns:
        14 keypoints in canonical joint order, coordinates normalized by (width, height)

    Raises:
        SchemaMismatchError: volume is not 3-D, is empty, or has the wrong channel count
    """
    volume = _as_volume(heatmaps)
    height, width, _ = volume.shape

    keypoints = []
    for k, joint in enumerate(KEYPOINT_ORDER):
        channel = np.ascontiguousarray(volume[:, :, k])
        # argmax over the row-major flattening: y outer, x inner, first maximum wins
        flat_index = int(np.argmax(channel))
        max_y, max_x = divmod(flat_index, width)
        max_val = float(channel[max_y, max_x])

        keypoints.append(Keypoint(
            x=max_x / width,
            y=max_y / height,
            score=sigmoid(max_val),
            name=joint,
        ))

    return keypoints


def calculate_pose_score(keypoints: List[Keypoint]) -> float:
    """Mean keypoint confidence, weighted by the share of high-confidence keypoints"""
    if not keypoints:
        return 0.0

    scores = [kp.score for kp in keypoints]
    avg_score = sum(scores) / len(scores)
    high_confidence = sum(1 for s in scores if s > config.HIGH_CONFIDENCE_KEYPOINT)

    return avg_score * (high_confidence / len(scores))


def decode_heatmaps(heatmaps) -> Pose:
    """Decode one frame; Pose.score is left for downstream stages to fill in."""
    keypoints = extract_keypoints(heatmaps)
    pose = Pose(keypoints=keypoints, timestamp=time.monotonic())

    logger.log_debug("Heatmap Decoded", {
        "keypoints": len(keypoints),
        "min_confidence": f"{min(kp.score for kp in keypoints):.3f}",
    })

    return pose
