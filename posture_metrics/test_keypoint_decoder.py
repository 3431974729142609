import math

import numpy as np
from pydantic import ValidationError
import pytest

from posture_metrics.keypoint_decoder import (
    SchemaMismatchError,
    calculate_pose_score,
    decode_heatmaps,
    extract_keypoints,
)
from posture_metrics.models import KEYPOINT_ORDER, Keypoint, KeypointName
from posture_metrics.utils import sigmoid


def heatmap_volume(height=4, width=5, fill=0.0):
    return np.full((height, width, 14), fill, dtype=np.float64)


def test_peak_location_is_normalized():
    volume = heatmap_volume()
    volume[3, 2, 0] = 4.0  # y=3, x=2 on channel 0
    volume[1, 4, 13] = 2.0

    keypoints = extract_keypoints(volume)

    assert keypoints[0].x == pytest.approx(2 / 5)
    assert keypoints[0].y == pytest.approx(3 / 4)
    assert keypoints[0].score == pytest.approx(sigmoid(4.0))
    assert keypoints[13].x == pytest.approx(4 / 5)
    assert keypoints[13].y == pytest.approx(1 / 4)


def test_keypoints_follow_canonical_order():
    keypoints = extract_keypoints(heatmap_volume())
    assert [kp.name for kp in keypoints] == [name.value for name in KEYPOINT_ORDER]


def test_degenerate_channel_picks_first_cell():
    keypoints = extract_keypoints(heatmap_volume(fill=-1.5))

    for keypoint in keypoints:
        assert (keypoint.x, keypoint.y) == (0.0, 0.0)
        assert keypoint.score == pytest.approx(sigmoid(-1.5))


def test_ties_resolve_in_row_major_order():
    volume = heatmap_volume()
    volume[2, 1, 5] = 3.0
    volume[1, 3, 5] = 3.0  # earlier row wins even with a larger x
    volume[2, 4, 5] = 3.0

    keypoint = extract_keypoints(volume)[5]

    assert (keypoint.x, keypoint.y) == (pytest.approx(3 / 5), pytest.approx(1 / 4))


def test_accepts_nested_lists():
    volume = heatmap_volume(height=2, width=2)
    volume[1, 1, 0] = 1.0
    keypoints = extract_keypoints(volume.tolist())
    assert (keypoints[0].x, keypoints[0].y) == (0.5, 0.5)


def test_wrong_channel_count_is_rejected():
    with pytest.raises(SchemaMismatchError):
        extract_keypoints(np.zeros((4, 4, 17)))


@pytest.mark.parametrize("shape", [(4, 14), (1, 4, 4, 14), (0, 4, 14)])
def test_malformed_shapes_are_rejected(shape):
    with pytest.raises(SchemaMismatchError):
        extract_keypoints(np.zeros(shape))


def test_ragged_input_is_rejected():
    ragged = [[[0.0] * 14, [0.0] * 14], [[0.0] * 14]]
    with pytest.raises(SchemaMismatchError):
        extract_keypoints(ragged)


def test_schema_mismatch_is_a_value_error():
    assert issubclass(SchemaMismatchError, ValueError)


def test_extreme_and_nan_activations_stay_finite():
    volume = heatmap_volume()
    volume[:, :, 0] = np.nan
    volume[0, 0, 1] = 1e6
    volume[:, :, 2] = -1e6

    keypoints = extract_keypoints(volume)

    for keypoint in keypoints:
        assert math.isfinite(keypoint.score)
        assert 0.0 <= keypoint.score <= 1.0
    assert keypoints[0].score == 0.0
    assert keypoints[1].score == pytest.approx(1.0)


def test_decode_leaves_pose_score_unset():
    pose = decode_heatmaps(heatmap_volume())
    assert pose.score == 0.0
    assert pose.is_complete


def test_pose_score_weights_by_high_confidence_share():
    keypoints = [Keypoint(x=0, y=0, score=0.9, name=KeypointName.TOP), Keypoint(x=0, y=0, score=0.1, name=KeypointName.NECK)]
    # mean 0.5, half of the keypoints above 0.5
    assert calculate_pose_score(keypoints) == pytest.approx(0.25)


def test_pose_score_edge_cases():
    assert calculate_pose_score([]) == 0.0
    flat = [Keypoint(x=0, y=0, score=0.5, name=name) for name in KEYPOINT_ORDER]
    assert calculate_pose_score(flat) == 0.0


def test_keypoint_names_are_the_fixed_joint_set():
    keypoint = Keypoint.model_validate({"x": 0.1, "y": 0.2, "score": 0.9, "name": "leftShoulder"})

    assert keypoint.name is KeypointName.LEFT_SHOULDER
    assert keypoint.model_dump(mode="json")["name"] == "leftShoulder"
    with pytest.raises(ValidationError):
        Keypoint(x=0.1, y=0.2, score=0.9, name="leftPinky")
