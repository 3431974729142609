import pytest

from posture_metrics.sample_poses import SITTING_LAYOUT, STANDING_LAYOUT, build_pose


@pytest.fixture
def sitting_pose():
    return build_pose(SITTING_LAYOUT)


@pytest.fixture
def standing_pose():
    return build_pose(STANDING_LAYOUT)
