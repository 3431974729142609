# Scoring Engine - angle deviations -> 0-100 composite posture score
from typing import List, Optional

from posture_metrics import config
from posture_metrics import logger
from posture_metrics.models import (
    AngleMetrics,
    Pose,
    PostureScore,
    PostureType,
    ScoreComponents,
    UserBaseline,
)
from posture_metrics.posture_classifier import detect_posture_type
from posture_metrics.utils import calculate_angle_deviation


def score_component(component: str, deviation: float) -> int:
    """
    Map an angle deviation to a component score with the fixed step table

    Args:
        component: head, shoulders, spine or hips
        deviation: Absolute deviation from the optimal angle (degrees)

    Returns:
        Score 0-100, non-increasing in deviation
    """
    for limit, score in config.SCORE_BREAKPOINTS[component]:
        if limit is None or deviation <= limit:
            return score


def get_default_optimal_angles(posture_type: PostureType) -> AngleMetrics:
    return AngleMetrics(**config.DEFAULT_OPTIMAL_ANGLES[posture_type])


def weighted_overall(components: ScoreComponents) -> int:
    """Weighted sum of the components, rounded half up to the nearest integer"""
    total = sum(getattr(components, name) * weight for name, weight in config.COMPONENT_WEIGHTS.items())
    # weights are integer percent, so total is exact
    return (total + 50) // 100


def calculate_posture_score(pose: Pose, angles: AngleMetrics,
                            baseline: Optional[UserBaseline],
                            posture_type: Optional[PostureType] = None) -> PostureScore:
    """
    Score the current angles against the baseline (or the posture-type defaults)

    Args:
        pose: Pose the angles were computed from (posture type and timestamp)
        angles: Current AngleMetrics
        baseline: Personal baseline, or None for the defaults
        posture_type: Pre-computed classification, detected from pose when omitted

    Returns:
        PostureScore with overall and per-component scores
    """
    if posture_type is None:
        posture_type = detect_posture_type(pose)

    if baseline is not None:
        optimal = baseline.optimal_angles
    else:
        optimal = get_default_optimal_angles(posture_type)

    components = ScoreComponents(
        head=score_component("head", calculate_angle_deviation(angles.neck_angle, optimal.neck_angle)),
        shoulders=score_component("shoulders", calculate_angle_deviation(angles.shoulder_angle, optimal.shoulder_angle)),
        spine=score_component("spine", calculate_angle_deviation(angles.spine_angle, optimal.spine_angle)),
        hips=score_component("hips", calculate_angle_deviation(angles.hip_angle, optimal.hip_angle)),
    )

    score = PostureScore(
        overall=weighted_overall(components),
        components=components,
        timestamp=pose.timestamp,
        posture_type=posture_type,
    )

    logger.log_debug("Posture Scored", {
        "overall": score.overall,
        "posture_type": posture_type.value,
        "baseline": baseline is not None,
    })

    return score


def calculate_trend_score(scores: List[PostureScore]) -> float:
    """Mean change of the overall score between consecutive recent frames"""
    if len(scores) < 2:
        return 0.0

    recent = scores[-config.TREND_WINDOW:]
    deltas = [b.overall - a.overall for a, b in zip(recent, recent[1:])]
    return sum(deltas) / len(deltas)
