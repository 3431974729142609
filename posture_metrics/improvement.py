"""
Improvement estimation.

PostureMetrics.improvement is produced by a swappable ImprovementEstimator so a
real historical-trend calculation can replace the placeholder without touching
the scoring core.
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from posture_metrics import config
from posture_metrics.models import PostureScore, UserBaseline
from posture_metrics.scoring_engine import calculate_trend_score


class ImprovementEstimator(ABC):

    @abstractmethod
    def estimate(self, score: PostureScore, baseline: Optional[UserBaseline],
                 history: List[PostureScore]) -> float: ...


class FixedReferenceEstimator(ImprovementEstimator):
    """
    Placeholder: gain of the current overall score over a fixed reference score.

    Reports 0 without a baseline and never goes negative. The history is ignored.
    """

    def __init__(self, reference: int = config.IMPROVEMENT_REFERENCE_SCORE) -> None:
        self.reference = reference

    def estimate(self, score: PostureScore, baseline: Optional[UserBaseline],
                 history: List[PostureScore]) -> float:
        if baseline is None:
            return 0.0
        return float(max(0, score.overall - self.reference))


class TrendImprovementEstimator(ImprovementEstimator):
    """Average per-frame change of the overall score over the recent history."""

    def estimate(self, score: PostureScore, baseline: Optional[UserBaseline],
                 history: List[PostureScore]) -> float:
        return calculate_trend_score(list(history) + [score])
