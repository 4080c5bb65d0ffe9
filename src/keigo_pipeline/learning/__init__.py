"""
피드백 학습
"""

from .feedback_learner import FeedbackLearner, feedback_id, round_half_up

__all__ = [
    "FeedbackLearner",
    "feedback_id",
    "round_half_up",
]
