"""Exceptions raised while scoring accuracy"""


class ScoringError(Exception):
    """Accuracy scoring failed for one image; scorers turn it into a failed outcome"""
