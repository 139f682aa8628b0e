"""
risk/base.py

Abstract base interface for group risk models.
"""

from abc import ABC, abstractmethod


class BaseRiskModel(ABC):
    """Abstract base class for risk scoring models.

    Implementations turn a group's classification bucket counts into a
    risk score and a ranking key.
    """

    @abstractmethod
    def compute(self, inputs: dict) -> float:
        """Compute a risk score from bucket counts.

        Args:
            inputs: Dictionary with integer ``ok``, ``warn`` and ``bad`` counts.
                    Missing keys count as 0.

        Returns:
            A float risk score; range is defined by the subclass.
        """
        raise NotImplementedError("Subclasses must implement compute()")

    @abstractmethod
    def ranking_key(self, inputs: dict) -> int:
        """Return a key where larger means the group should list earlier."""
        raise NotImplementedError("Subclasses must implement ranking_key()")
