"""
Eligibility filtering with the re-enrollment override.
"""

from .filter import EligibilityFilter

__all__ = ["EligibilityFilter"]
