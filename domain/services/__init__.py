"""
Domain services.

These services orchestrate the apply workflow while depending only on
domain models and ports so that infrastructure and API layers can remain thin.
"""

from .apply_flow import ApplyStateMachine
from .filler import FillResult, act_on_first_match, find_first_match
from .question_detector import QuestionDetector, is_standard_field
from .session_registry import SessionRegistry

__all__ = [
    "ApplyStateMachine",
    "FillResult",
    "act_on_first_match",
    "find_first_match",
    "QuestionDetector",
    "is_standard_field",
    "SessionRegistry",
]
