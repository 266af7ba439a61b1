"""Utility functions for the Seed Extension Operator."""

from .conditions import Condition, ConditionSet, get_or_init_condition, merge_conditions
from .errors import is_conflict, is_not_found, sanitize_exception

__all__ = [
    "Condition",
    "ConditionSet",
    "get_or_init_condition",
    "merge_conditions",
    "is_conflict",
    "is_not_found",
    "sanitize_exception",
]
