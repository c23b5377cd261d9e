"""Operator authorization checks for the access console."""

from .access import PROFILE_PATH, AccessChecker

__all__ = ["AccessChecker", "PROFILE_PATH"]
