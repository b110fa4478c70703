# src/common/access/__init__.py
"""Role-based access control."""

from .policy import Action, Decision, authorize, decide

__all__ = ["Action", "Decision", "authorize", "decide"]
