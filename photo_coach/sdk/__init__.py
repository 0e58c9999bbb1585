"""
SDK for Photo Coach.

Provides programmatic access to photo analysis with cost tracking.
"""

from .gemini_client import GeminiCoachClient
from .session import CoachSession

__all__ = ["GeminiCoachClient", "CoachSession"]
