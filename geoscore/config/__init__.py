# geoscore/config/__init__.py
"""Runtime settings and scoring configuration"""

from .settings import Settings, settings
from .scoring import ScoringConfig

__all__ = ["Settings", "settings", "ScoringConfig"]
