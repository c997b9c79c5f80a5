# geoscore/api/endpoints/__init__.py
"""API endpoints"""

from . import analyze, compare, health

__all__ = ["analyze", "compare", "health"]
