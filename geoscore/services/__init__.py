# geoscore/services/__init__.py
"""Scoring services: pattern analysis, semantic extraction, merging and comparison"""

# Services import each other; import them directly where needed
__all__ = []
