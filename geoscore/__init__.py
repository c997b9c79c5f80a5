# geoscore/__init__.py
"""GEO content scoring service"""

__version__ = "1.0.0"
