# geoscore/api/__init__.py
"""HTTP surface for the GEO scoring service"""
