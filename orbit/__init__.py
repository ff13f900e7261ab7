"""
Orbit - caching layer for the OrbitABM account-based marketing platform
"""

__version__ = "1.0.0"
