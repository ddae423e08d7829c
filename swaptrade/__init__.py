"""
SwapTrade: accounting core of a single-pool token-swap venue.
"""

__version__ = "0.1.0"
