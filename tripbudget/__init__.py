"""
Trip Budget Tracker - Source Package

A small group-trip expense and budget tracker. Members log income and
expenses against a trip itinerary, the dashboard aggregates totals,
and an AI prompt suggests chart configurations for the spend.

DESIGN PRINCIPLES:
1. Derived numbers are recomputed on every read, never stored
2. Input is validated before any store call
3. A failing collection degrades the dashboard, it does not break it
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Trip Budget Team"
