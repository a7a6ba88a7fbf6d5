"""
csoverview Visualization - Presentation-time helpers.

This module contains:
- radar: World to overview coordinate translation
- export: Match and snapshot export to JSON
"""

__all__: list[str] = []
