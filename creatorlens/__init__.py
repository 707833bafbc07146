"""
CreatorLens - TikTok performance analytics for individual creators

Derives KPIs from per-video metrics, scores videos against the creator's own
catalogue, imports TikTok Studio CSV exports and asks hosted LLMs for
content recommendations.
"""

__version__ = "0.1.0"
__author__ = "CreatorLens Team"
