"""Convenience exports for analysis modules."""

from .traffic import analyze_traffic, parse_analysis_request

__all__ = [
    "analyze_traffic",
    "parse_analysis_request",
]
