"""Core Pydantic schemas for the application."""

from .breakdown import (
    Breakdown,
    BreakdownEntry,
    DimensionalBreakdown,
    FlatBreakdown,
    normalize_breakdown,
    parse_breakdown,
)

__all__ = [
    "Breakdown",
    "BreakdownEntry",
    "DimensionalBreakdown",
    "FlatBreakdown",
    "normalize_breakdown",
    "parse_breakdown",
]
