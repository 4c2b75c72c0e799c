"""Utility helpers for the crag drying engine."""

from .errors import (
    DataUnavailableError,
    DryingEngineError,
    InvalidArgumentError,
    NotApplicableError,
)

__all__ = [
    "DryingEngineError",
    "NotApplicableError",
    "DataUnavailableError",
    "InvalidArgumentError",
]
