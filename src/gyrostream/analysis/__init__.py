"""Lightweight signal statistics used for live telemetry."""

from .rate import RateController

__all__ = ["RateController"]
