"""Ride orchestration engine: matching, trip lifecycle, fares and coupons."""

__version__ = "0.1.0"
