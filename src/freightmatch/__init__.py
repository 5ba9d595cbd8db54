"""Fare, dispatch and negotiation engine for a cargo hailing marketplace."""

__version__ = "0.1.0"
