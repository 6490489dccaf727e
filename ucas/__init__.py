"""Universal Cost Action Simulator."""

__version__ = "0.3.0"
