"""Deploy Microsoft Sentinel content hub solutions and analytics rules."""

__version__ = "0.1.0"
