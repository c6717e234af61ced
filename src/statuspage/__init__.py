"""Statuspage - incident and maintenance status page backend.

Tracks incidents and scheduled maintenance for monitored services and
notifies subscribers when their status changes.
"""

__version__ = "0.1.0"
__author__ = "Statuspage Team"

__all__ = ["__version__", "__author__"]
