"""
Hanger - second-hand marketplace backend.

Persistent, crash-recoverable entity store plus the trade lifecycle that
keeps listings, trades, reputation counters and notifications consistent.
"""

__version__ = "0.1.0"
