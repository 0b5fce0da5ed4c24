"""
Tutoria Analytics Backend
=========================
Usage, cost and engagement analytics over the tutoring chat event log.
"""

__version__ = "1.0.0"
