"""
CABAS Evaluation Console

Async client and drill-down controller for AI evaluation runs on the admin
API: metric aggregation, navigation, run polling and evaluation triggering.
"""

__version__ = "1.0.0"
