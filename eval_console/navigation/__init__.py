"""
navigation/ — drill-down state machine and detail view models
"""
