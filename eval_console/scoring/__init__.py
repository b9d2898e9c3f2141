"""
scoring/ — client-side metric aggregation

Modules:
    utils.py               - Decimal rounding helpers
    catalog.py             - CABAS metric catalog (names, priority order)
    aggregation.py         - Run/interview metric folds, bands, flag filters
    strategic_position.py  - Operational Strength / Future Readiness quadrant
"""
