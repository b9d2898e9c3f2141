"""
models/ — pydantic payloads and client-side state

Modules:
    enumerations.py  - Status, level and band enums
    evaluation.py    - Admin API payloads and the enriched business tree
    report.py        - Refined report with legacy-shape normalization
    navigation.py    - NavigationState and its invariants
"""
