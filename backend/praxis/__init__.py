"""PC Praxis Package: configurator, orders and repair tickets for a PC retailer.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
