"""Infrastructure Layer: database access, repositories, logging and configuration tables.

Invariants:
    - SQL lives here and in services, never in core/
    - Database exceptions are mapped to DatabaseError before leaving this layer
"""
