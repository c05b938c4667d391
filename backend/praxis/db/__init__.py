"""Database Declarations: the SQLAlchemy declarative Base shared by every model.

Invariants:
    - Engine and sessions are owned by infrastructure/database.py, not here

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite in tests
"""
