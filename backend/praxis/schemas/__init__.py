"""Pydantic Schemas: request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses)
    - Domain enums from core/ used for status, event and priority fields
    - Money crosses the boundary as Decimal serialized to string
"""
