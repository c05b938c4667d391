"""Core Layer: pure business rules, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure and deterministic; time and randomness are passed in

Design Decisions:
    - Functional core separated from imperative shell: services load, core decides, services commit
"""
