"""Core Layer — pure clock logic, no IO, no async, no globals.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or cli/
    - All functions are pure and deterministic; "now" is always a parameter
    - Validation failures are returned as Err values, never raised

Design Decisions:
    - Functional core separated from imperative shell (services/ owns the lock and the disk)
"""
