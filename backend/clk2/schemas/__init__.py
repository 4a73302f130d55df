"""Pydantic Schemas — JSON-RPC request/response validation at the HTTP boundary.

Invariants:
    - Schemas validate at system boundary (RPC params, RPC results)
    - Domain enums from core/ used for status and event fields
"""
